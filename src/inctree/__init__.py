"""inctree: an incrementally built classification tree over numeric feature vectors."""

from loguru import logger

from inctree.exceptions import (
    ColumnsNotFoundError,
    InvalidFeatureError,
    NoSeparatingFeatureError,
    TreeFormatError,
    UnclassifiableItemError,
)
from inctree.features import FEATURE_KEY_DELIMITER, FeatureVector, join_feature_key, parse_feature_key
from inctree.frames import vectors_from_frame
from inctree.logging import PACKAGE_NAME, LoggingHandle, enable_logging
from inctree.split import Split, midpoint
from inctree.tree import ClassificationTree
from inctree.vectors import MappingFeatureVector

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the inctree package by default

__all__ = [
    "FEATURE_KEY_DELIMITER",
    "ClassificationTree",
    "ColumnsNotFoundError",
    "FeatureVector",
    "InvalidFeatureError",
    "LoggingHandle",
    "MappingFeatureVector",
    "NoSeparatingFeatureError",
    "Split",
    "TreeFormatError",
    "UnclassifiableItemError",
    "enable_logging",
    "join_feature_key",
    "midpoint",
    "parse_feature_key",
    "vectors_from_frame",
]
