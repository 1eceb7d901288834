"""Conversion of polars DataFrame rows into feature vectors."""

from __future__ import annotations

import polars as pl
from loguru import logger

from inctree.exceptions import ColumnsNotFoundError
from inctree.vectors import DEFAULT_CATEGORY, MappingFeatureVector


def vectors_from_frame(
    frame: pl.DataFrame,
    *,
    label_column: str | None = None,
    category: str = DEFAULT_CATEGORY,
) -> tuple[list[MappingFeatureVector], list[str] | None]:
    """Turn each row of a DataFrame into a single-category feature vector.

    Numeric columns become sub-keys of `category`; other columns (apart from
    the label column) are excluded and logged.

    Args:
        frame (pl.DataFrame): Source rows.
        label_column (str | None): Column holding the labels. Cast to strings.
        category (str): Category under which every numeric column is stored.

    Returns:
        tuple[list[MappingFeatureVector], list[str] | None]: The vectors, and
            the labels parallel to them or `None` without a label column.

    Raises:
        ColumnsNotFoundError: If `label_column` is not in the frame.
        ValueError: If there are no numeric feature columns, or feature or
            label values are null.

    Examples:
        >>> frame = pl.DataFrame({"free": [0.0, 0.3], "label": ["ham", "spam"]})
        >>> vectors, labels = vectors_from_frame(frame, label_column="label")
        >>> labels
        ['ham', 'spam']
        >>> vectors[1].value("value~free")
        0.3
    """
    if label_column is not None and label_column not in frame.columns:
        raise ColumnsNotFoundError(missing_columns=[label_column], available_columns=frame.columns)

    candidates = [column for column in frame.columns if column != label_column]
    feature_columns = [column for column in candidates if frame.schema[column].is_numeric()]
    excluded = [column for column in candidates if column not in feature_columns]
    if excluded:
        logger.warning("Non-numeric columns excluded from feature vectors", columns=excluded)
    if not feature_columns:
        raise ValueError(f"DataFrame has no numeric feature columns; available columns: {frame.columns}")

    null_columns = [column for column in feature_columns if frame[column].null_count() > 0]
    if label_column is not None and frame[label_column].null_count() > 0:
        null_columns.append(label_column)
    if null_columns:
        raise ValueError(f"Columns contain null values: {sorted(null_columns)}")

    vectors = [
        MappingFeatureVector.from_flat(row, category=category)
        for row in frame.select(feature_columns).iter_rows(named=True)
    ]
    labels = None if label_column is None else frame[label_column].cast(pl.String).to_list()
    logger.debug("DataFrame converted to feature vectors", rows=frame.height, features=feature_columns)
    return vectors, labels
