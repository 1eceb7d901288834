"""The Split decision rule: one namespaced feature compared against a threshold."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from inctree.exceptions import TreeFormatError
from inctree.features import FEATURE_KEY_DELIMITER, parse_feature_key

if TYPE_CHECKING:
    from inctree.features import FeatureVector

SPLIT_LINE_PREFIX: Final[str] = "Feature:"


def midpoint(one: float, two: float) -> float:
    """Return the value halfway between two numbers.

    Computed as `min + |one - two| / 2` so the result is identical for either
    argument order. When the difference overflows to infinity (large values of
    opposite sign) the halves are summed instead, which stays finite.

    Args:
        one (float): First value.
        two (float): Second value.

    Returns:
        float: The arithmetic mean of the two values.

    Examples:
        >>> midpoint(0.0, 1.0)
        0.5
        >>> midpoint(1.0, 0.0)
        0.5
        >>> midpoint(-1e308, 1e308)
        0.0
    """
    difference = abs(one - two)
    if not math.isfinite(difference):
        return one / 2.0 + two / 2.0
    return min(one, two) + difference / 2.0


class Split(BaseModel):
    """A threshold rule on one feature used to route items left or right.

    Items whose value for `feature` is strictly below `threshold` evaluate to
    `True` (left branch); values equal to or above it evaluate to `False`
    (right branch).

    Attributes:
        feature (str): Namespaced feature key, e.g. `"wordPercent~free"`.
        threshold (float): Finite decision threshold.

    Examples:
        >>> split = Split(feature="wordPercent~free", threshold=0.25)
        >>> split.category, split.base_key
        ('wordPercent', 'free')
        >>> str(split)
        'Feature: wordPercent~free~0.25'
    """

    model_config = ConfigDict(frozen=True)

    feature: str = Field(description="Namespaced feature key of the form '<category>~<subkey>'.")
    threshold: float = Field(allow_inf_nan=False, description="Values strictly below this go left.")

    @staticmethod
    def midpoint(one: float, two: float) -> float:
        """Return the value halfway between two numbers; see `inctree.split.midpoint`."""
        return midpoint(one, two)

    @field_validator("feature", mode="after")
    @classmethod
    def _validate_feature_is_namespaced(cls, value: str) -> str:
        """Validate that the feature key has a category prefix and a sub-key.

        Args:
            value (str): The feature key to validate.

        Returns:
            str: The validated key, unchanged.

        Raises:
            ValueError: If the key is not of the form `"<category>~<subkey>"`.
        """
        parse_feature_key(value)
        return value

    @property
    def category(self) -> str:
        """Top-level feature category, e.g. `"wordPercent"`."""
        return parse_feature_key(self.feature)[0]

    @property
    def base_key(self) -> str:
        """Feature key with the category prefix stripped, e.g. `"free"`."""
        return parse_feature_key(self.feature)[1]

    def evaluate(self, item: FeatureVector) -> bool:
        """Evaluate this split against an item.

        Args:
            item (FeatureVector): The item to route.

        Returns:
            bool: `True` if the item's value is strictly below the threshold.

        Raises:
            InvalidFeatureError: If the item does not declare this split's category.
        """
        return item.value(self.feature) < self.threshold

    def to_line(self, threshold_format: str | None = None) -> str:
        """Render this split as a single serialized header line.

        Args:
            threshold_format (str | None): Optional format spec for the threshold,
                e.g. `".6f"`. Defaults to `repr`, which round-trips exactly.

        Returns:
            str: The line `"Feature: <feature>~<threshold>"`.
        """
        rendered = repr(self.threshold) if threshold_format is None else format(self.threshold, threshold_format)
        return f"{SPLIT_LINE_PREFIX} {self.feature}{FEATURE_KEY_DELIMITER}{rendered}"

    @classmethod
    def from_line(cls, line: str, *, line_number: int | None = None) -> Split:
        """Parse a serialized header line back into a Split.

        The threshold is everything after the last delimiter, so feature keys
        keep their own category delimiter.

        Args:
            line (str): A line starting with `"Feature:"`.
            line_number (int | None): 1-indexed position, used in error reports.

        Returns:
            Split: The parsed split.

        Raises:
            TreeFormatError: If the prefix or threshold is missing, the threshold
                is not a finite number, or the feature key is not namespaced.

        Examples:
            >>> Split.from_line("Feature: x~value~0.5")
            Split(feature='x~value', threshold=0.5)
        """
        if not line.startswith(SPLIT_LINE_PREFIX):
            raise TreeFormatError(f"Split line must start with {SPLIT_LINE_PREFIX!r}", line_number=line_number, line=line)
        header = line[len(SPLIT_LINE_PREFIX) :].strip()
        feature, delimiter, raw_threshold = header.rpartition(FEATURE_KEY_DELIMITER)
        if not delimiter or not raw_threshold.strip():
            raise TreeFormatError("Split line is missing a threshold", line_number=line_number, line=line)
        try:
            threshold = float(raw_threshold)
        except ValueError as exc:
            msg = f"Threshold {raw_threshold!r} is not a number"
            raise TreeFormatError(msg, line_number=line_number, line=line) from exc
        try:
            return cls(feature=feature.strip(), threshold=threshold)
        except ValidationError as exc:
            msg = f"Invalid split {header!r}: {exc.errors()[0]['msg']}"
            raise TreeFormatError(msg, line_number=line_number, line=line) from exc

    def __str__(self) -> str:
        """Return the serialized header line for this split.

        Returns:
            str: The line `"Feature: <feature>~<threshold>"`.
        """
        return self.to_line()
