"""Custom exceptions for the classification tree.

All exceptions subclass ValueError so callers that only care about bad input
can catch a single type:

- InvalidFeatureError: Raised when a feature vector is asked for a feature
  category it does not declare.
- NoSeparatingFeatureError: Raised when two items with different labels have
  no feature whose values differ.
- UnclassifiableItemError: Raised when an item lacks a category used along
  its path through the tree.
- TreeFormatError: Raised when serialized tree text is malformed or truncated.
- ColumnsNotFoundError: Raised when requested columns do not exist in a DataFrame.
"""

from __future__ import annotations

from collections.abc import Iterable


class InvalidFeatureError(ValueError):
    """Raised when a feature key's category is not recognised by a feature vector.

    Attributes:
        feature_key (str): The requested feature key, e.g. `"wordPercent~free"`.
        categories (frozenset[str]): Categories the feature vector declares.

    Examples:
        >>> err = InvalidFeatureError("color~red", categories={"size"})
        >>> str(err)
        "Invalid feature 'color~red', not within possible categories ['size']"
    """

    feature_key: str
    categories: frozenset[str]

    def __init__(self, feature_key: str, categories: Iterable[str]) -> None:
        """Initialize InvalidFeatureError.

        Args:
            feature_key (str): The requested feature key.
            categories (Iterable[str]): Categories the feature vector declares.
        """
        self.feature_key = feature_key
        self.categories = frozenset(categories)
        super().__init__(
            f"Invalid feature {feature_key!r}, not within possible categories {sorted(self.categories)}"
        )

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Representation including the feature key and declared categories.
        """
        return f"{self.__class__.__name__}(feature_key={self.feature_key!r}, categories={sorted(self.categories)!r})"


class NoSeparatingFeatureError(ValueError):
    """Raised when no feature separates two items that must be split apart.

    This happens when two items with different labels report identical values
    for every feature they share, e.g. duplicate items with conflicting labels.

    Attributes:
        compared_keys (list[str]): Feature keys that were compared, in sorted order.
    """

    compared_keys: list[str]

    def __init__(self, message: str, *, compared_keys: Iterable[str] = ()) -> None:
        """Initialize NoSeparatingFeatureError.

        Args:
            message (str): Description of the degenerate split.
            compared_keys (Iterable[str]): Feature keys that were compared.
        """
        super().__init__(message)
        self.compared_keys = sorted(compared_keys)

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Representation including the message and compared keys.
        """
        return f"{self.__class__.__name__}(message={str(self)!r}, compared_keys={self.compared_keys!r})"


class UnclassifiableItemError(ValueError):
    """Raised when an item cannot be routed through the tree.

    Attributes:
        missing_category (str | None): The split category the item did not declare.
    """

    missing_category: str | None

    def __init__(self, message: str, *, missing_category: str | None = None) -> None:
        """Initialize UnclassifiableItemError.

        Args:
            message (str): Description of the failure.
            missing_category (str | None): The split category the item lacks.
        """
        super().__init__(message)
        self.missing_category = missing_category


class TreeFormatError(ValueError):
    """Raised when serialized tree text cannot be parsed.

    Attributes:
        line_number (int | None): 1-indexed line where parsing failed, or None
            when the failure is about the stream as a whole (empty or truncated).
        line (str | None): The offending line, if any.

    Examples:
        >>> err = TreeFormatError("Threshold is not a number", line_number=3, line="Feature: x~v~abc")
        >>> err.line_number
        3
    """

    line_number: int | None
    line: str | None

    def __init__(self, message: str, *, line_number: int | None = None, line: str | None = None) -> None:
        """Initialize TreeFormatError.

        Args:
            message (str): Description of the format error.
            line_number (int | None): 1-indexed line where parsing failed.
            line (str | None): The offending line.
        """
        super().__init__(message)
        self.line_number = line_number
        self.line = line

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Representation including message, line number, and line.
        """
        return f"{self.__class__.__name__}(message={str(self)!r}, line_number={self.line_number!r}, line={self.line!r})"


class ColumnsNotFoundError(ValueError):
    """Raised when requested columns do not exist in a DataFrame.

    Attributes:
        missing_columns (list[str]): Column names that were not found.
        available_columns (list[str]): Column names present in the DataFrame.

    Examples:
        >>> err = ColumnsNotFoundError(
        ...     missing_columns=["label"],
        ...     available_columns=["a", "b"],
        ... )
        >>> err.missing_columns
        ['label']
    """

    missing_columns: list[str]
    available_columns: list[str]

    def __init__(
        self,
        missing_columns: list[str],
        available_columns: list[str],
    ) -> None:
        """Initialize ColumnsNotFoundError.

        Args:
            missing_columns (list[str]): Column names not found in the DataFrame.
            available_columns (list[str]): Column names present in the DataFrame.
        """
        super().__init__(f"Columns not found in DataFrame: {sorted(missing_columns)}")
        self.missing_columns = missing_columns
        self.available_columns = available_columns
