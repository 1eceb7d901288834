"""The feature vector capability and feature-key helpers.

A feature vector is any item that can report numeric values for namespaced
feature keys. Keys join a top-level category and a sub-key with
`FEATURE_KEY_DELIMITER`, e.g. `"wordPercent~free"`. The tree never inspects
items directly; it only calls the three methods of `FeatureVector`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from inctree.exceptions import InvalidFeatureError

if TYPE_CHECKING:
    from inctree.split import Split

FEATURE_KEY_DELIMITER: Final[str] = "~"


@runtime_checkable
class FeatureVector(Protocol):
    """An item with named numeric features.

    Implementations must declare their categories per instance (or per type)
    rather than through shared mutable state.

    Examples:
        >>> from inctree.vectors import MappingFeatureVector
        >>> isinstance(MappingFeatureVector.from_flat({"x": 1.0}), FeatureVector)
        True
    """

    def value(self, feature_key: str) -> float:
        """Return the numeric value of a namespaced feature.

        Args:
            feature_key (str): Key of the form `"<category>~<subkey>"`.

        Returns:
            float: The feature value.

        Raises:
            InvalidFeatureError: If the key's category is not among `categories()`.
        """
        ...

    def categories(self) -> frozenset[str]:
        """Return the top-level feature categories this item recognises."""
        ...

    def propose_split(self, other: FeatureVector) -> Split:
        """Derive a split that separates this item from `other`.

        Args:
            other (FeatureVector): The item to separate from.

        Returns:
            Split: A rule under which the two items evaluate differently.

        Raises:
            NoSeparatingFeatureError: If no feature separates the two items.
        """
        ...


def join_feature_key(category: str, subkey: str) -> str:
    """Join a category and a sub-key into a namespaced feature key.

    Args:
        category (str): Top-level feature category, e.g. `"wordPercent"`.
        subkey (str): Key within the category, e.g. `"free"`.

    Returns:
        str: The namespaced key, e.g. `"wordPercent~free"`.

    Raises:
        ValueError: If either part is empty or contains the delimiter.

    Examples:
        >>> join_feature_key("wordPercent", "free")
        'wordPercent~free'
    """
    for part_name, part in (("category", category), ("subkey", subkey)):
        if not part:
            raise ValueError(f"Feature {part_name} must not be empty")
        if FEATURE_KEY_DELIMITER in part:
            raise ValueError(f"Feature {part_name} {part!r} must not contain {FEATURE_KEY_DELIMITER!r}")
    return f"{category}{FEATURE_KEY_DELIMITER}{subkey}"


def parse_feature_key(feature_key: str) -> tuple[str, str]:
    """Split a namespaced feature key into its category and sub-key.

    Args:
        feature_key (str): Key of the form `"<category>~<subkey>"`.

    Returns:
        tuple[str, str]: The `(category, subkey)` pair.

    Raises:
        InvalidFeatureError: If the key is not namespaced or either part is empty.

    Examples:
        >>> parse_feature_key("wordPercent~free")
        ('wordPercent', 'free')
    """
    category, delimiter, subkey = feature_key.partition(FEATURE_KEY_DELIMITER)
    if not delimiter or not category or not subkey:
        raise InvalidFeatureError(feature_key, categories=())
    return category, subkey
