"""A generic mapping-backed feature vector."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

from inctree.exceptions import InvalidFeatureError, NoSeparatingFeatureError
from inctree.features import FEATURE_KEY_DELIMITER, FeatureVector, join_feature_key, parse_feature_key
from inctree.split import Split, midpoint

DEFAULT_CATEGORY: Final[str] = "value"


class MappingFeatureVector:
    """Feature vector backed by nested `{category: {subkey: value}}` mappings.

    Sub-keys missing from a declared category read as `0.0`, the way an absent
    word has zero frequency in a document. Categories are fixed per instance.

    Examples:
        >>> ham = MappingFeatureVector.from_flat({"free": 0.0, "meeting": 0.2}, category="wordPercent")
        >>> spam = MappingFeatureVector.from_flat({"free": 0.3}, category="wordPercent")
        >>> ham.value("wordPercent~meeting")
        0.2
        >>> ham.propose_split(spam)
        Split(feature='wordPercent~free', threshold=0.15)
    """

    __slots__ = ("_features",)

    def __init__(self, features: Mapping[str, Mapping[str, float]]) -> None:
        """Initialize the vector.

        Args:
            features (Mapping[str, Mapping[str, float]]): Values per category and sub-key.

        Raises:
            ValueError: If a category or sub-key is empty or contains the key delimiter.
        """
        self._features: dict[str, dict[str, float]] = {}
        for category, values in features.items():
            if not category or FEATURE_KEY_DELIMITER in category:
                raise ValueError(f"Invalid feature category {category!r}")
            for subkey in values:
                join_feature_key(category, subkey)
            self._features[category] = {subkey: float(value) for subkey, value in values.items()}

    @classmethod
    def from_flat(cls, values: Mapping[str, float], *, category: str = DEFAULT_CATEGORY) -> MappingFeatureVector:
        """Build a single-category vector.

        Args:
            values (Mapping[str, float]): Values keyed by sub-key.
            category (str): The one category these values belong to.

        Returns:
            MappingFeatureVector: The new vector.
        """
        return cls({category: values})

    def value(self, feature_key: str) -> float:
        """Return the value for a namespaced feature key.

        Args:
            feature_key (str): Key of the form `"<category>~<subkey>"`.

        Returns:
            float: The stored value, or `0.0` for an unknown sub-key.

        Raises:
            InvalidFeatureError: If the key is malformed or its category is not declared.
        """
        try:
            category, subkey = parse_feature_key(feature_key)
        except InvalidFeatureError as exc:
            raise InvalidFeatureError(feature_key, self._features.keys()) from exc
        if category not in self._features:
            raise InvalidFeatureError(feature_key, self._features.keys())
        return self._features[category].get(subkey, 0.0)

    def categories(self) -> frozenset[str]:
        """Return the categories this vector declares."""
        return frozenset(self._features)

    def feature_keys(self) -> frozenset[str]:
        """Return every namespaced key with a stored value."""
        return frozenset(
            join_feature_key(category, subkey) for category, values in self._features.items() for subkey in values
        )

    def propose_split(self, other: FeatureVector) -> Split:
        """Split on the feature whose values differ the most between the two vectors.

        Only categories declared by both vectors are compared. Ties keep the
        first key in sorted order. The threshold is the midpoint of the two
        values, nudged to the larger value when float rounding would place it
        on the smaller one, so the vectors always land on opposite branches.

        Args:
            other (FeatureVector): The vector to separate from.

        Returns:
            Split: The separating split.

        Raises:
            TypeError: If `other` is not a MappingFeatureVector.
            NoSeparatingFeatureError: If no shared feature has a positive difference.
        """
        if not isinstance(other, MappingFeatureVector):
            raise TypeError(f"Cannot split against {type(other).__name__}, expected MappingFeatureVector")

        shared = self.categories() & other.categories()
        candidate_keys = sorted(
            key for key in self.feature_keys() | other.feature_keys() if parse_feature_key(key)[0] in shared
        )

        best_key: str | None = None
        highest_diff = 0.0
        for key in candidate_keys:
            diff = abs(self.value(key) - other.value(key))
            if diff > highest_diff:
                best_key = key
                highest_diff = diff

        if best_key is None:
            raise NoSeparatingFeatureError(
                "No feature separates the two items; they are identical on every shared feature",
                compared_keys=candidate_keys,
            )

        mine, theirs = self.value(best_key), other.value(best_key)
        threshold = midpoint(mine, theirs)
        if threshold <= min(mine, theirs):
            threshold = max(mine, theirs)
        return Split(feature=best_key, threshold=threshold)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MappingFeatureVector):
            return NotImplemented
        return self._features == other._features

    def __hash__(self) -> int:
        return hash(frozenset((category, frozenset(values.items())) for category, values in self._features.items()))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._features!r})"
