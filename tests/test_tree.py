"""Tests for ClassificationTree construction and queries."""

from __future__ import annotations

import pytest
from pytest_check import check

from inctree.exceptions import InvalidFeatureError, NoSeparatingFeatureError, UnclassifiableItemError
from inctree.features import FeatureVector
from inctree.split import Split
from inctree.tree import ClassificationTree
from inctree.vectors import MappingFeatureVector


def _x(value: float) -> MappingFeatureVector:
    """Single-feature item in category `x`."""
    return MappingFeatureVector({"x": {"v": value}})


class RecordingVector(MappingFeatureVector):
    """Mapping vector that records which item anchored each split proposal."""

    __slots__ = ("calls", "name")

    def __init__(self, name: str, value: float, calls: list[tuple[str, str]]) -> None:
        super().__init__({"x": {"v": value}})
        self.name = name
        self.calls = calls

    def propose_split(self, other: FeatureVector) -> Split:
        self.calls.append((self.name, other.name))  # type: ignore[attr-defined]
        return super().propose_split(other)


@pytest.fixture
def band_tree() -> ClassificationTree:
    """Tree over three bands of `x~v`: low (<2), mid (2 to 7), high (>=7).

    Insertion order 0, 9, 4, 5, 1, 8 gives the splits 4.5, then 2.0 on the
    left and 7.0 on the right; items 1 and 8 are discarded.

    Returns:
        ClassificationTree: The built tree.
    """
    values = [0.0, 9.0, 4.0, 5.0, 1.0, 8.0]
    labels = ["low", "high", "mid", "mid", "low", "high"]
    return ClassificationTree.from_examples([_x(v) for v in values], labels)


class TestConstructionValidation:
    """Tests for argument validation in from_examples."""

    @pytest.mark.parametrize(
        ("items", "labels"),
        [(None, ["a"]), ([_x(0.0)], None), (None, None)],
        ids=["items-none", "labels-none", "both-none"],
    )
    def test_none_inputs_raise_value_error(
        self, items: list[FeatureVector] | None, labels: list[str] | None
    ) -> None:
        """Missing inputs are rejected.

        Args:
            items (list[FeatureVector] | None): Items argument.
            labels (list[str] | None): Labels argument.
        """
        with pytest.raises(ValueError, match="cannot be None"):
            ClassificationTree.from_examples(items, labels)  # type: ignore[arg-type]

    def test_length_mismatch_raises_value_error(self) -> None:
        """Items and labels must be parallel."""
        with pytest.raises(ValueError, match="must be the same"):
            ClassificationTree.from_examples([_x(0.0), _x(1.0)], ["ham"])

    def test_empty_inputs_raise_value_error(self) -> None:
        """A tree cannot be built from nothing."""
        with pytest.raises(ValueError, match="must not be empty"):
            ClassificationTree.from_examples([], [])

    def test_none_item_raises_value_error(self) -> None:
        """Every item must be present."""
        with pytest.raises(ValueError, match="None items"):
            ClassificationTree.from_examples([_x(0.0), None], ["ham", "spam"])  # type: ignore[list-item]

    @pytest.mark.parametrize(
        "label",
        [3, "two\nlines", "carriage\rreturn", "Feature: fake"],
        ids=["not-a-string", "newline", "carriage-return", "split-prefix"],
    )
    def test_unsaveable_labels_raise_value_error(self, label: object) -> None:
        """Labels that could not be written as a single leaf line are rejected.

        Args:
            label (object): An invalid label.
        """
        with pytest.raises(ValueError):
            ClassificationTree.from_examples([_x(0.0)], [label])  # type: ignore[list-item]

    def test_accepts_any_sequence(self) -> None:
        """Tuples work as well as lists."""
        tree = ClassificationTree.from_examples((_x(0.0), _x(1.0)), ("ham", "spam"))
        assert tree.leaf_count == 2


class TestConstruction:
    """Tests for the incremental insertion algorithm."""

    def test_single_label_builds_single_leaf(self) -> None:
        """When every label matches, the root stays a leaf and classifies everything to it."""
        # Arrange
        items = [_x(0.0), _x(5.0), _x(-3.0)]

        # Act
        tree = ClassificationTree.from_examples(items, ["ham", "ham", "ham"])

        # Assert
        with check:
            assert tree.leaf_count == 1
        with check:
            assert tree.depth == 0
        with check:
            assert tree.splits() == []
        with check:
            assert tree.classify(_x(100.0)) == "ham"

    def test_two_labels_split_at_midpoint(self) -> None:
        """Items x=0 (ham) and x=1 (spam) give a root split on x at 0.5."""
        # Act
        tree = ClassificationTree.from_examples([_x(0.0), _x(1.0)], ["ham", "spam"])

        # Assert
        with check:
            assert tree.splits() == [Split(feature="x~v", threshold=0.5)]
        with check:
            assert tree.classify(_x(0.2)) == "ham"
        with check:
            assert tree.classify(_x(0.5)) == "spam", "Ties go to the right branch"
        with check:
            assert tree.classify(_x(1.0)) == "spam"

    def test_new_item_goes_left_when_split_evaluates_true(self) -> None:
        """The new item takes the left child when it is below the threshold."""
        # Act
        tree = ClassificationTree.from_examples([_x(1.0), _x(0.0)], ["spam", "ham"])

        # Assert
        with check:
            assert tree.dumps() == "Feature: x~v~0.5\nham\nspam\n"
        with check:
            assert tree.classify(_x(0.2)) == "ham"

    def test_matching_label_in_leaf_region_leaves_tree_unchanged(self) -> None:
        """A third item agreeing with the leaf it reaches does not change the shape."""
        # Arrange
        before = ClassificationTree.from_examples([_x(0.0), _x(1.0)], ["ham", "spam"])

        # Act
        after = ClassificationTree.from_examples([_x(0.0), _x(1.0), _x(0.3)], ["ham", "spam", "ham"])

        # Assert
        with check:
            assert after == before
        with check:
            assert after.dumps() == before.dumps()

    def test_discarded_item_does_not_replace_representative(self) -> None:
        """The leaf keeps its first item, so later splits are computed against it."""
        # Act - 0.4 is discarded; the split is then computed against 0.0, not 0.4
        tree = ClassificationTree.from_examples([_x(0.0), _x(0.4), _x(1.0)], ["ham", "ham", "spam"])

        # Assert
        assert tree.splits() == [Split(feature="x~v", threshold=0.5)]

    def test_discarded_item_can_end_up_on_other_side(self) -> None:
        """Construction is order dependent: a discarded item is not consulted by later splits."""
        # Arrange
        items = [_x(0.0), _x(0.9), _x(1.0)]
        labels = ["ham", "ham", "spam"]

        # Act
        tree = ClassificationTree.from_examples(items, labels)

        # Assert
        with check:
            assert tree.classify(items[1]) == "spam"
        with check:
            assert tree.accuracy(items, labels) == {"ham": 0.5, "spam": 1.0}

    def test_conflict_deeper_in_tree_splits_only_that_leaf(self) -> None:
        """A conflict on the right leaf adds a split below it and keeps the root split."""
        # Act - 0.5 reaches the spam leaf (tie goes right) and splits it at midpoint(1.0, 0.5)
        tree = ClassificationTree.from_examples([_x(0.0), _x(1.0), _x(0.5)], ["ham", "spam", "ham"])

        # Assert
        with check:
            assert tree.splits() == [
                Split(feature="x~v", threshold=0.5),
                Split(feature="x~v", threshold=0.75),
            ]
        with check:
            assert tree.dumps() == "Feature: x~v~0.5\nham\nFeature: x~v~0.75\nham\nspam\n"
        with check:
            assert tree.depth == 2

    def test_band_tree_shape_and_training_labels(self, band_tree: ClassificationTree) -> None:
        """Every training item of the band data set classifies back to its own label.

        Args:
            band_tree (ClassificationTree): Fixture tree over three bands.
        """
        # Assert - shape
        with check:
            assert [split.threshold for split in band_tree.splits()] == [4.5, 2.0, 7.0]
        with check:
            assert band_tree.leaf_count == 4
        with check:
            assert band_tree.depth == 2
        with check:
            assert band_tree.labels == frozenset({"low", "mid", "high"})

        # Assert - training labels
        for value, label in [(0.0, "low"), (9.0, "high"), (4.0, "mid"), (5.0, "mid"), (1.0, "low"), (8.0, "high")]:
            with check:
                assert band_tree.classify(_x(value)) == label

    def test_two_label_data_classifies_all_training_items(self) -> None:
        """Interleaved insertion of two well-separated classes reproduces every training label."""
        # Arrange
        order = [0, 9, 1, 8, 2, 7, 3, 6, 4, 5]
        items = [_x(float(v)) for v in order]
        labels = ["ham" if v < 5 else "spam" for v in order]

        # Act
        tree = ClassificationTree.from_examples(items, labels)

        # Assert
        with check:
            assert tree.splits() == [Split(feature="x~v", threshold=4.5)]
        with check:
            assert all(tree.classify(item) == label for item, label in zip(items, labels, strict=True))

    def test_leaf_representatives_always_classify_to_their_label(self) -> None:
        """Items that created leaves are separated from every item they were split against."""
        # Arrange
        values = [0.3, 7.1, 2.2, 5.5, 9.9, 1.4, 6.6, 3.8]
        labels = ["a", "b", "c", "a", "b", "c", "a", "b"]
        items = [_x(v) for v in values]

        # Act
        tree = ClassificationTree.from_examples(items, labels)

        # Assert - first item of each conflict always keeps its own label
        with check:
            assert tree.classify(items[0]) == "a"
        with check:
            assert tree.classify(items[1]) == "b"
        with check:
            assert tree.classify(items[-1]) == "b", "The last inserted item always keeps its label"

    def test_deep_tree_does_not_hit_recursion_limit(self) -> None:
        """Alternating labels on increasing values build a chain deeper than the recursion limit."""
        # Arrange
        count = 1200
        items = [_x(float(v)) for v in range(count)]
        labels = ["even" if v % 2 == 0 else "odd" for v in range(count)]

        # Act
        tree = ClassificationTree.from_examples(items, labels)
        reloaded = ClassificationTree.loads(tree.dumps())

        # Assert
        with check:
            assert tree.depth == count - 1
        with check:
            assert tree.classify(_x(float(count - 1))) == "odd"
        with check:
            assert tree.classify(_x(0.0)) == "even"
        with check:
            assert reloaded == tree

    def test_training_item_missing_split_category_raises(self) -> None:
        """A later item without the category of a split on its path cannot be inserted."""
        # Arrange
        items = [_x(0.0), _x(1.0), MappingFeatureVector({"y": {"w": 1.0}})]

        # Act
        with pytest.raises(InvalidFeatureError) as exc_info:
            ClassificationTree.from_examples(items, ["ham", "spam", "ham"])

        # Assert
        with check:
            assert exc_info.value.feature_key == "x~v"
        with check:
            assert exc_info.value.categories == frozenset({"y"})

    def test_extreme_values_of_opposite_sign_build_a_tree(self) -> None:
        """Values whose difference overflows a float are still separated at a finite threshold."""
        # Act
        tree = ClassificationTree.from_examples([_x(-1e308), _x(1e308)], ["ham", "spam"])

        # Assert
        with check:
            assert tree.splits() == [Split(feature="x~v", threshold=0.0)]
        with check:
            assert tree.classify(_x(-1e308)) == "ham"
        with check:
            assert tree.classify(_x(1e308)) == "spam"

    def test_identical_items_with_conflicting_labels_raise(self) -> None:
        """Duplicate items with different labels cannot be separated."""
        with pytest.raises(NoSeparatingFeatureError):
            ClassificationTree.from_examples([_x(0.5), _x(0.5)], ["ham", "spam"])


class TestAnchorPolicy:
    """Tests pinning down which item anchors a split proposal."""

    def test_first_conflict_does_not_compare_item_with_itself(self) -> None:
        """The first conflicting insertion compares the root leaf's item with the new item."""
        # Arrange
        calls: list[tuple[str, str]] = []
        items = [RecordingVector("a", 0.0, calls), RecordingVector("b", 1.0, calls)]

        # Act
        ClassificationTree.from_examples(items, ["ham", "spam"])

        # Assert
        assert calls == [("a", "b")]

    def test_anchor_is_representative_of_reached_leaf(self) -> None:
        """Deeper conflicts are anchored on the representative of the leaf being split."""
        # Arrange
        calls: list[tuple[str, str]] = []
        items = [
            RecordingVector("a", 0.0, calls),
            RecordingVector("b", 1.0, calls),
            RecordingVector("c", 0.5, calls),
            RecordingVector("d", 0.2, calls),
        ]

        # Act - c reaches b's leaf; d reaches a's leaf
        ClassificationTree.from_examples(items, ["ham", "spam", "ham", "spam"])

        # Assert
        assert calls == [("a", "b"), ("b", "c"), ("a", "d")]


class TestQueries:
    """Tests for classify, can_classify, accuracy and tree metrics."""

    @pytest.fixture
    def two_category_tree(self) -> ClassificationTree:
        """Tree with a root split on `x~v` and a split on `y~w` under its right branch.

        Returns:
            ClassificationTree: The built tree.
        """
        items = [
            MappingFeatureVector({"x": {"v": 0.0}, "y": {"w": 0.0}}),
            MappingFeatureVector({"x": {"v": 1.0}, "y": {"w": 0.0}}),
            MappingFeatureVector({"x": {"v": 1.0}, "y": {"w": 1.0}}),
        ]
        return ClassificationTree.from_examples(items, ["ham", "spam", "ham"])

    def test_two_category_tree_shape(self, two_category_tree: ClassificationTree) -> None:
        """The second conflict can only be separated on `y~w`.

        Args:
            two_category_tree (ClassificationTree): Fixture tree.
        """
        assert two_category_tree.splits() == [
            Split(feature="x~v", threshold=0.5),
            Split(feature="y~w", threshold=0.5),
        ]

    def test_item_missing_category_off_path_is_classifiable(self, two_category_tree: ClassificationTree) -> None:
        """Only categories on the item's own path matter.

        Args:
            two_category_tree (ClassificationTree): Fixture tree.
        """
        # Arrange
        item = MappingFeatureVector({"x": {"v": 0.2}})

        # Act / Assert
        with check:
            assert two_category_tree.can_classify(item) is True
        with check:
            assert two_category_tree.classify(item) == "ham"

    def test_item_missing_category_on_path_is_not_classifiable(self, two_category_tree: ClassificationTree) -> None:
        """An item lacking `y` cannot pass the split under the right branch.

        Args:
            two_category_tree (ClassificationTree): Fixture tree.
        """
        # Arrange
        item = MappingFeatureVector({"x": {"v": 0.9}})

        # Act / Assert
        with check:
            assert two_category_tree.can_classify(item) is False
        with pytest.raises(UnclassifiableItemError) as exc_info:
            two_category_tree.classify(item)
        with check:
            assert exc_info.value.missing_category == "y"
        with check:
            assert isinstance(exc_info.value, ValueError)

    def test_item_missing_root_category_is_not_classifiable(self, two_category_tree: ClassificationTree) -> None:
        """An item without the root split's category fails immediately.

        Args:
            two_category_tree (ClassificationTree): Fixture tree.
        """
        item = MappingFeatureVector({"y": {"w": 0.9}})
        with check:
            assert two_category_tree.can_classify(item) is False
        with pytest.raises(UnclassifiableItemError):
            two_category_tree.classify(item)

    def test_single_leaf_tree_classifies_any_item(self) -> None:
        """A leaf is always classifiable, whatever the item declares."""
        # Arrange
        tree = ClassificationTree.from_examples([_x(0.0)], ["ham"])
        item = MappingFeatureVector({"other": {"k": 1.0}})

        # Act / Assert
        with check:
            assert tree.can_classify(item) is True
        with check:
            assert tree.classify(item) == "ham"

    @pytest.mark.parametrize("method", ["can_classify", "classify"])
    def test_none_item_raises_value_error(self, method: str, band_tree: ClassificationTree) -> None:
        """Queries reject a missing item.

        Args:
            method (str): Query method name.
            band_tree (ClassificationTree): Fixture tree.
        """
        with pytest.raises(ValueError, match="cannot be None"):
            getattr(band_tree, method)(None)

    def test_accuracy_per_label(self, band_tree: ClassificationTree) -> None:
        """Accuracy is reported per expected label; unclassifiable items count as wrong.

        Args:
            band_tree (ClassificationTree): Fixture tree.
        """
        # Arrange
        items = [_x(0.5), _x(1.9), _x(3.0), _x(6.0), _x(7.5), MappingFeatureVector({"y": {"w": 0.0}})]
        labels = ["low", "mid", "mid", "high", "high", "low"]

        # Act
        result = band_tree.accuracy(items, labels)

        # Assert
        assert result == {"low": 0.5, "mid": 0.5, "high": 0.5}

    def test_accuracy_validates_inputs(self, band_tree: ClassificationTree) -> None:
        """Accuracy applies the same input checks as construction.

        Args:
            band_tree (ClassificationTree): Fixture tree.
        """
        with check.raises(ValueError):
            band_tree.accuracy([], [])
        with check.raises(ValueError):
            band_tree.accuracy([_x(0.0)], ["low", "mid"])

    def test_repr_reports_size(self, band_tree: ClassificationTree) -> None:
        """The repr summarises leaves and depth.

        Args:
            band_tree (ClassificationTree): Fixture tree.
        """
        assert repr(band_tree) == "ClassificationTree(leaves=4, depth=2)"

    def test_trees_are_unhashable(self, band_tree: ClassificationTree) -> None:
        """Trees define structural equality and are therefore not hashable.

        Args:
            band_tree (ClassificationTree): Fixture tree.
        """
        with pytest.raises(TypeError):
            hash(band_tree)
