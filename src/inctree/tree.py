"""Incrementally built classification tree.

The tree is grown one labelled item at a time. An item descends through the
existing splits until it reaches a leaf. If the leaf already carries the
item's label the item is discarded; otherwise the leaf is replaced by a split
that separates the leaf's representative item from the new one. Insertion
order therefore shapes the tree.

Trees can be written to and read from a line-oriented pre-order text format:

    Feature: wordPercent~free~0.015
    ham
    spam

Nodes are immutable, so a built tree can be queried from several threads.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Iterator, Sequence
from itertools import zip_longest
from typing import TextIO

from loguru import logger

from inctree._nodes import Internal, Leaf, Node
from inctree.config import get_settings
from inctree.exceptions import TreeFormatError, UnclassifiableItemError
from inctree.features import FeatureVector
from inctree.logging import SPLIT_LEVEL
from inctree.split import SPLIT_LINE_PREFIX, Split

__all__ = ["ClassificationTree"]


class ClassificationTree:
    """Binary decision tree mapping feature vectors to string labels.

    Build one with `from_examples` or `load`/`loads`; the constructor is not
    part of the public interface.

    Examples:
        >>> from inctree.vectors import MappingFeatureVector as Vec
        >>> tree = ClassificationTree.from_examples(
        ...     [Vec.from_flat({"v": 0.0}, category="x"), Vec.from_flat({"v": 1.0}, category="x")],
        ...     ["ham", "spam"],
        ... )
        >>> tree.classify(Vec.from_flat({"v": 0.2}, category="x"))
        'ham'
        >>> print(tree.dumps(), end="")
        Feature: x~v~0.5
        ham
        spam
    """

    __slots__ = ("_root",)

    def __init__(self, root: Node) -> None:
        self._root = root

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_examples(cls, items: Sequence[FeatureVector], labels: Sequence[str]) -> ClassificationTree:
        """Build a tree by inserting labelled items in order.

        When an item lands on a leaf with a different label, the leaf's own
        representative item is the anchor: `representative.propose_split(item)`
        decides the new split, the new item goes left if the split evaluates
        `True` for it, and the old leaf takes the other side.

        Args:
            items (Sequence[FeatureVector]): Items to insert.
            labels (Sequence[str]): Labels parallel to `items`.

        Returns:
            ClassificationTree: The built tree.

        Raises:
            ValueError: If either argument is None, lengths differ, inputs are
                empty, an item is None, or a label cannot be serialized.
            NoSeparatingFeatureError: If two conflicting items cannot be separated.
            InvalidFeatureError: If an item lacks a category used by a split
                already on its path.
        """
        items, labels = _validate_examples(items, labels)
        for label in labels:
            _validate_label(label)

        root: Node | None = None
        for index, (item, label) in enumerate(zip(items, labels, strict=True)):
            root = Leaf(label, item) if root is None else _insert(root, item, label, index=index)

        tree = cls(root)  # type: ignore[arg-type]  # non-empty input guarantees a root
        logger.info(
            "Classification tree built",
            items=len(items),
            leaves=tree.leaf_count,
            depth=tree.depth,
        )
        return tree

    @classmethod
    def load(cls, source: TextIO | Iterable[str]) -> ClassificationTree:
        """Read a tree from pre-order serialized lines.

        Args:
            source (TextIO | Iterable[str]): Open text stream or any iterable of lines.

        Returns:
            ClassificationTree: The parsed tree. Leaves have no representative items.

        Raises:
            ValueError: If `source` is None or a plain string (use `loads`).
            TreeFormatError: If the text is empty, truncated, has a malformed
                split line, or has content after a complete tree.
        """
        if source is None:
            raise ValueError("Source cannot be None.")
        if isinstance(source, str):
            raise ValueError("Source must be a stream or an iterable of lines; use `loads` for a string.")
        try:
            root = _parse(source)
        except TreeFormatError as exc:
            logger.warning("Classification tree load failed", reason=str(exc), line_number=exc.line_number)
            raise
        tree = cls(root)
        logger.info("Classification tree loaded", leaves=tree.leaf_count, depth=tree.depth)
        return tree

    @classmethod
    def loads(cls, text: str) -> ClassificationTree:
        """Read a tree from a serialized string; see `load`."""
        if text is None:
            raise ValueError("Text cannot be None.")
        return cls.load(io.StringIO(text))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def can_classify(self, item: FeatureVector) -> bool:
        """Return whether every split on the item's path uses a category it declares.

        Args:
            item (FeatureVector): The item to check.

        Returns:
            bool: False as soon as a split's category is missing from `item.categories()`.

        Raises:
            ValueError: If `item` is None.
        """
        if item is None:
            raise ValueError("Input cannot be None.")
        return _missing_category(self._root, item) is None

    def classify(self, item: FeatureVector) -> str:
        """Return the label of the leaf the item reaches.

        Args:
            item (FeatureVector): The item to classify.

        Returns:
            str: The predicted label.

        Raises:
            ValueError: If `item` is None.
            UnclassifiableItemError: If the item lacks a category used on its path.
        """
        if item is None:
            raise ValueError("Input cannot be None.")
        missing = _missing_category(self._root, item)
        if missing is not None:
            raise UnclassifiableItemError(
                f"Input cannot be classified by this tree: missing feature category {missing!r}",
                missing_category=missing,
            )
        node = self._root
        while isinstance(node, Internal):
            node = node.left if node.split.evaluate(item) else node.right
        return node.label

    def accuracy(self, items: Sequence[FeatureVector], labels: Sequence[str]) -> dict[str, float]:
        """Compute the fraction of items classified correctly, per expected label.

        Items the tree cannot classify count as misclassified.

        Args:
            items (Sequence[FeatureVector]): Items to classify.
            labels (Sequence[str]): Expected labels parallel to `items`.

        Returns:
            dict[str, float]: Mapping of each expected label to its accuracy in `[0, 1]`.

        Raises:
            ValueError: If either argument is None, lengths differ, inputs are
                empty, or an item is None.
        """
        items, labels = _validate_examples(items, labels)
        totals: dict[str, int] = {}
        correct: dict[str, int] = {}
        for item, label in zip(items, labels, strict=True):
            totals[label] = totals.get(label, 0) + 1
            if self.can_classify(item) and self.classify(item) == label:
                correct[label] = correct.get(label, 0) + 1
        return {label: correct.get(label, 0) / total for label, total in totals.items()}

    @property
    def depth(self) -> int:
        """Number of edges on the longest root-to-leaf path."""
        deepest = 0
        stack: list[tuple[Node, int]] = [(self._root, 0)]
        while stack:
            node, level = stack.pop()
            match node:
                case Leaf():
                    deepest = max(deepest, level)
                case Internal(left=left, right=right):
                    stack.append((right, level + 1))
                    stack.append((left, level + 1))
        return deepest

    @property
    def leaf_count(self) -> int:
        """Number of leaves in the tree."""
        return sum(1 for node in _preorder(self._root) if isinstance(node, Leaf))

    @property
    def labels(self) -> frozenset[str]:
        """Distinct labels carried by the leaves."""
        return frozenset(node.label for node in _preorder(self._root) if isinstance(node, Leaf))

    def splits(self) -> list[Split]:
        """Return every split in pre-order."""
        return [node.split for node in _preorder(self._root) if isinstance(node, Internal)]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def save(self, sink: TextIO, *, threshold_format: str | None = None) -> None:
        """Write the tree in pre-order, one node per line.

        Args:
            sink (TextIO): Writable text stream.
            threshold_format (str | None): Format spec for thresholds, e.g. `".6f"`.
                Defaults to `TreeSettings.threshold_format`, then to `repr`.

        Raises:
            ValueError: If `sink` is None.
        """
        if sink is None:
            raise ValueError("Sink cannot be None.")
        threshold_format = threshold_format or get_settings().threshold_format
        lines = 0
        for node in _preorder(self._root):
            match node:
                case Leaf(label=label):
                    sink.write(f"{label}\n")
                case Internal(split=split):
                    sink.write(f"{split.to_line(threshold_format)}\n")
            lines += 1
        logger.debug("Classification tree saved", lines=lines, threshold_format=threshold_format)

    def dumps(self, *, threshold_format: str | None = None) -> str:
        """Return the serialized tree as a string; see `save`."""
        buffer = io.StringIO()
        self.save(buffer, threshold_format=threshold_format)
        return buffer.getvalue()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassificationTree):
            return NotImplemented
        return all(
            _same_node(mine, theirs)
            for mine, theirs in zip_longest(_preorder(self._root), _preorder(other._root))
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(leaves={self.leaf_count}, depth={self.depth})"


# ---------------------------------------------------------------------------
# Private helpers -- validation
# ---------------------------------------------------------------------------


def _validate_examples(
    items: Sequence[FeatureVector] | None,
    labels: Sequence[str] | None,
) -> tuple[list[FeatureVector], list[str]]:
    """Check parallel item/label inputs and materialise them as lists.

    Raises:
        ValueError: If either is None, lengths differ, they are empty, or an item is None.
    """
    if items is None or labels is None:
        raise ValueError("Data and labels cannot be None.")
    items, labels = list(items), list(labels)
    if len(items) != len(labels):
        raise ValueError(f"The size of data ({len(items)}) and labels ({len(labels)}) must be the same.")
    if not items:
        raise ValueError("Data and labels must not be empty.")
    if any(item is None for item in items):
        raise ValueError("Data must not contain None items.")
    return items, labels


def _validate_label(label: str) -> None:
    """Reject labels that would not survive a save/load round trip."""
    if not isinstance(label, str):
        raise ValueError(f"Labels must be strings, got {type(label).__name__}.")
    if "\n" in label or "\r" in label:
        raise ValueError(f"Label {label!r} must not contain line breaks.")
    if label.startswith(SPLIT_LINE_PREFIX):
        raise ValueError(f"Label {label!r} must not start with {SPLIT_LINE_PREFIX!r}.")


# ---------------------------------------------------------------------------
# Private helpers -- traversal and insertion
# ---------------------------------------------------------------------------


def _preorder(root: Node) -> Iterator[Node]:
    stack: list[Node] = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, Internal):
            stack.append(node.right)
            stack.append(node.left)


def _same_node(mine: Node | None, theirs: Node | None) -> bool:
    """Compare two nodes by kind and payload, ignoring children and representatives."""
    match mine, theirs:
        case Leaf(label=label), Leaf(label=other_label):
            return label == other_label
        case Internal(split=split), Internal(split=other_split):
            return split == other_split
    return False


def _missing_category(root: Node, item: FeatureVector) -> str | None:
    """Walk the item's path and return the first split category it lacks, if any."""
    categories = item.categories()
    node = root
    while isinstance(node, Internal):
        if node.split.category not in categories:
            return node.split.category
        node = node.left if node.split.evaluate(item) else node.right
    return None


def _insert(root: Node, item: FeatureVector, label: str, *, index: int) -> Node:
    """Insert one labelled item and return the (possibly new) root.

    Nodes on the descent path are rebuilt; untouched subtrees are shared.
    """
    path: list[tuple[Internal, bool]] = []
    node = root
    while isinstance(node, Internal):
        went_left = node.split.evaluate(item)
        path.append((node, went_left))
        node = node.left if went_left else node.right

    if node.label == label:
        logger.debug("Item discarded, leaf already carries its label", index=index, label=label)
        return root

    anchor = node.representative
    if anchor is None:
        raise ValueError(f"Leaf {node.label!r} has no representative item to split against.")
    split = anchor.propose_split(item)
    new_leaf = Leaf(label, item)
    replacement: Node = (
        Internal(split, left=new_leaf, right=node) if split.evaluate(item) else Internal(split, left=node, right=new_leaf)
    )
    logger.log(
        SPLIT_LEVEL,
        "Leaf split",
        index=index,
        feature=split.feature,
        threshold=split.threshold,
        existing_label=node.label,
        new_label=label,
        depth=len(path),
    )

    for parent, went_left in reversed(path):
        replacement = (
            Internal(parent.split, left=replacement, right=parent.right)
            if went_left
            else Internal(parent.split, left=parent.left, right=replacement)
        )
    return replacement


# ---------------------------------------------------------------------------
# Private helpers -- parsing
# ---------------------------------------------------------------------------


class _PendingInternal:
    """An internal node whose children are still being read."""

    __slots__ = ("children", "split")

    def __init__(self, split: Split) -> None:
        self.split = split
        self.children: list[Node] = []


def _parse(lines: Iterable[str]) -> Node:
    """Parse pre-order serialized lines into a node tree without recursion."""
    root: Node | None = None
    stack: list[_PendingInternal] = []
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip("\r\n")
        if root is not None:
            if line.strip():
                raise TreeFormatError("Unexpected content after a complete tree", line_number=line_number, line=line)
            continue
        if line.startswith(SPLIT_LINE_PREFIX):
            stack.append(_PendingInternal(Split.from_line(line, line_number=line_number)))
            continue

        node: Node = Leaf(line)
        while stack:
            pending = stack[-1]
            pending.children.append(node)
            if len(pending.children) < 2:
                break
            stack.pop()
            node = Internal(pending.split, left=pending.children[0], right=pending.children[1])
        else:
            root = node

    if root is None:
        if stack:
            raise TreeFormatError(f"Unexpected end of input: {len(stack)} split(s) still missing children")
        raise TreeFormatError("The tree is empty after reading the input")
    return root
