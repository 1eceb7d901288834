"""Tree node variants. Internal to the classification tree."""

from __future__ import annotations

from dataclasses import dataclass, field

from inctree.features import FeatureVector
from inctree.split import Split


@dataclass(frozen=True, slots=True)
class Leaf:
    """Terminal node holding a label.

    Attributes:
        label (str): The label returned for items reaching this leaf.
        representative (FeatureVector | None): The item that created this leaf,
            used as the anchor when a conflicting item later lands here. `None`
            for leaves read from serialized text.
    """

    label: str
    representative: FeatureVector | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True, eq=False)
class Internal:
    """Decision node with a split and exactly two children.

    Compared by identity; trees compare structurally without recursion.

    Attributes:
        split (Split): Items evaluating `True` go left, the rest go right.
        left (Node): Subtree for items below the threshold.
        right (Node): Subtree for items at or above the threshold.
    """

    split: Split
    left: Node
    right: Node


type Node = Leaf | Internal
