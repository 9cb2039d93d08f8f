from dataclasses import dataclass
from typing import Optional

from treeslicer.exceptions import InvalidTreeError
from treeslicer.time_tree import TimedTree


@dataclass(frozen=True)
class TreeSummary:
    """Anchor times of a tree, extracted in a single traversal."""

    tmrca: float
    oldest_sample_height: float
    newest_sample_height: float
    anchor_date: Optional[float]

    def date_to_height(self, date: float) -> float:
        if self.anchor_date is None:
            raise InvalidTreeError("Tree has no anchor date; sample dates are unknown")
        return self.anchor_date - date

    def height_to_date(self, height: float) -> float:
        if self.anchor_date is None:
            raise InvalidTreeError("Tree has no anchor date; sample dates are unknown")
        return self.anchor_date - height


def summarize_tree(tree: TimedTree) -> TreeSummary:
    """
    Extract root height, oldest and newest tip heights and the anchor date.

    The anchor date is the date of the node with minimal height. Nodes tying
    on that height are resolved in favour of one that carries a date.

    O(n) for n nodes.

    Raises:
        InvalidTreeError: If the tree has no nodes or no leaves.
    """
    nodes = tree.nodes()
    if not nodes:
        raise InvalidTreeError("Tree has no nodes")

    oldest: Optional[float] = None
    newest: Optional[float] = None
    min_height = float("inf")
    anchor_date: Optional[float] = None

    for node in nodes:
        height = node.height
        if height < min_height:
            min_height = height
            anchor_date = node.date
        elif height == min_height and anchor_date is None:
            anchor_date = node.date

        if node.is_leaf:
            if oldest is None or height > oldest:
                oldest = height
            if newest is None or height < newest:
                newest = height

    if oldest is None or newest is None:
        raise InvalidTreeError("Tree has no leaves")

    return TreeSummary(
        tmrca=tree.root_height(),
        oldest_sample_height=oldest,
        newest_sample_height=newest,
        anchor_date=anchor_date,
    )
