"""Lazily recomputed slice vector bound to a time tree."""

import logging
from typing import Iterator, List, Optional, Tuple

from treeslicer.config import SliceConfig
from treeslicer.strategies import compute_slices, resolve_dimension
from treeslicer.summary import TreeSummary, summarize_tree
from treeslicer.time_tree import TimeTree

logger = logging.getLogger(__name__)


class TreeSlicer:
    """
    Breakpoint heights along a tree, from the present back to a stop criterion.

    The vector is computed once on construction and then recomputed on the
    first read after the tree announces a change. Every change notification
    invalidates the vector, whether or not it touched a height that matters
    for the slices. Reads never see a vector older than the last change.

    The dimension is resolved once, at construction. For date slices it
    depends on the tree's anchor date at that moment and stays fixed afterwards.

    Not thread-safe: callers sharing a slicer across threads must serialise
    reads and tree mutations themselves.
    """

    def __init__(self, tree: TimeTree, config: SliceConfig):
        self.tree = tree
        self.config = config

        summary = summarize_tree(tree)
        self._dimension: int = resolve_dimension(config, summary)
        self._summary: TreeSummary = summary
        self._values: Tuple[float, ...] = ()
        self._stale = True
        logger.debug(
            f"Slicing with {type(config).__name__}, dimension {self._dimension}"
        )

        self._recompute()
        # The first read recomputes again
        self._stale = True
        self.tree.subscribe(self._on_tree_changed)

    # ------------------------------------------------------------------------
    # cache state
    # ------------------------------------------------------------------------

    @property
    def is_stale(self) -> bool:
        return self._stale

    def invalidate(self) -> None:
        """Mark the vector stale; the next read recomputes it."""
        self._stale = True

    def _on_tree_changed(self, tree: TimeTree) -> None:
        self.invalidate()

    def _recompute(self) -> None:
        summary = summarize_tree(self.tree)
        values = compute_slices(self.config, self.tree, summary, self._dimension)
        self._summary = summary
        self._values = values
        self._stale = False
        logger.debug(f"Recomputed {len(values)} slices: {values}")

    def _ensure_fresh(self) -> None:
        if self._stale:
            self._recompute()

    def close(self) -> None:
        """Stop listening to the tree. A collected slicer stops listening on its own."""
        self.tree.unsubscribe(self._on_tree_changed)

    # ------------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------------

    def get_dimension(self) -> int:
        return self._dimension

    def get_value(self, index: int = 0) -> float:
        self._ensure_fresh()
        return self._values[index]

    def get_values(self) -> List[float]:
        self._ensure_fresh()
        return list(self._values)

    @property
    def summary(self) -> TreeSummary:
        """Summary of the tree as of the latest computation."""
        self._ensure_fresh()
        return self._summary

    def height_to_date(self, height: float) -> float:
        return self.summary.height_to_date(height)

    def date_to_height(self, date: float) -> float:
        return self.summary.date_to_height(date)

    def get_dates(self) -> Optional[List[float]]:
        """Slices as calendar dates, or None when the tree carries no dates."""
        summary = self.summary
        if summary.anchor_date is None:
            return None
        return [summary.height_to_date(value) for value in self._values]

    def __len__(self) -> int:
        return self._dimension

    def __getitem__(self, index: int) -> float:
        return self.get_value(index)

    def __iter__(self) -> Iterator[float]:
        return iter(self.get_values())

    def __repr__(self) -> str:
        state = "stale" if self._stale else "fresh"
        return f"TreeSlicer({type(self.config).__name__}, dimension={self._dimension}, {state})"
