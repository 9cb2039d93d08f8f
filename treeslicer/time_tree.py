"""
Time-calibrated view on a Node tree.

Heights are measured backwards from the most recent tip: the deepest leaf
(largest root-to-tip distance) sits at height 0 and the root at the tree
height. Leaf calendar dates come from a DateTrait or from leaf metadata.
"""

from __future__ import annotations

import inspect
import logging
import weakref
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from treeslicer.dates import DateTrait
from treeslicer.exceptions import ConfigError
from treeslicer.tree import Node

logger = logging.getLogger(__name__)

TreeListener = Callable[["TimeTree"], None]

# Heights within this fraction of the tree height are tips at the present
HEIGHT_TOLERANCE = 1e-12


def _listener_ref(listener: TreeListener) -> Callable[[], Optional[TreeListener]]:
    # Bound methods are held weakly, other callables strongly
    if inspect.ismethod(listener):
        return weakref.WeakMethod(listener)
    return lambda: listener


@dataclass(frozen=True)
class NodeTime:
    """Height and (for dated leaves) calendar date of one tree node."""

    name: str
    height: float
    is_leaf: bool
    date: Optional[float] = None


class TimedTree(Protocol):
    """What the summary and the slicing strategies read from a tree."""

    def root_height(self) -> float: ...

    def nodes(self) -> Sequence[NodeTime]: ...


class TimeTree:
    """
    Wrap a rooted Node tree and expose node heights and leaf dates.

    The wrapper listens to the tree's change notifications, drops its cached
    heights and forwards the notification to its own subscribers.
    """

    def __init__(
        self,
        root: Node,
        date_trait: Optional[DateTrait] = None,
        date_key: str = "date",
    ):
        if root.parent is not None:
            raise ValueError("TimeTree needs the root node of a tree")
        self.root = root
        self.date_trait = date_trait
        self.date_key = date_key
        self._heights: Optional[Dict[int, float]] = None
        self._root_height: Optional[float] = None
        self._subscribers: List[Callable[[], Optional[TreeListener]]] = []
        self.root.add_change_listener(self._on_tree_changed)

    # ------------------------------------------------------------------------
    # heights
    # ------------------------------------------------------------------------

    def _compute_heights(self) -> None:
        depths: Dict[int, float] = {}
        for node in self.root.traverse():
            # Pre-order: the parent depth is always known already
            if node.parent is None:
                depths[id(node)] = 0.0
            else:
                depths[id(node)] = depths[id(node.parent)] + (node.length or 0.0)

        tree_height = max(depths[id(leaf)] for leaf in self.root.get_leaves())
        tolerance = HEIGHT_TOLERANCE * max(tree_height, 1.0)
        self._heights = {}
        for key, depth in depths.items():
            height = tree_height - depth
            self._heights[key] = 0.0 if height <= tolerance else height
        self._root_height = self._heights[id(self.root)]
        logger.debug(
            f"Heights recomputed for {len(depths)} nodes, root height {self._root_height:.6f}"
        )

    def height(self, node: Node) -> float:
        if self._heights is None:
            self._compute_heights()
        return self._heights[id(node)]  # type: ignore[index]

    def root_height(self) -> float:
        if self._root_height is None:
            self._compute_heights()
        return self._root_height  # type: ignore[return-value]

    # ------------------------------------------------------------------------
    # dates
    # ------------------------------------------------------------------------

    def leaf_date(self, node: Node) -> Optional[float]:
        """Calendar date of a leaf by label lookup, or None when undated."""
        if self.date_trait is not None:
            return self.date_trait.get(node.name)
        value = node.values.get(self.date_key)
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(
                f"Leaf '{node.name}' has a non-numeric '{self.date_key}' annotation: {value!r}"
            ) from None

    def is_dated(self) -> bool:
        return any(self.leaf_date(leaf) is not None for leaf in self.root.get_leaves())

    # ------------------------------------------------------------------------
    # node records
    # ------------------------------------------------------------------------

    def nodes(self) -> List[NodeTime]:
        return [
            NodeTime(
                name=node.name,
                height=self.height(node),
                is_leaf=node.is_leaf(),
                date=self.leaf_date(node) if node.is_leaf() else None,
            )
            for node in self.root.traverse()
        ]

    def leaves(self) -> List[NodeTime]:
        return [record for record in self.nodes() if record.is_leaf]

    def node_count(self) -> int:
        return len(self.root.traverse())

    # ------------------------------------------------------------------------
    # change notification
    # ------------------------------------------------------------------------

    def _live_subscribers(self) -> List[TreeListener]:
        live = []
        for ref in list(self._subscribers):
            listener = ref()
            if listener is None:
                self._subscribers.remove(ref)
            else:
                live.append(listener)
        return live

    def subscribe(self, listener: TreeListener) -> None:
        """
        Call ``listener(tree)`` after every change to the tree.

        Bound methods are held through weak references: a subscriber object
        that is garbage collected drops out without an explicit unsubscribe.
        Plain functions and other callables are held strongly.
        """
        if listener not in self._live_subscribers():
            self._subscribers.append(_listener_ref(listener))

    def unsubscribe(self, listener: TreeListener) -> None:
        for ref in list(self._subscribers):
            if ref() == listener:
                self._subscribers.remove(ref)

    def subscriber_count(self) -> int:
        return len(self._live_subscribers())

    def notify_changed(self) -> None:
        """Announce a change made without going through the Node API."""
        self.root.invalidate_caches(propagate_up=False, propagate_down=True)

    def _on_tree_changed(self, root: Node) -> None:
        self._heights = None
        self._root_height = None
        for listener in self._live_subscribers():
            listener(self)

    def __repr__(self) -> str:
        return f"TimeTree({len(self.root.get_leaves())} leaves)"
