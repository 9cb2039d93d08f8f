from __future__ import annotations
from typing import Optional, Any, Callable, Dict, List

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self


ChangeListener = Callable[["Node"], None]


class Node:
    """
    Tree node with optimized memory layout using __slots__.

    Branch lengths are measured in time units. Every mutation made through the
    node API invalidates the cached traversals of the touched nodes and their
    ancestors; once the invalidation reaches the root, the root calls its
    registered change listeners.
    """

    __slots__ = (
        "children",
        "parent",
        "name",
        "length",
        "values",
        "_traverse_cache",
        "_leaves_cache",
        "_listeners",
    )

    # Type annotations (for static analysis, not runtime)
    children: List[Self]
    parent: Optional[Self]
    name: str
    length: Optional[float]
    values: Dict[str, Any]
    _traverse_cache: Optional[List[Self]]
    _leaves_cache: Optional[List[Self]]
    _listeners: List[ChangeListener]

    def __init__(
        self,
        children: Optional[List[Self]] = None,
        name: str = "",
        length: Optional[float] = 0.0,
        values: Optional[Dict[str, Any]] = None,
    ):
        # Avoid mutable default arguments; create fresh containers
        self.children = list(children) if children is not None else []
        for child in self.children:
            child.parent = self
        self.parent = None
        self.name = name
        self.length = length
        self.values = dict(values) if values is not None else {}
        self._traverse_cache = None
        self._leaves_cache = None
        self._listeners = []

    def __repr__(self) -> str:
        return f"Node('{self.name}')"

    # ------------------------------------------------------------------------
    # traversal
    # ------------------------------------------------------------------------

    def traverse(self) -> List[Self]:
        """
        Return a list of all nodes in the subtree rooted at this node (Pre-order).
        Uses an iterative stack approach to avoid recursion depth issues.
        """
        if self._traverse_cache is not None:
            return self._traverse_cache

        nodes: List[Self] = []
        stack: List[Self] = [self]

        while stack:
            current = stack.pop()
            nodes.append(current)
            # Add children in reverse to maintain left-to-right visit order
            for child in reversed(current.children):
                stack.append(child)

        self._traverse_cache = nodes
        return nodes

    def get_leaves(self) -> List[Self]:
        """
        Return all leaf nodes in the subtree rooted at this node.
        Cached; the cache is dropped when the tree structure changes.
        """
        if self._leaves_cache is not None:
            return self._leaves_cache

        self._leaves_cache = [nd for nd in self.traverse() if not nd.children]
        return self._leaves_cache

    def is_leaf(self) -> bool:
        return len(self.children) == 0

    # ------------------------------------------------------------------------
    # mutation; every method here ends in invalidate_caches
    # ------------------------------------------------------------------------

    def append_child(self, node: Self) -> None:
        node.parent = self
        self.children.append(node)
        self.invalidate_caches(propagate_up=True)

    def replace_child(self, old_child: Self, new_child: Self) -> None:
        """Replaces an existing child node with a new one."""
        if old_child not in self.children:
            raise ValueError("old_child is not a child of this node.")

        index = self.children.index(old_child)
        self.children[index] = new_child

        old_child.parent = None
        new_child.parent = self
        self.invalidate_caches(propagate_up=True)

    def set_length(self, length: float) -> None:
        """Set the branch length to the parent and notify the tree."""
        if length < 0:
            raise ValueError(f"Branch length must be non-negative, got {length}")
        self.length = length
        self.invalidate_caches(propagate_up=True, propagate_down=False)

    def swap_children(self) -> None:
        """Reverses the order of all children in place."""
        if len(self.children) >= 2:
            self.children.reverse()
            self.invalidate_caches(propagate_up=True)

    # ------------------------------------------------------------------------
    # cache management and change notification
    # ------------------------------------------------------------------------

    def invalidate_caches(
        self, propagate_up: bool = True, propagate_down: bool = True
    ) -> None:
        """
        Invalidate cached traversals for this node.

        If propagate_down is True, also invalidate caches for all descendants.
        If propagate_up is True, also invalidate caches for all ancestors; the
        root of the tree then notifies its change listeners. A call made
        directly on the root always notifies.
        """
        self._traverse_cache = None
        self._leaves_cache = None

        if propagate_down:
            for child in self.children:
                child.invalidate_caches(propagate_up=False, propagate_down=True)

        if self.parent is None:
            self._notify_listeners(self)
        elif propagate_up:
            self.parent.invalidate_caches(propagate_up=True, propagate_down=False)

    def add_change_listener(self, listener: ChangeListener) -> None:
        """Register a callback fired with the root node whenever the tree changes."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify_listeners(self, root: Self) -> None:
        # Iterate over a copy; listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(root)
