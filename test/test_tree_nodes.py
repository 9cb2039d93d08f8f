import pytest

from treeslicer.parser.newick_parser import parse_newick
from treeslicer.tree import Node


def _find(root: Node, name: str) -> Node:
    return next(node for node in root.traverse() if node.name == name)


def test_traverse_is_preorder():
    root = parse_newick("((A:1,B:1)X:1,C:2)R;")
    assert [node.name for node in root.traverse()] == ["R", "X", "A", "B", "C"]


def test_leaves_and_order():
    root = parse_newick("((A:1,B:1):1,C:2);")
    assert [leaf.name for leaf in root.get_leaves()] == ["A", "B", "C"]
    assert _find(root, "A").is_leaf()
    assert not root.is_leaf()


def test_append_child_invalidates_traversal_cache():
    root = parse_newick("(A:1,B:1);")
    assert len(root.traverse()) == 3
    _find(root, "A").append_child(Node(name="A1", length=0.5))
    assert len(root.traverse()) == 4
    assert "A1" in [leaf.name for leaf in root.get_leaves()]


def test_listeners_fire_on_mutation_anywhere_in_tree():
    root = parse_newick("((A:1,B:1):1,C:2);")
    calls = []
    root.add_change_listener(calls.append)

    _find(root, "A").set_length(3.0)
    assert calls == [root]

    root.children[0].swap_children()
    assert len(calls) == 2

    root.invalidate_caches()
    assert len(calls) == 3


def test_listener_registration_is_idempotent_and_removable():
    root = parse_newick("(A:1,B:1);")
    calls = []
    root.add_change_listener(calls.append)
    root.add_change_listener(calls.append)
    root.invalidate_caches()
    assert len(calls) == 1

    root.remove_change_listener(calls.append)
    root.invalidate_caches()
    assert len(calls) == 1


def test_set_length_rejects_negative_lengths():
    root = parse_newick("(A:1,B:1);")
    with pytest.raises(ValueError):
        _find(root, "A").set_length(-1.0)


def test_replace_child():
    root = parse_newick("(A:1,B:1);")
    old = _find(root, "B")
    new = Node(name="Z", length=2.0)
    root.replace_child(old, new)
    assert [leaf.name for leaf in root.get_leaves()] == ["A", "Z"]
    assert new.parent is root
    assert old.parent is None

    with pytest.raises(ValueError):
        root.replace_child(old, Node(name="Y"))
