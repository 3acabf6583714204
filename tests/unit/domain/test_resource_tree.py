from __future__ import annotations

"""
Unit tests for the Resource Tree node operations.

Verifies:
1. Child lookup and removal semantics.
2. Emptiness rules for objects and leaves.
3. Pre-order leaf iteration.
"""

from keyhunt.domain.resource_tree import (
    LeafNode,
    ObjectNode,
    get_child,
    is_empty,
    iter_leaves,
    remove_child,
)


def _tree() -> ObjectNode:
    return ObjectNode(children={
        "a": ObjectNode(children={"x": LeafNode("1"), "y": LeafNode("2")}),
        "b": LeafNode("3"),
        "c": ObjectNode(),
    })


def test_get_child_returns_none_for_missing_and_leaves() -> None:
    root = _tree()
    assert isinstance(get_child(root, "a"), ObjectNode)
    assert get_child(root, "missing") is None
    assert get_child(root.children["b"], "anything") is None


def test_remove_child_reports_absence() -> None:
    root = _tree()
    assert remove_child(root, "b") is True
    assert "b" not in root.children
    assert remove_child(root, "b") is False
    assert remove_child(LeafNode("v"), "b") is False


def test_remove_child_keeps_sibling_order() -> None:
    root = _tree()
    remove_child(root, "a")
    assert list(root.children) == ["b", "c"]


def test_is_empty_rules() -> None:
    root = _tree()
    assert is_empty(root.children["c"]) is True
    assert is_empty(root.children["a"]) is False
    assert is_empty(LeafNode("")) is False


def test_iter_leaves_is_preorder() -> None:
    paths = [segments for segments, _ in iter_leaves(_tree())]
    assert paths == [("a", "x"), ("a", "y"), ("b",)]
