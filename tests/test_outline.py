"""Tests for jira_report/outline.py"""

import pytest

from jira_report.models import FlatNode, IssueRecord
from jira_report.outline import (
    MAX_OUTLINE_DEPTH,
    OutlineDepthError,
    assign_outline_numbers,
    outline_level,
)


def _nodes(*layout: tuple[str, int]) -> list[FlatNode]:
    return [FlatNode(issue=IssueRecord(key=key), depth=depth) for key, depth in layout]


def _numbers(nodes: list[FlatNode]) -> list[str]:
    return [n.number for n in assign_outline_numbers(nodes)]


# ---------------------------------------------------------------------------
# Numbering
# ---------------------------------------------------------------------------

def test_root_with_nested_children():
    nodes = _nodes(("R", 0), ("C1", 1), ("C1a", 2), ("C2", 1))
    assert _numbers(nodes) == ["1", "1.1", "1.1.1", "1.2"]


def test_sibling_roots_restart_child_numbering():
    nodes = _nodes(("A", 0), ("A1", 1), ("A1a", 2), ("B", 0), ("B1", 1))
    assert _numbers(nodes) == ["1", "1.1", "1.1.1", "2", "2.1"]


def test_deeper_counters_reset_on_shallower_node():
    nodes = _nodes(("R", 0), ("C1", 1), ("C1a", 2), ("C1b", 2), ("C2", 1), ("C2a", 2))
    assert _numbers(nodes) == ["1", "1.1", "1.1.1", "1.1.2", "1.2", "1.2.1"]


def test_empty_sequence():
    assert assign_outline_numbers([]) == []


def test_order_and_payload_preserved():
    nodes = [
        FlatNode(issue=IssueRecord(key="R"), depth=0, body="<p>r</p>", related_keys=("X-1",)),
        FlatNode(issue=IssueRecord(key="C"), depth=1, body="<p>c</p>"),
    ]
    numbered = assign_outline_numbers(nodes)
    assert [n.key for n in numbered] == ["R", "C"]
    assert numbered[0].body == "<p>r</p>"
    assert numbered[0].related_keys == ("X-1",)
    # input nodes are frozen and left untouched
    assert nodes[0].number == ""


def test_number_depth_matches_traversal_depth():
    nodes = _nodes(("R", 0), ("A", 1), ("B", 2), ("C", 3), ("D", 1), ("E", 2))
    for node in assign_outline_numbers(nodes):
        assert outline_level(node.number) == node.depth
        assert len(node.number.split(".")) == node.depth + 1


def test_numbers_strictly_increasing():
    nodes = _nodes(("R", 0), ("A", 1), ("A1", 2), ("A2", 2), ("B", 1), ("B1", 2), ("S", 0))
    numbers = [tuple(int(p) for p in n.number.split(".")) for n in assign_outline_numbers(nodes)]
    assert all(a < b for a, b in zip(numbers, numbers[1:]))
    assert len(set(numbers)) == len(numbers)


# ---------------------------------------------------------------------------
# Depth bound
# ---------------------------------------------------------------------------

def test_deepest_supported_level():
    nodes = _nodes(*[(f"K{d}", d) for d in range(MAX_OUTLINE_DEPTH)])
    numbers = _numbers(nodes)
    assert numbers[-1] == ".".join(["1"] * MAX_OUTLINE_DEPTH)


def test_too_deep_raises():
    nodes = _nodes(*[(f"K{d}", d) for d in range(MAX_OUTLINE_DEPTH + 1)])
    with pytest.raises(OutlineDepthError, match="K10"):
        assign_outline_numbers(nodes)


def test_outline_level():
    assert outline_level("1") == 0
    assert outline_level("2.3.1") == 2
