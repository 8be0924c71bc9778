"""Outline numbering.

    numbered = assign_outline_numbers(nodes)   # "1", "1.1", "1.1.1", "2", ...
"""

from dataclasses import replace
from typing import Iterable

from jira_report.models import FlatNode

MAX_OUTLINE_DEPTH = 10


class OutlineDepthError(ValueError):
    """Raised when a node is nested deeper than MAX_OUTLINE_DEPTH."""


def assign_outline_numbers(
    nodes: Iterable[FlatNode],
    max_depth: int = MAX_OUTLINE_DEPTH,
) -> list[FlatNode]:
    """Return *nodes* in the same order with their dotted outline number set.

    One counter per depth: the node's own counter is incremented and every
    deeper counter is reset, so numbering restarts under each new parent.
    """
    counters = [0] * max_depth
    numbered: list[FlatNode] = []

    for node in nodes:
        depth = node.depth
        if not 0 <= depth < max_depth:
            raise OutlineDepthError(
                f"{node.key} is nested at depth {depth}; at most {max_depth} levels are supported"
            )
        counters[depth] += 1
        for i in range(depth + 1, max_depth):
            counters[i] = 0
        number = ".".join(str(n) for n in counters[: depth + 1] if n > 0)
        numbered.append(replace(node, number=number))

    return numbered


def outline_level(number: str) -> int:
    """Zero-based nesting level of an outline number ("2.3.1" → 2)."""
    return number.count(".")
