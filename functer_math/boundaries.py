"""
Boundary extraction for drawing region edges.

    extract_boundaries(parse("0 < y <= 1"))
        -> [Boundary('y', '0', 'dotted'), Boundary('y', '1', 'solid')]

Only comparisons that isolate `y` (or `x`, with the other side free of
both axes) produce a boundary; `x^2 + y^2 < 10` produces none.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .chains import Link, comparison_links
from .nodes import Head, Node, Operation, free_symbols, is_comparison, is_head, is_symbol
from .transpile import EvaluatorTranspiler

SOLID = "solid"
DOTTED = "dotted"

_PASS_THROUGH = (Head.AND, Head.OR, Head.NOT, Head.DELIMITER, Head.HOLD, Head.BLOCK)


@dataclass(frozen=True)
class Boundary:
    axis: str                 # 'x' or 'y'
    expression_text: str      # evaluator text of the other side
    style: str                # SOLID or DOTTED
    expression: Optional[Node] = field(default=None, compare=False, repr=False)


def extract_boundaries(node: Node, variable: str = "x") -> List[Boundary]:
    """All boundaries found under logical connectives of node, in order."""
    transpiler = EvaluatorTranspiler(variable)
    found: List[Boundary] = []
    _collect(node, transpiler, found)
    return found


def _collect(node: Node, transpiler: EvaluatorTranspiler, found: List[Boundary]):
    if not isinstance(node, Operation):
        return
    if is_head(node, *_PASS_THROUGH):
        for arg in node.args:
            _collect(arg, transpiler, found)
    elif is_comparison(node):
        for link in comparison_links(node):
            boundary = _from_link(link, transpiler)
            if boundary is not None:
                found.append(boundary)


def _from_link(link: Link, transpiler: EvaluatorTranspiler) -> Optional[Boundary]:
    style = SOLID if link.inclusive else DOTTED
    for axis, others in (("y", {"y"}), ("x", {"x", "y"})):
        for var, other in ((link.left, link.right), (link.right, link.left)):
            if is_symbol(var, axis) and not (free_symbols(other) & others):
                text = transpiler.text(other)
                if text:
                    return Boundary(axis, text, style, other)
    return None
