"""
Chained-comparison normalization.

The parser (and MathJSON producers) emit chains in several shapes:

    LessEqual(4, x, 6)                      flat n-ary
    LessEqual(4, Less(x, 6))                nested on the right
    Less(LessEqual(4, x), 6)                nested on the left
    Less(LessEqual(a, x), Less(y, b))       nested on both sides

All of them flatten, left to right, into a term list and the operator
between each consecutive pair of terms. Both transpilers and the boundary
extractor work from the resulting links so they agree on what a chain means.
"""

from typing import List, NamedTuple, Tuple

from .nodes import Head, Node, Operation, is_comparison


COMPARISON_SYMBOLS = {
    Head.EQUAL.value: "==",
    Head.NOT_EQUAL.value: "!=",
    Head.LESS.value: "<",
    Head.LESS_EQUAL.value: "<=",
    Head.GREATER.value: ">",
    Head.GREATER_EQUAL.value: ">=",
}

# boundaries drawn solid
INCLUSIVE = frozenset({
    Head.EQUAL.value, Head.LESS_EQUAL.value, Head.GREATER_EQUAL.value,
})


class Link(NamedTuple):
    """One pairwise comparison `left <head> right` taken from a chain."""
    head: str
    left: Node
    right: Node

    @property
    def symbol(self) -> str:
        return COMPARISON_SYMBOLS[self.head]

    @property
    def inclusive(self) -> bool:
        return self.head in INCLUSIVE


def flatten_chain(node: Operation) -> Tuple[List[Node], List[str]]:
    """
    Split a comparison node into terms and the heads between them.

    A comparison argument is spliced in place: its terms join the outer
    chain and the outer operator links to its nearest term.
    """
    terms: List[Node] = []
    heads: List[str] = []
    for i, arg in enumerate(node.args):
        if i:
            heads.append(node.head)
        if is_comparison(arg) and len(arg.args) >= 2:
            inner_terms, inner_heads = flatten_chain(arg)
            terms.extend(inner_terms)
            heads.extend(inner_heads)
        else:
            terms.append(arg)
    return terms, heads


def comparison_links(node: Operation) -> List[Link]:
    """Pairwise links of a comparison chain; empty for fewer than two terms."""
    terms, heads = flatten_chain(node)
    if len(terms) < 2:
        return []
    return [Link(head, terms[i], terms[i + 1]) for i, head in enumerate(heads)]
