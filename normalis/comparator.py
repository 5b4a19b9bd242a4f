"""
Canonical ordering of expression nodes.

Sorting the children of order-insensitive nodes with this comparator
gives every commutative expression a single spelling, so "are these the
same expression" becomes "do their canonical forms compare equal".

Ordering policy:
    1. By kind rank:
         coefficient < unary function < binary function < n-ary function
           < fraction < product < sum
    2. Within a kind:
         coefficient  - ring.compare on the values
         sum, product - accumulator (identity when omitted), then children
         fraction     - numerator, then denominator
         function     - name, then sortable flag, then arguments

Children of order-insensitive nodes are compared in sorted order, so two
nodes compare equal exactly when they are structurally equal.

A Comparator remembers the sorted children of every node it has looked
at, so each child list is sorted once per comparison or sort rather than
once per visit. The trees must not change while one Comparator is in
use; the module functions and sort_key() each use a fresh one.
"""

import functools
from typing import Callable, Dict, List, Sequence, Tuple

from .nodes import Node, NodeKind

KIND_RANK = {
    NodeKind.COEFFICIENT: 0,
    NodeKind.UNARY_FUNCTION: 1,
    NodeKind.BINARY_FUNCTION: 2,
    NodeKind.NARY_FUNCTION: 3,
    NodeKind.FRACTION: 4,
    NodeKind.PRODUCT: 5,
    NodeKind.SUM: 6,
}


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


class Comparator:
    """
    Total order over nodes for one ring.

    Example:
        order = Comparator(ring)
        order.compare(a, b)                  # -1, 0 or 1
        factors.sort(key=order.key)
    """

    def __init__(self, ring):
        self.ring = ring
        # id(node) -> (node, sorted children); the node is kept so its id stays unique
        self._ordered: Dict[int, Tuple[Node, List[Node]]] = {}
        self.key = functools.cmp_to_key(self.compare)

    def compare(self, a: Node, b: Node) -> int:
        """
        Compare two nodes.

        Returns:
            -1, 0 or 1.
        """
        if a is b:
            return 0
        c = _cmp(KIND_RANK[a.kind], KIND_RANK[b.kind])
        if c:
            return c

        ring = self.ring
        kind = a.kind
        if kind is NodeKind.COEFFICIENT:
            return ring.compare(a.value, b.value)

        if kind.is_combinator:
            c = ring.compare(a.coefficient_or_identity(ring), b.coefficient_or_identity(ring))
            if c:
                return c
            return self.compare_sequences(self.ordered_children(a), self.ordered_children(b))

        if kind is NodeKind.FRACTION:
            return self.compare_sequences(a.children, b.children)

        c = _cmp(a.name, b.name)
        if c:
            return c
        c = _cmp(a.sortable, b.sortable)
        if c:
            return c
        return self.compare_sequences(self.ordered_children(a), self.ordered_children(b))

    def compare_sequences(self, xs: Sequence[Node], ys: Sequence[Node]) -> int:
        """Lexicographic comparison; a proper prefix sorts first."""
        for x, y in zip(xs, ys):
            c = self.compare(x, y)
            if c:
                return c
        return _cmp(len(xs), len(ys))

    def ordered_children(self, node: Node) -> Sequence[Node]:
        """Children in canonical order; declared order for order-sensitive nodes."""
        if not node.sortable:
            return node.children
        entry = self._ordered.get(id(node))
        if entry is None:
            entry = (node, sorted(node.children, key=self.key))
            self._ordered[id(node)] = entry
        return entry[1]


def compare(a: Node, b: Node, ring) -> int:
    """
    Total order over nodes.

    Args:
        a, b: Nodes to compare.
        ring: Ring providing compare() for coefficient values.

    Returns:
        -1, 0 or 1.
    """
    return Comparator(ring).compare(a, b)


def compare_sequences(xs: Sequence[Node], ys: Sequence[Node], ring) -> int:
    return Comparator(ring).compare_sequences(xs, ys)


def ordered_children(node: Node, ring) -> Sequence[Node]:
    return Comparator(ring).ordered_children(node)


def sort_key(ring) -> Callable[[Node], object]:
    """A key function for one list.sort() call using the canonical order."""
    return Comparator(ring).key


def structurally_equal(a: Node, b: Node, ring) -> bool:
    return compare(a, b, ring) == 0
