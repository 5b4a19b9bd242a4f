"""
Simplification driver for NORMALIS.

Simplifier.simplify(node) rewrites a tree into its canonical form:

    1. simplify every child first (bottom-up)
    2. fold coefficient children into the parent:
         Sum       - add leaf values into the accumulator
         Product   - multiply them in; a zero accumulator annihilates
         Fraction  - zero numerator gives zero; leaf / leaf divides exactly
                     or falls back to rational reduction
         Function  - arguments only
    3. sort the children of order-insensitive nodes
    4. ask the strategy registry for one rewrite; if a strategy fired,
       start again from step 1 on the result, otherwise stop

The result is a fixed point: simplifying it again changes nothing.

Example:
    from normalis import Simplifier, E

    x = E.fn("x", 1)
    expr = E.sum(E.product(x, coeff=2), E.product(x.clone(), coeff=3))
    Simplifier().simplify(expr)          # => Product([x(1)], coefficient=5)

    s = Simplifier(ring=IntegerRing())
    s(E.frac(6, 4))                      # => Fraction(Coefficient(3), Coefficient(2))
"""

import logging
from typing import Callable, Iterable, List, Optional, Tuple, Union

from . import comparator
from .errors import StructureError, UnsupportedOperation
from .nodes import Coefficient, Node, NodeKind, format_expr
from .preludes import PreludeType
from .registry import Strategy, StrategyRegistry
from .rings import RationalRing, Ring
from .strategies import DEFAULT_TAGS, default_registry
from .trace import RewriteStep, RewriteTrace

logger = logging.getLogger(__name__)

# Type aliases
Reducer = Callable[[object, object], Tuple[object, object]]


class Simplifier:
    """
    Canonicalizes expression trees.

    Args:
        ring: Coefficient ring (RationalRing() by default).
        registry: Strategy registry (default_registry(prelude) by default).
            The registry is frozen on construction.
        tags: Active capability tags (DEFAULT_TAGS by default).
        reducer: Rational reduction fn(num, den) -> (num, den), overriding
            ring.reduce.
        prelude: Functions to evaluate when building the default registry.

    A Simplifier holds no per-call state, so one instance can serve many
    threads as long as no two calls share a tree.
    """

    def __init__(self, ring: Optional[Ring] = None,
                 registry: Optional[StrategyRegistry] = None,
                 tags: Optional[Iterable[str]] = None,
                 reducer: Optional[Reducer] = None,
                 prelude: Optional[PreludeType] = None):
        if registry is not None and prelude is not None:
            raise ValueError("pass either a registry or a prelude, not both")
        self.ring = ring if ring is not None else RationalRing()
        if registry is None:
            registry = default_registry(prelude)
        self.registry = registry.freeze()
        self.tags = set(DEFAULT_TAGS if tags is None else tags)
        self._reducer = reducer

    # ----------------------------------------------------------------
    # Configuration
    # ----------------------------------------------------------------

    def enable_tag(self, tag: str) -> 'Simplifier':
        """Activate strategies carrying this tag."""
        self.tags.add(tag)
        return self

    def disable_tag(self, tag: str) -> 'Simplifier':
        """Deactivate strategies carrying this tag."""
        self.tags.discard(tag)
        return self

    def with_tags(self, *tags: str) -> 'Simplifier':
        """A copy with exactly these tags active."""
        result = self.copy()
        result.tags = set(tags)
        return result

    def copy(self) -> 'Simplifier':
        """An independent Simplifier sharing the (frozen) registry."""
        return Simplifier(ring=self.ring, registry=self.registry, tags=self.tags,
                          reducer=self._reducer)

    def reduce(self, numerator, denominator) -> Tuple[object, object]:
        """The rational-reduction collaborator."""
        if self._reducer is not None:
            return self._reducer(numerator, denominator)
        return self.ring.reduce(numerator, denominator)

    # ----------------------------------------------------------------
    # Entry points
    # ----------------------------------------------------------------

    def simplify(self, node: Node, trace: bool = False) -> Union[Node, Tuple[Node, RewriteTrace]]:
        """
        Canonicalize a tree in place.

        Args:
            node: Root of the tree. The tree is consumed: use the returned
                node, which may be a different object.
            trace: If True, return (result, RewriteTrace).

        Raises:
            StructureError: If node still has a parent.
        """
        if not isinstance(node, Node):
            raise TypeError(f"expected a Node, got {type(node).__name__}")
        if node.parent is not None:
            raise StructureError(f"simplify() needs a root node; detach {node!r} first")

        if not trace:
            return self._simplify(node, None)

        trace_obj = RewriteTrace()
        trace_obj.initial = self.format(node)
        result = self._simplify(node, trace_obj)
        trace_obj.final = self.format(result)
        return result, trace_obj

    def __call__(self, node: Node, **kwargs):
        """simplifier(node) is shorthand for simplifier.simplify(node)."""
        return self.simplify(node, **kwargs)

    def structurally_equal(self, a: Node, b: Node) -> bool:
        return comparator.structurally_equal(a, b, self.ring)

    def compare(self, a: Node, b: Node) -> int:
        return comparator.compare(a, b, self.ring)

    def equivalent(self, a: Node, b: Node) -> bool:
        """True if a and b have the same canonical form. Inputs are untouched."""
        return self.structurally_equal(self.simplify(a.clone()), self.simplify(b.clone()))

    def applicable(self, node: Node) -> List[Strategy]:
        """Strategies that would be tried on node, in order."""
        return self.registry.applicable(node, self.tags)

    def format(self, node: Node) -> str:
        return format_expr(node, self.ring)

    # ----------------------------------------------------------------
    # Driver
    # ----------------------------------------------------------------

    def _simplify(self, node: Node, trace: Optional[RewriteTrace]) -> Node:
        """Simplify a detached node; returns a detached node."""
        while True:
            node = self._reduce(node, trace)
            node.sort_children(comparator.sort_key(self.ring))
            before = self.format(node) if trace is not None else None
            result, applied = self.registry.apply_once(node, self.tags, self)
            if applied is None:
                return node
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s: %s -> %s", applied.name, node.kind.value, self.format(result))
            if trace is not None:
                trace.add_step(RewriteStep(applied.name, node.kind, before, self.format(result)))
            node = result

    def _reduce(self, node: Node, trace: Optional[RewriteTrace]) -> Node:
        kind = node.kind
        if kind is NodeKind.COEFFICIENT:
            return node
        if kind is NodeKind.SUM:
            return self._reduce_combinator(node, trace, self.ring.add)
        if kind is NodeKind.PRODUCT:
            return self._reduce_combinator(node, trace, self.ring.multiply)
        if kind is NodeKind.FRACTION:
            return self._reduce_fraction(node, trace)
        node.set_children([self._simplify(arg, trace) for arg in node.take_children()])
        return node

    def _reduce_combinator(self, node, trace, combine) -> Node:
        ring = self.ring
        is_product = node.kind is NodeKind.PRODUCT
        total = node.coefficient_or_identity(ring)
        if is_product and ring.is_zero(total):
            return Coefficient(ring.zero)

        kept = []
        for child in node.take_children():
            child = self._simplify(child, trace)
            if child.kind is not NodeKind.COEFFICIENT:
                kept.append(child)
                continue
            total = combine(total, child.value)
            if is_product and ring.is_zero(total):
                # remaining children are dropped unsimplified
                return Coefficient(ring.zero)

        if not kept:
            return Coefficient(total)
        node.set_children(kept)
        node.set_coefficient(total, ring)
        if node.coefficient is None and len(kept) == 1:
            return node.take_children()[0]
        return node

    def _reduce_fraction(self, node, trace) -> Node:
        ring = self.ring
        num, den = node.take_children()
        num = self._simplify(num, trace)
        if num.kind is NodeKind.COEFFICIENT and ring.is_zero(num.value):
            # the denominator is never simplified
            return Coefficient(ring.zero)
        den = self._simplify(den, trace)

        if num.kind is NodeKind.COEFFICIENT and den.kind is NodeKind.COEFFICIENT:
            try:
                return Coefficient(ring.divide(num.value, den.value))
            except UnsupportedOperation as exc:
                logger.debug("exact division failed (%s), reducing instead", exc)
            try:
                n, d = self.reduce(num.value, den.value)
            except UnsupportedOperation as exc:
                logger.debug("rational reduction failed (%s), keeping fraction", exc)
                n, d = num.value, den.value
            if ring.is_one(d):
                return Coefficient(n)
            num, den = Coefficient(n), Coefficient(d)

        return node.set_children([num, den])


def simplify(node: Node, ring: Optional[Ring] = None, trace: bool = False):
    """Simplify with a default Simplifier over ring."""
    return Simplifier(ring=ring).simplify(node, trace=trace)


def structurally_equal(a: Node, b: Node, ring: Optional[Ring] = None) -> bool:
    return comparator.structurally_equal(a, b, ring if ring is not None else RationalRing())


def compare(a: Node, b: Node, ring: Optional[Ring] = None) -> int:
    return comparator.compare(a, b, ring if ring is not None else RationalRing())
