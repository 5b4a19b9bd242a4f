"""
Built-in rewrite strategies.

Default registry order:

    flatten-and-absorb          Sum/Product/Fraction   untagged
    collect-like-terms          Sum                    untagged
    multiply-fractions          Product                algebra
    combine-like-denominators   Sum                    algebra
    cancel-common-factors       Fraction               algebra
    divide-by-coefficient       Fraction               algebra
    expand                      Product                expand (off by default)
    collect-like-factors        Product                primary-function
    cancel-common-powers        Fraction               primary-function
    fold-power                  pow                    primary-function
    sqr-to-pow                  sqr                    primary-function
    exp-of-ln, negate-of-negate,
    reciprocal-of-reciprocal    named functions        primary-function
    evaluate-<name>             named functions        untagged, one per prelude entry

Every strategy receives a detached node whose children are already in
canonical form, and the simplification context (ctx.ring, ctx.reduce).

Powers are spelled pow(base, exponent), the name RING_PRELUDE evaluates.
"""

import logging
from typing import Any, Iterable, List, Optional, Tuple

from .comparator import Comparator, sort_key
from .errors import UnsupportedOperation
from .nodes import BinaryFunction, Coefficient, Fraction, Node, NodeKind, Product, Sum
from .preludes import RING_PRELUDE, FoldHandler, PreludeType
from .registry import Strategy, StrategyRegistry

logger = logging.getLogger(__name__)

TAG_ALGEBRA = "algebra"
TAG_PRIMARY_FUNCTION = "primary-function"
TAG_EXPAND = "expand"

DEFAULT_TAGS = frozenset({TAG_ALGEBRA, TAG_PRIMARY_FUNCTION})

POWER = "pow"


def _product_of(factors: List[Node], coefficient: Any, ring) -> Node:
    """Smallest node for coefficient * factors. Factors must be detached."""
    if not factors:
        return Coefficient(coefficient)
    if len(factors) == 1 and ring.is_one(coefficient):
        return factors[0]
    return Product(factors).set_coefficient(coefficient, ring)


def _factor_view(node: Node, order: Comparator) -> Tuple[Any, Tuple[Node, ...]]:
    """Split a node into (coefficient, factors) without touching it."""
    ring = order.ring
    if node.kind is NodeKind.PRODUCT:
        return node.coefficient_or_identity(ring), tuple(order.ordered_children(node))
    if node.kind is NodeKind.COEFFICIENT:
        return node.value, ()
    return ring.one, (node,)


def _take_factors(node: Node) -> List[Node]:
    """Detach and return the factors of a detached node (see _factor_view)."""
    if node.kind is NodeKind.PRODUCT:
        return node.take_children()
    if node.kind is NodeKind.COEFFICIENT:
        return []
    return [node]


def _is_power(node: Node) -> bool:
    return node.kind is NodeKind.BINARY_FUNCTION and node.name == POWER


def _base_of(node: Node) -> Node:
    """x for pow(x, e), otherwise the node itself."""
    return node.children[0] if _is_power(node) else node


def _take_power(node: Node, ring) -> Tuple[Node, Node]:
    """Detach (base, exponent) from a detached factor; plain factors have exponent one."""
    if _is_power(node):
        base, exponent = node.take_children()
        return base, exponent
    return node, Coefficient(ring.one)


def _power(base: Node, exponent: Node) -> Node:
    return BinaryFunction(POWER, base, exponent)


# ============================================================
# Structural strategies
# ============================================================

class FlattenAndAbsorb(Strategy):
    """
    Merge nested same-kind combinators and clear nested fractions.

        Sum(c1, [a, Sum(c2, [b, c])])   ->  Sum(c1 + c2, [a, b, c])
        Product(c1, [a, Product(c2, [b])]) -> Product(c1 * c2, [a, b])
        (a/b)/(c/d)  ->  (a*d)/(b*c)
        (a/b)/c      ->  a/(b*c)
        a/(b/c)      ->  (a*c)/b
    """

    name = "flatten-and-absorb"
    description = "Splice nested sums/products; cross-multiply nested fractions"
    kinds = frozenset({NodeKind.SUM, NodeKind.PRODUCT, NodeKind.FRACTION})

    def _flatten(self, node, ctx, combine):
        if not any(c.kind is node.kind for c in node.children):
            return None
        ring = ctx.ring
        total = node.coefficient_or_identity(ring)
        spliced = []
        for child in node.take_children():
            if child.kind is node.kind:
                total = combine(total, child.coefficient_or_identity(ring))
                spliced.extend(child.take_children())
            else:
                spliced.append(child)
        node.set_children(spliced)
        return node.set_coefficient(total, ring)

    def rewrite_sum(self, node, ctx):
        return self._flatten(node, ctx, ctx.ring.add)

    def rewrite_product(self, node, ctx):
        return self._flatten(node, ctx, ctx.ring.multiply)

    def rewrite_fraction(self, node, ctx):
        num_nested = node.numerator.kind is NodeKind.FRACTION
        den_nested = node.denominator.kind is NodeKind.FRACTION
        if not (num_nested or den_nested):
            return None
        num, den = node.take_children()
        if num_nested and den_nested:
            a, b = num.take_children()
            c, d = den.take_children()
            return Fraction(Product([a, d]), Product([b, c]))
        if num_nested:
            a, b = num.take_children()
            return Fraction(a, Product([b, den]))
        b, c = den.take_children()
        return Fraction(Product([num, c]), b)


class CollectLikeTerms(Strategy):
    """
    Add up terms of a Sum that differ only by coefficient.

        2*x + 3*x    ->  5*x
        2*x + -2*x   ->  (dropped)
        x + x        ->  2*x
        2*x*y + y*x  ->  3*x*y
    """

    name = "collect-like-terms"
    description = "Group structurally equal terms and sum their coefficients"
    kinds = NodeKind.SUM

    def rewrite_sum(self, node, ctx):
        ring = ctx.ring
        order = Comparator(ring)

        # groups of [coefficient, factors, member indices]
        groups: List[list] = []
        for i, child in enumerate(node.children):
            coef, factors = _factor_view(child, order)
            for group in groups:
                if order.compare_sequences(group[1], factors) == 0:
                    group[0] = ring.add(group[0], coef)
                    group[2].append(i)
                    break
            else:
                groups.append([coef, factors, [i]])

        if all(len(members) == 1 for _, _, members in groups):
            return None

        children = node.take_children()
        collected = []
        for coef, _, members in groups:
            if len(members) == 1:
                collected.append(children[members[0]])
                continue
            if ring.is_zero(coef):
                continue
            factors = _take_factors(children[members[0]])
            collected.append(_product_of(factors, coef, ring))
        return node.set_children(collected)


# ============================================================
# Algebra strategies
# ============================================================

class MultiplyFractions(Strategy):
    """c * a * (b/d) * (e/f)  ->  (c * a * b * e) / (d * f)"""

    name = "multiply-fractions"
    description = "Move every fraction factor of a product into one fraction"
    kinds = NodeKind.PRODUCT
    tags = frozenset({TAG_ALGEBRA})

    def rewrite_product(self, node, ctx):
        if not any(c.kind is NodeKind.FRACTION for c in node.children):
            return None
        numerators, denominators = [], []
        for child in node.take_children():
            if child.kind is NodeKind.FRACTION:
                n, d = child.take_children()
                numerators.append(n)
                denominators.append(d)
            else:
                numerators.append(child)
        return Fraction(Product(numerators, node.coefficient), Product(denominators))


class CombineLikeDenominators(Strategy):
    """a/d + b/d  ->  (a + b)/d"""

    name = "combine-like-denominators"
    description = "Merge fractions of a sum that share a denominator"
    kinds = NodeKind.SUM
    tags = frozenset({TAG_ALGEBRA})

    def rewrite_sum(self, node, ctx):
        order = Comparator(ctx.ring)
        groups: List[List[int]] = []
        children = node.children
        for i, child in enumerate(children):
            if child.kind is not NodeKind.FRACTION:
                continue
            for group in groups:
                if order.compare(children[group[0]].denominator, child.denominator) == 0:
                    group.append(i)
                    break
            else:
                groups.append([i])

        if all(len(g) == 1 for g in groups):
            return None

        merged = {}
        for group in groups:
            if len(group) > 1:
                merged[group[0]] = group
        skip = {i for g in merged.values() for i in g[1:]}

        taken = node.take_children()
        rebuilt = []
        for i, child in enumerate(taken):
            if i in skip:
                continue
            if i in merged:
                numerators = []
                denominator = None
                for j in merged[i]:
                    n, d = taken[j].take_children()
                    numerators.append(n)
                    if denominator is None:
                        denominator = d
                rebuilt.append(Fraction(Sum(numerators), denominator))
            else:
                rebuilt.append(child)
        return node.set_children(rebuilt)


class CancelCommonFactors(Strategy):
    """
    Remove factors shared by numerator and denominator, and reduce
    the coefficients.

        (6*x*y) / (4*x)  ->  (3*y) / 2       over the integers
        (x*y) / x        ->  y
    """

    name = "cancel-common-factors"
    description = "Cancel equal factors and reduce coefficients of a fraction"
    kinds = NodeKind.FRACTION
    tags = frozenset({TAG_ALGEBRA})

    def rewrite_fraction(self, node, ctx):
        ring = ctx.ring
        order = Comparator(ring)
        num_coef, num_factors = _factor_view(node.numerator, order)
        den_coef, den_factors = _factor_view(node.denominator, order)

        # pair off equal factors
        used = set()
        cancelled_num = set()
        for i, f in enumerate(num_factors):
            for j, g in enumerate(den_factors):
                if j not in used and order.compare(f, g) == 0:
                    used.add(j)
                    cancelled_num.add(i)
                    break

        try:
            new_num_coef, new_den_coef = ctx.reduce(num_coef, den_coef)
        except UnsupportedOperation as exc:
            logger.debug("coefficient reduction unavailable: %s", exc)
            new_num_coef, new_den_coef = num_coef, den_coef

        reduced = not (ring.is_equal(new_num_coef, num_coef)
                       and ring.is_equal(new_den_coef, den_coef))
        if not cancelled_num and not reduced:
            return None

        num, den = node.take_children()
        keep_num = [f for i, f in enumerate(_sorted_factors(num, ring)) if i not in cancelled_num]
        keep_den = [g for j, g in enumerate(_sorted_factors(den, ring)) if j not in used]

        numerator = _product_of(keep_num, new_num_coef, ring)
        denominator = _product_of(keep_den, new_den_coef, ring)
        if denominator.kind is NodeKind.COEFFICIENT and ring.is_one(denominator.value):
            return numerator
        return Fraction(numerator, denominator)


def _sorted_factors(node: Node, ring) -> List[Node]:
    """Detached factors in the same order as _factor_view reports them."""
    factors = _take_factors(node)
    if node.kind is NodeKind.PRODUCT:
        factors.sort(key=sort_key(ring))
    return factors


class DivideByCoefficient(Strategy):
    """expr / c  ->  (1/c) * expr, when 1/c exists in the ring"""

    name = "divide-by-coefficient"
    description = "Turn division by a coefficient into multiplication by its reciprocal"
    kinds = NodeKind.FRACTION
    tags = frozenset({TAG_ALGEBRA})

    def rewrite_fraction(self, node, ctx):
        if node.numerator.kind is NodeKind.COEFFICIENT:
            return None
        if node.denominator.kind is not NodeKind.COEFFICIENT:
            return None
        ring = ctx.ring
        inverse = ring.divide(ring.one, node.denominator.value)
        num, _ = node.take_children()
        if ring.is_one(inverse):
            return num
        return Product([num], inverse)


class Expand(Strategy):
    """c * a * (x + y + k)  ->  c*a*x + c*a*y + c*k*a"""

    name = "expand"
    description = "Distribute a product over its first sum factor"
    kinds = NodeKind.PRODUCT
    tags = frozenset({TAG_EXPAND})

    def rewrite_product(self, node, ctx):
        index = next((i for i, c in enumerate(node.children) if c.kind is NodeKind.SUM), None)
        if index is None:
            return None
        children = node.take_children()
        total = children.pop(index)
        terms = total.take_children()
        if total.coefficient is not None:
            terms.append(Coefficient(total.coefficient))
        products = []
        for term in terms:
            products.append(Product([term] + [c.clone() for c in children], node.coefficient))
        return Sum(products)


# ============================================================
# Power strategies
# ============================================================

class CollectLikeFactors(Strategy):
    """
    Multiply factors of a Product that share a base by adding exponents.

        x * x                ->  pow(x, 2)
        pow(x, 2) * x        ->  pow(x, 3)
        pow(x, a) * pow(x, b) -> pow(x, a + b)
    """

    name = "collect-like-factors"
    description = "Group factors with equal bases and sum their exponents"
    kinds = NodeKind.PRODUCT
    tags = frozenset({TAG_PRIMARY_FUNCTION})

    def rewrite_product(self, node, ctx):
        order = Comparator(ctx.ring)

        # groups of [base, member indices]
        groups: List[list] = []
        for i, child in enumerate(node.children):
            base = _base_of(child)
            for group in groups:
                if order.compare(group[0], base) == 0:
                    group[1].append(i)
                    break
            else:
                groups.append([base, [i]])

        if all(len(members) == 1 for _, members in groups):
            return None

        children = node.take_children()
        merged = []
        for _, members in groups:
            if len(members) == 1:
                merged.append(children[members[0]])
                continue
            base = None
            exponents = []
            for i in members:
                b, e = _take_power(children[i], ctx.ring)
                if base is None:
                    base = b
                exponents.append(e)
            merged.append(_power(base, Sum(exponents)))
        return node.set_children(merged)


class CancelCommonPowers(Strategy):
    """
    Divide powers of a common base across a fraction.

        pow(x, 3) / x          ->  pow(x, 2)
        pow(x, a) / pow(x, b)  ->  pow(x, a - b)
        x*y / pow(x, 3)        ->  pow(x, -2)*y
    """

    name = "cancel-common-powers"
    description = "Subtract the exponents of factors sharing a base across a fraction"
    kinds = NodeKind.FRACTION
    tags = frozenset({TAG_PRIMARY_FUNCTION})

    def rewrite_fraction(self, node, ctx):
        ring = ctx.ring
        order = Comparator(ring)
        num_coef, num_view = _factor_view(node.numerator, order)
        den_coef, den_view = _factor_view(node.denominator, order)

        pairs = []
        used = set()
        for i, f in enumerate(num_view):
            base = _base_of(f)
            for j, g in enumerate(den_view):
                if j not in used and order.compare(base, _base_of(g)) == 0:
                    used.add(j)
                    pairs.append((i, j))
                    break
        if not pairs:
            return None

        num, den = node.take_children()
        num_factors = _sorted_factors(num, ring)
        den_factors = _sorted_factors(den, ring)
        minus_one = ring.negate(ring.one)
        for i, j in pairs:
            base, top = _take_power(num_factors[i], ring)
            _, bottom = _take_power(den_factors[j], ring)
            num_factors[i] = _power(base, Sum([top, Product([bottom], minus_one)]))
        keep_den = [g for j, g in enumerate(den_factors) if j not in used]

        numerator = _product_of(num_factors, num_coef, ring)
        denominator = _product_of(keep_den, den_coef, ring)
        if denominator.kind is NodeKind.COEFFICIENT and ring.is_one(denominator.value):
            return numerator
        return Fraction(numerator, denominator)


class FoldPower(Strategy):
    """
    pow(pow(a, b), c)  ->  pow(a, b*c)
    pow(a, 1)          ->  a
    pow(a, 0)          ->  1
    """

    name = "fold-power"
    description = "Fold nested powers and drop trivial exponents"
    kinds = NodeKind.BINARY_FUNCTION
    function_name = POWER
    tags = frozenset({TAG_PRIMARY_FUNCTION})

    def rewrite_function(self, node, ctx):
        ring = ctx.ring
        base, exponent = node.args
        if exponent.kind is NodeKind.COEFFICIENT:
            if ring.is_one(exponent.value):
                return node.take_children()[0]
            if ring.is_zero(exponent.value):
                return Coefficient(ring.one)
        if not _is_power(base):
            return None
        inner, outer = node.take_children()
        a, b = inner.take_children()
        return _power(a, Product([b, outer]))


class SquareRootToPower(Strategy):
    """sqr(a) -> pow(a, 1/2), where sqr is the square root.

    Rings without one half (the integers) leave sqr alone.
    """

    name = "sqr-to-pow"
    description = "Spell square roots as powers"
    kinds = NodeKind.UNARY_FUNCTION
    function_name = "sqr"
    tags = frozenset({TAG_PRIMARY_FUNCTION})

    def rewrite_function(self, node, ctx):
        ring = ctx.ring
        half = ring.divide(ring.one, ring.value_of(2))
        arg = node.take_children()[0]
        return _power(arg, Coefficient(half))


# ============================================================
# Function strategies
# ============================================================

class CancelInverse(Strategy):
    """outer(inner(x)) -> x for a pair of mutually inverse unary functions."""

    kinds = NodeKind.UNARY_FUNCTION
    tags = frozenset({TAG_PRIMARY_FUNCTION})

    def __init__(self, outer: str, inner: str, **kwargs):
        self.inner = inner
        kwargs.setdefault("description", f"{outer}({inner}(x)) = x")
        super().__init__(name=f"{outer}-of-{inner}", function_name=outer, **kwargs)

    def rewrite_function(self, node, ctx):
        arg = node.arg
        if arg.kind is not NodeKind.UNARY_FUNCTION or arg.name != self.inner:
            return None
        inner = node.take_children()[0]
        return inner.take_children()[0]


class EvaluateFunction(Strategy):
    """Evaluate a known function whose arguments are all coefficient leaves."""

    def __init__(self, function_name: str, handler: FoldHandler, **kwargs):
        self.handler = handler
        kwargs.setdefault("description", f"Evaluate {function_name} on coefficients")
        super().__init__(name=f"evaluate-{function_name}", function_name=function_name,
                         **kwargs)

    def rewrite_function(self, node, ctx):
        if any(a.kind is not NodeKind.COEFFICIENT for a in node.args):
            return None
        value = self.handler(ctx.ring, [a.value for a in node.args])
        if value is None:
            return None
        return Coefficient(value)


def inverse_strategies() -> List[Strategy]:
    return [
        CancelInverse("exp", "ln"),
        CancelInverse("negate", "negate"),
        CancelInverse("reciprocal", "reciprocal"),
    ]


def power_strategies() -> List[Strategy]:
    return [
        CollectLikeFactors(),
        CancelCommonPowers(),
        FoldPower(),
        SquareRootToPower(),
    ]


def evaluation_strategies(prelude: PreludeType) -> List[Strategy]:
    return [EvaluateFunction(name, handler) for name, handler in prelude.items()]


def builtin_strategies() -> List[Strategy]:
    """Structural and algebra strategies in default order."""
    return [
        FlattenAndAbsorb(),
        CollectLikeTerms(),
        MultiplyFractions(),
        CombineLikeDenominators(),
        CancelCommonFactors(),
        DivideByCoefficient(),
        Expand(),
    ]


def default_registry(prelude: Optional[PreludeType] = None,
                     extra: Iterable[Strategy] = ()) -> StrategyRegistry:
    """
    The standard registry: built-ins, power rules, inverse cancellations,
    then evaluation.

    Args:
        prelude: Functions to evaluate (RING_PRELUDE when None).
        extra: Additional strategies registered last.
    """
    if prelude is None:
        prelude = RING_PRELUDE
    registry = StrategyRegistry(builtin_strategies())
    registry.register_all(power_strategies())
    registry.register_all(inverse_strategies())
    registry.register_all(evaluation_strategies(prelude))
    registry.register_all(extra)
    return registry
