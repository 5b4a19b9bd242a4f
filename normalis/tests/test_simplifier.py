"""Tests for the simplification driver and its canonical-form guarantees."""

from fractions import Fraction as Q

import pytest
from normalis import (
    E, Coefficient, Fraction, Sum, Product, NodeKind, Simplifier, IntegerRing,
    RationalRing, StructureError, UnsupportedOperation, simplify, structurally_equal,
    compare, NO_PRELUDE, TAG_EXPAND, StrategyRegistry, FunctionStrategy,
)


def x():
    return E.fn("x", 1)


def y():
    return E.fn("y", 1)


def f(*args):
    return E.fn("f", *args)


class TestEndToEnd:
    """The worked example: x + x + 3 with noise around it."""

    def test_collects_and_folds(self):
        """Sum(0, [1*x, 1*x, Sum(3)]) -> Sum(3, [Product(2, [x])])."""
        expr = Sum([Product([x()], 1), Product([x()], 1), Sum([], 3)], 0)
        result = Simplifier().simplify(expr)

        expected = Sum([Product([x()], 2)], 3)
        assert result.structurally_equal(expected, RationalRing())
        assert str(result) == "2*x(1) + 3"

    def test_result_is_root(self):
        """The returned node has no parent."""
        result = simplify(E.sum(E.product(x(), coeff=2)))
        assert result.parent is None

    def test_non_root_rejected(self):
        """Only whole trees can be simplified."""
        expr = E.sum(x(), 1)
        with pytest.raises(StructureError):
            simplify(expr.child(0))


class TestProperties:
    """Canonical-form properties."""

    def setup_method(self):
        """Set up simplifier."""
        self.s = Simplifier()

    def samples(self):
        return [
            E.sum(E.product(x(), coeff=2), E.product(x(), coeff=3), y()),
            E.frac(E.sum(x(), 1), E.product(y(), 2)),
            E.product(E.sum(x(), y()), E.fn("exp", E.fn("ln", x())), 3),
            E.sum(E.frac(x(), 2), E.frac(y(), 2), E.fn("max", 1, 7)),
            E.frac(E.frac(x(), y()), E.frac(f(1, 2), x())),
            E.fn("g", E.sum(1, 2), E.product(x(), 0), y()),
        ]

    def test_idempotence(self):
        """simplify(simplify(e)) == simplify(e)."""
        for expr in self.samples():
            once = self.s.simplify(expr)
            twice = self.s.simplify(once.clone())
            assert self.s.structurally_equal(once, twice)

    def test_fixed_point_has_no_applicable_rewrite(self):
        """A second pass records no steps."""
        for expr in self.samples():
            once = self.s.simplify(expr)
            _, trace = self.s.simplify(once, trace=True)
            assert len(trace) == 0

    def test_sum_commutes(self):
        """simplify(a + b) == simplify(b + a)."""
        a = lambda: E.product(x(), coeff=2)
        b = lambda: E.frac(y(), 3)
        left = self.s.simplify(E.sum(a(), b()))
        right = self.s.simplify(E.sum(b(), a()))
        assert self.s.structurally_equal(left, right)

    def test_product_commutes(self):
        """simplify(a * b) == simplify(b * a)."""
        left = self.s.simplify(E.product(f(x()), E.sum(y(), 1)))
        right = self.s.simplify(E.product(E.sum(1, y()), f(x())))
        assert self.s.structurally_equal(left, right)

    def test_additive_identity(self):
        """simplify(e + 0) == simplify(e)."""
        e = lambda: E.product(x(), y(), coeff=3)
        assert self.s.equivalent(E.sum(e(), 0), e())

    def test_multiplicative_identity(self):
        """simplify(e * 1) == simplify(e)."""
        e = lambda: E.sum(x(), f(y()))
        assert self.s.equivalent(E.product(e(), 1), e())

    def test_zero_annihilation(self):
        """simplify(e * 0) is the zero leaf, however deep e is."""
        deep = E.frac(E.sum(f(x(), E.fn("g", y(), 2, 3)), E.frac(1, x())), E.fn("h", 5))
        for expr in (E.product(deep, 0), E.product(0, x()), E.product(x(), coeff=0)):
            result = self.s.simplify(expr)
            assert result.kind is NodeKind.COEFFICIENT
            assert result.value == 0

    def test_zero_accumulator_short_circuits(self):
        """Children of a zero product are not simplified at all."""
        seen = []

        def spy(node, ctx):
            seen.append(node.name)
            return None

        s = Simplifier(registry=StrategyRegistry([
            FunctionStrategy(spy, name="spy", function_name="f"),
        ]))
        result = s.simplify(E.product(f(1), coeff=0))
        assert result.value == 0
        assert seen == []

    def test_sum_flattening(self):
        """Sum(Sum(a, b), c) == Sum(a, b, c)."""
        nested = E.sum(E.sum(x(), y()), f(1))
        flat = E.sum(x(), y(), f(1))
        result = self.s.simplify(nested)
        assert self.s.structurally_equal(result, self.s.simplify(flat))
        assert all(c.kind is not NodeKind.SUM for c in result.children)

    def test_product_flattening(self):
        """Product(Product(a, b), c) has no product children."""
        result = self.s.simplify(E.product(E.product(x(), y(), coeff=2), f(1), coeff=3))
        assert result.coefficient == 6
        assert all(c.kind is not NodeKind.PRODUCT for c in result.children)

    def test_fraction_flattening(self):
        """Fraction(Fraction(a, b), c) == Fraction(a, b*c)."""
        a, b, c = E.fn("a", 1), E.fn("b", 1), E.fn("c", 1)
        nested = E.frac(E.frac(a, b), c)
        direct = E.frac(a.clone(), E.product(b.clone(), c.clone()))
        assert self.s.equivalent(nested, direct)

    def test_collect_like_terms(self):
        """2x + 3x -> 5x; 2x - 2x -> 0; x + x -> 2x."""
        five_x = self.s.simplify(E.sum(E.product(x(), coeff=2), E.product(x(), coeff=3)))
        assert five_x.kind is NodeKind.PRODUCT
        assert five_x.coefficient == 5
        assert five_x.child(0).name == "x"

        zero = self.s.simplify(E.sum(E.product(x(), coeff=2), E.product(x(), coeff=-2)))
        assert zero.kind is NodeKind.COEFFICIENT
        assert zero.value == 0

        two_x = self.s.simplify(E.sum(x(), x()))
        assert two_x.kind is NodeKind.PRODUCT
        assert two_x.coefficient == 2

    def test_collect_over_integers(self):
        """Collection works in any ring."""
        s = Simplifier(ring=IntegerRing())
        result = s.simplify(E.sum(E.product(x(), coeff=2), E.product(x(), coeff=3)))
        assert result.coefficient == 5

    def test_zero_numerator(self):
        """0 / anything is zero, even an unsimplifiable denominator."""
        denominator = E.sum(f(x(), y()), E.frac(E.fn("g", 1), E.fn("h", 2)))
        result = self.s.simplify(E.frac(0, denominator))
        assert result.kind is NodeKind.COEFFICIENT
        assert result.value == 0

    def test_zero_numerator_after_simplification(self):
        """A numerator that simplifies to zero also collapses."""
        result = self.s.simplify(E.frac(E.sum(x(), E.product(x(), coeff=-1)), y()))
        assert result.value == 0


class TestCoefficientFolding:
    """Tests for accumulator handling."""

    def setup_method(self):
        """Set up simplifier."""
        self.s = Simplifier()

    def test_constant_sum(self):
        """A sum of leaves becomes a single leaf."""
        result = self.s.simplify(E.sum(1, 2, coeff=3))
        assert result.kind is NodeKind.COEFFICIENT
        assert result.value == 6

    def test_empty_product_is_one(self):
        """An empty product is its accumulator."""
        assert self.s.simplify(Product([])).value == 1

    def test_identity_accumulator_omitted(self):
        """x + 5 - 5 stores no accumulator."""
        result = self.s.simplify(E.sum(x(), y(), 5, -5))
        assert result.kind is NodeKind.SUM
        assert result.coefficient is None

    def test_single_child_collapses(self):
        """x + 0 is just x."""
        result = self.s.simplify(E.sum(x(), 0))
        assert result.kind is NodeKind.UNARY_FUNCTION

    def test_children_sorted(self):
        """Sum children come out in canonical order."""
        result = self.s.simplify(E.sum(E.product(x(), y()), f(1), E.fn("a", 1)))
        assert [c.kind for c in result.children] == [
            NodeKind.UNARY_FUNCTION, NodeKind.UNARY_FUNCTION, NodeKind.PRODUCT,
        ]
        assert result.child(0).name == "a"


class TestFractions:
    """Tests for fraction handling across rings."""

    def test_exact_division(self):
        """6/3 over the integers divides."""
        result = Simplifier(ring=IntegerRing()).simplify(E.frac(6, 3))
        assert result.kind is NodeKind.COEFFICIENT
        assert result.value == 2

    def test_rational_reduction_fallback(self):
        """6/4 over the integers reduces to 3/2."""
        result = Simplifier(ring=IntegerRing()).simplify(E.frac(6, 4))
        assert result.kind is NodeKind.FRACTION
        assert result.numerator.value == 3
        assert result.denominator.value == 2

    def test_reduction_to_whole_number(self):
        """A reducer that clears the denominator collapses the fraction."""
        s = Simplifier(ring=IntegerRing(), reducer=lambda n, d: (n // d, 1))
        result = s.simplify(E.frac(7, 2))
        assert result.kind is NodeKind.COEFFICIENT
        assert result.value == 3

    def test_failing_reducer_keeps_fraction(self):
        """An unsupported reduction leaves the fraction as it is."""
        def refuse(n, d):
            raise UnsupportedOperation("no reduction")

        result = Simplifier(ring=IntegerRing(), reducer=refuse).simplify(E.frac(6, 4))
        assert result.numerator.value == 6
        assert result.denominator.value == 4

    def test_rational_division(self):
        """6/4 over the rationals is the leaf 3/2."""
        result = simplify(E.frac(6, 4))
        assert result.kind is NodeKind.COEFFICIENT
        assert result.value == Q(3, 2)

    def test_division_by_zero_kept(self):
        """1/0 stays a fraction."""
        result = simplify(E.frac(1, 0))
        assert result.kind is NodeKind.FRACTION

    def test_symbolic_over_coefficient(self):
        """x/4 becomes (1/4)*x over the rationals."""
        result = simplify(E.frac(x(), 4))
        assert result.kind is NodeKind.PRODUCT
        assert result.coefficient == Q(1, 4)

    def test_symbolic_over_coefficient_integers(self):
        """2x/4 becomes x/2 over the integers."""
        result = Simplifier(ring=IntegerRing()).simplify(E.frac(E.product(x(), coeff=2), 4))
        assert result.kind is NodeKind.FRACTION
        assert result.numerator.name == "x"
        assert result.denominator.value == 2

    def test_cancel_and_combine(self):
        """x/y + x/y -> (2*x)/y."""
        result = simplify(E.sum(E.frac(x(), y()), E.frac(x(), y())))
        assert result.kind is NodeKind.FRACTION
        assert result.numerator.coefficient == 2
        assert result.denominator.name == "y"

    def test_product_of_fractions(self):
        """(x/y) * (y/x) -> 1."""
        result = simplify(E.product(E.frac(x(), y()), E.frac(y(), x())))
        assert result.kind is NodeKind.COEFFICIENT
        assert result.value == 1


class TestFunctions:
    """Tests for function arguments, inverses and evaluation."""

    def test_arguments_simplified(self):
        """f(1 + 2, x + x) -> f(3, 2*x)."""
        result = simplify(f(E.sum(1, 2), E.sum(x(), x())))
        assert result.child(0).value == 3
        assert result.child(1).coefficient == 2

    def test_exp_of_ln(self):
        """exp(ln(x + 0)) -> x."""
        result = simplify(E.fn("exp", E.fn("ln", E.sum(x(), 0))))
        assert result.name == "x"

    def test_inverse_needs_tag(self):
        """Without primary-function exp(ln(x)) stays."""
        s = Simplifier().disable_tag("primary-function")
        result = s.simplify(E.fn("exp", E.fn("ln", x())))
        assert result.name == "exp"

    def test_evaluation(self):
        """Known functions of coefficients are evaluated."""
        assert simplify(E.fn("pow", 2, 10)).value == 1024
        assert simplify(E.fn("abs", -3)).value == 3
        assert simplify(E.fn("max", 1, 9, 4)).value == 9
        assert simplify(E.fn("reciprocal", 4)).value == Q(1, 4)

    def test_evaluation_unsupported_kept(self):
        """reciprocal(3) over the integers cannot be evaluated."""
        result = Simplifier(ring=IntegerRing()).simplify(E.fn("reciprocal", 3))
        assert result.kind is NodeKind.UNARY_FUNCTION

    def test_no_prelude(self):
        """NO_PRELUDE keeps known functions symbolic."""
        result = Simplifier(prelude=NO_PRELUDE).simplify(E.fn("abs", -3))
        assert result.kind is NodeKind.UNARY_FUNCTION

    def test_sortable_arguments(self):
        """min(x, y) and min(y, x) are the same."""
        s = Simplifier()
        assert s.equivalent(E.fn("min", x(), y()), E.fn("min", y(), x()))


class TestConfiguration:
    """Tests for tags and copies."""

    def test_expand_off_by_default(self):
        """Products over sums stay factored unless expand is enabled."""
        expr = lambda: E.product(x(), E.sum(y(), 1))
        assert simplify(expr()).kind is NodeKind.PRODUCT
        expanded = Simplifier().enable_tag(TAG_EXPAND).simplify(expr())
        assert expanded.kind is NodeKind.SUM

    def test_expand_collects(self):
        """x*(x + 1) - x*x -> x with expansion."""
        s = Simplifier().enable_tag(TAG_EXPAND)
        expr = E.sum(E.product(x(), E.sum(x(), 1)), E.product(x(), x(), coeff=-1))
        result = s.simplify(expr)
        assert result.kind is NodeKind.UNARY_FUNCTION
        assert result.name == "x"

    def test_fluent_tags(self):
        """enable_tag/disable_tag return the simplifier."""
        s = Simplifier()
        assert s.enable_tag("expand") is s
        assert s.disable_tag("algebra") is s
        assert s.tags == {"expand", "primary-function"}

    def test_with_tags_copies(self):
        """with_tags() leaves the original alone."""
        s = Simplifier()
        t = s.with_tags("expand")
        assert t.tags == {"expand"}
        assert "algebra" in s.tags
        assert t.registry is s.registry

    def test_registry_and_prelude_exclusive(self):
        """Passing both is ambiguous."""
        with pytest.raises(ValueError):
            Simplifier(registry=StrategyRegistry(), prelude=NO_PRELUDE)

    def test_applicable(self):
        """applicable() respects the active tags."""
        s = Simplifier()
        names = [st.name for st in s.applicable(E.product(x(), y()))]
        assert "multiply-fractions" in names
        assert "expand" not in names

    def test_callable(self):
        """simplifier(node) is simplify(node)."""
        assert Simplifier()(E.sum(1, 1)).value == 2


class TestEntryPoints:
    """Tests for module-level helpers."""

    def test_structurally_equal_and_compare(self):
        """Module helpers default to the rational ring."""
        a = E.sum(x(), y())
        b = E.sum(y(), x())
        assert structurally_equal(a, b)
        assert compare(a, b) == 0
        assert compare(Coefficient(1), x()) == -1

    def test_equivalent_leaves_inputs_alone(self):
        """equivalent() simplifies copies."""
        a = E.sum(x(), x())
        b = E.product(x(), coeff=2)
        assert Simplifier().equivalent(a, b)
        assert a.kind is NodeKind.SUM
        assert len(a) == 2

    def test_type_check(self):
        """simplify() wants a Node."""
        with pytest.raises(TypeError):
            simplify(3)
