"""Tests for the node model: construction, parent links, mutation, cloning."""

import gc

import pytest
from normalis import (
    E, Coefficient, Sum, Product, Fraction, UnaryFunction, BinaryFunction,
    NaryFunction, NodeKind, RationalRing, StructureError, function,
)


class TestConstruction:
    """Tests for building nodes."""

    def test_kinds(self):
        """Each node class reports its kind."""
        x = E.fn("x", 1)
        assert Coefficient(3).kind is NodeKind.COEFFICIENT
        assert Sum([]).kind is NodeKind.SUM
        assert Product([]).kind is NodeKind.PRODUCT
        assert Fraction(Coefficient(1), Coefficient(2)).kind is NodeKind.FRACTION
        assert x.kind is NodeKind.UNARY_FUNCTION
        assert E.fn("f", 1, 2).kind is NodeKind.BINARY_FUNCTION
        assert E.fn("f", 1, 2, 3).kind is NodeKind.NARY_FUNCTION

    def test_function_factory_picks_class_by_arity(self):
        """function() returns the subclass matching the argument count."""
        assert isinstance(function("f", Coefficient(1)), UnaryFunction)
        assert isinstance(function("f", Coefficient(1), Coefficient(2)), BinaryFunction)
        assert isinstance(function("f", *[Coefficient(i) for i in range(4)]), NaryFunction)

    def test_function_without_arguments_rejected(self):
        """A function needs at least one argument."""
        with pytest.raises(StructureError):
            function("f")

    def test_nary_function_needs_three_arguments(self):
        """NaryFunction with fewer than three arguments is malformed."""
        with pytest.raises(StructureError):
            NaryFunction("f", [Coefficient(1), Coefficient(2)])

    def test_coefficient_rejects_node(self):
        """Coefficient wraps values, not nodes."""
        with pytest.raises(TypeError):
            Coefficient(Coefficient(1))

    def test_combinator_coefficient_defaults_to_none(self):
        """An omitted accumulator is stored as None."""
        s = Sum([E.fn("x", 1)])
        assert s.coefficient is None
        assert s.coefficient_or_identity(RationalRing()) == 0
        p = Product([E.fn("x", 1)])
        assert p.coefficient_or_identity(RationalRing()) == 1

    def test_children_is_read_only_tuple(self):
        """children returns a tuple snapshot."""
        s = E.sum(1, 2)
        assert isinstance(s.children, tuple)
        assert len(s) == 2


class TestParentLinks:
    """Tests for parent back-references."""

    def test_attach_sets_parent(self):
        """Children point back at their owner."""
        x = E.fn("x", 1)
        s = Sum([x])
        assert x.parent is s
        assert s.is_root
        assert not x.is_root

    def test_attach_attached_node_rejected(self):
        """A node cannot have two owners."""
        x = E.fn("x", 1)
        s = Sum([x])
        with pytest.raises(StructureError):
            Product([x])
        assert x.parent is s

    def test_clone_can_be_attached_elsewhere(self):
        """A clone is a fresh root."""
        x = E.fn("x", 1)
        s = Sum([x])
        p = Product([x.clone()])
        assert p.child(0).parent is p
        assert x.parent is s

    def test_cycle_rejected(self):
        """Attaching a node below itself is refused."""
        s = Sum([])
        p = Product([])
        s.append_child(p)
        with pytest.raises(StructureError):
            p.append_child(s)

    def test_self_attach_rejected(self):
        """A node cannot be its own child."""
        s = Sum([])
        with pytest.raises(StructureError):
            s.append_child(s)

    def test_detach_returns_whether_detached(self):
        """detach() is idempotent and reports what it did."""
        x = E.fn("x", 1)
        s = Sum([x, Coefficient(2)])
        assert x.detach() is True
        assert x.parent is None
        assert len(s) == 1
        assert x.detach() is False

    def test_parent_link_is_weak(self):
        """A child does not keep its parent alive."""
        x = E.fn("x", 1)
        Sum([x])
        gc.collect()
        assert x.parent is None


class TestMutation:
    """Tests for the mutation surface."""

    def test_child_out_of_range(self):
        """Indexing a missing child raises IndexError."""
        s = E.sum(1)
        with pytest.raises(IndexError):
            s.child(1)
        with pytest.raises(IndexError):
            s.replace_child(5, Coefficient(0))

    def test_replace_child(self):
        """replace_child() swaps in the new node and detaches the old one."""
        a, b = E.fn("a", 1), E.fn("b", 1)
        s = Sum([a])
        old = s.replace_child(0, b)
        assert old is a
        assert a.parent is None
        assert b.parent is s
        assert s.child(0) is b

    def test_remove_child(self):
        """remove_child() returns the detached child."""
        a, b = E.fn("a", 1), E.fn("b", 1)
        s = Sum([a, b])
        removed = s.remove_child(0)
        assert removed is a
        assert removed.parent is None
        assert s.children == (b,)

    def test_take_and_set_children(self):
        """take_children() detaches everything; set_children() reattaches."""
        a, b = E.fn("a", 1), E.fn("b", 1)
        s = Sum([a, b])
        taken = s.take_children()
        assert taken == [a, b]
        assert len(s) == 0
        assert a.parent is None
        s.set_children([b, a])
        assert s.children == (b, a)
        assert a.parent is s

    def test_set_children_checks_arity(self):
        """Fractions always need two children."""
        f = E.frac(1, 2)
        with pytest.raises(StructureError):
            f.set_children([Coefficient(1)])

    def test_append_to_fixed_arity_rejected(self):
        """A unary function cannot take a second argument."""
        f = E.fn("f", 1)
        with pytest.raises(StructureError):
            f.append_child(Coefficient(2))

    def test_set_coefficient_normalizes_identity(self):
        """Identity accumulators are stored as None when a ring is given."""
        ring = RationalRing()
        s = Sum([E.fn("x", 1)])
        s.set_coefficient(0, ring)
        assert s.coefficient is None
        p = Product([E.fn("x", 1)])
        p.set_coefficient(1, ring)
        assert p.coefficient is None
        p.set_coefficient(0, ring)
        assert p.coefficient == 0

    def test_sort_children_ignored_for_fraction(self):
        """Order-sensitive nodes keep their order."""
        f = E.frac(2, 1)
        f.sort_children(lambda n: n.value)
        assert f.numerator.value == 2


class TestCloneAndEquality:
    """Tests for clone() and structurally_equal()."""

    def setup_method(self):
        """Set up ring."""
        self.ring = RationalRing()

    def test_clone_is_deep_and_detached(self):
        """A clone shares no nodes with the original."""
        expr = E.sum(E.product(E.fn("x", 1), coeff=2), 3)
        copy = expr.clone()
        assert copy.parent is None
        originals = {id(n) for n in expr.walk()}
        assert not any(id(n) in originals for n in copy.walk())
        assert copy.structurally_equal(expr, self.ring)

    def test_clone_of_attached_node_is_root(self):
        """Cloning a child yields a root."""
        s = E.sum(E.fn("x", 1))
        assert s.child(0).clone().parent is None

    def test_sum_equality_ignores_order(self):
        """Sums compare as multisets of children."""
        a = E.sum(E.fn("x", 1), E.fn("y", 1))
        b = E.sum(E.fn("y", 1), E.fn("x", 1))
        assert a.structurally_equal(b, self.ring)

    def test_fraction_equality_respects_order(self):
        """Fractions do not commute."""
        a = E.frac(E.fn("x", 1), E.fn("y", 1))
        b = E.frac(E.fn("y", 1), E.fn("x", 1))
        assert not a.structurally_equal(b, self.ring)

    def test_omitted_and_identity_coefficient_equal(self):
        """An omitted accumulator equals an explicit identity."""
        a = E.product(E.fn("x", 1))
        b = E.product(E.fn("x", 1), coeff=1)
        assert a.structurally_equal(b, self.ring)

    def test_function_name_matters(self):
        """Different names are different functions."""
        assert not E.fn("f", 1).structurally_equal(E.fn("g", 1), self.ring)

    def test_size(self):
        """size() counts every node."""
        assert E.sum(E.fn("x", 1), 2).size() == 4


class TestRendering:
    """Tests for infix and s-expression rendering."""

    def test_sum_with_product(self):
        """Coefficient of a sum renders last."""
        expr = E.sum(E.product(E.fn("x", 1), coeff=2), coeff=3)
        assert str(expr) == "2*x(1) + 3"

    def test_negative_term(self):
        """Negative terms render with a minus sign."""
        expr = E.sum(E.fn("x", 1), coeff=-3)
        assert str(expr) == "x(1) - 3"

    def test_minus_one_coefficient(self):
        """A product coefficient of -1 renders as a sign."""
        assert str(E.product(E.fn("x", 1), coeff=-1)) == "-x(1)"

    def test_fraction(self):
        """Compound denominators are bracketed."""
        expr = E.frac(E.fn("x", 1), E.product(E.fn("y", 1), E.fn("z", 1)))
        assert str(expr) == "x(1)/(y(1)*z(1))"

    def test_to_sexpr(self):
        """to_sexpr() puts accumulators first."""
        expr = E.sum(E.product(E.fn("x", 1), coeff=2), coeff=3)
        assert expr.to_sexpr() == ["+", 3, ["*", 2, ["x", 1]]]

    def test_builder_round_trip(self):
        """E() rebuilds trees from to_sexpr() output."""
        sexpr = ["+", 3, ["*", 2, ["x", 1]], ["/", 1, ["y", 2]]]
        assert E(sexpr).to_sexpr() == sexpr
