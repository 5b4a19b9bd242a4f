"""
Expression builder for NORMALIS.

Trees are built with explicit constructors; there is no text parser.
E wraps the constructors so plain numbers can be used directly:

    from normalis import E

    x, y = E.fn("x", 1), E.fn("y", 1)
    E.sum(E.product(x, coeff=2), 3)          # 2*x(1) + 3
    E.frac(E.fn("f", y), 4)                  # f(y(1))/4
    E.fn("max", 1, 2, 3)                     # max(1, 2, 3), order-insensitive

    E(["+", 3, ["*", 2, ["x", 1]]])          # same tree as to_sexpr() output

Every node can be placed in one tree only; use .clone() to reuse it.
"""

from typing import Any, List, Optional

from .nodes import Coefficient, Fraction, Node, Product, Sum, function

# Functions whose arguments commute unless told otherwise
SORTABLE_FUNCTIONS = frozenset({"min", "max"})


class _ExprBuilder:
    """
    Expression builder for NORMALIS.

    Examples:
        E.const(5)                  -> Coefficient(5)
        E.sum(a, b, coeff=3)        -> Sum([a, b], coefficient=3)
        E.product(a, 2)             -> Product([a, Coefficient(2)])
        E.frac(a, b)                -> Fraction(a, b)
        E.fn("f", a, b)             -> BinaryFunction('f', [a, b])
    """

    def __call__(self, sexpr: Any) -> Node:
        """
        Build a tree from the nested-list form produced by Node.to_sexpr().

        In ["+", ...] and ["*", ...] a leading number is the coefficient.

        Examples:
            E(5) -> Coefficient(5)
            E(["+", 3, ["*", 2, ["x", 1]]]) -> Sum([Product([x(1)], coefficient=2)], coefficient=3)
        """
        if isinstance(sexpr, Node):
            return sexpr
        if not isinstance(sexpr, list):
            return self.const(sexpr)
        if not sexpr or not isinstance(sexpr[0], str):
            raise ValueError(f"expected [operator, args...], got {sexpr!r}")
        op, args = sexpr[0], sexpr[1:]
        if op in ("+", "*"):
            coeff = None
            if args and not isinstance(args[0], (list, Node)):
                coeff, args = args[0], args[1:]
            build = self.sum if op == "+" else self.product
            return build(*[self(a) for a in args], coeff=coeff)
        if op == "/":
            if len(args) != 2:
                raise ValueError(f"'/' takes exactly 2 arguments, got {len(args)}")
            return self.frac(self(args[0]), self(args[1]))
        return self.fn(op, *[self(a) for a in args])

    def const(self, value: Any) -> Coefficient:
        """Create a coefficient leaf."""
        if isinstance(value, Node):
            raise TypeError("const() takes a ring value, not a Node")
        if isinstance(value, str):
            raise TypeError(f"no parser for strings: {value!r}")
        return Coefficient(value)

    def sum(self, *terms: Any, coeff: Any = None) -> Sum:
        return Sum(self._wrap_all(terms), coeff)

    def product(self, *factors: Any, coeff: Any = None) -> Product:
        return Product(self._wrap_all(factors), coeff)

    def frac(self, numerator: Any, denominator: Any) -> Fraction:
        return Fraction(self._wrap(numerator), self._wrap(denominator))

    def fn(self, name: str, *args: Any, sortable: Optional[bool] = None) -> Node:
        """
        Apply a named function.

        Args:
            name: Function name.
            *args: Arguments; numbers become coefficient leaves.
            sortable: Whether argument order is irrelevant (binary and
                n-ary only). Defaults to True for min and max.
        """
        if sortable is None:
            sortable = name in SORTABLE_FUNCTIONS
        return function(name, *self._wrap_all(args), sortable=sortable)

    def _wrap(self, value: Any) -> Node:
        if isinstance(value, Node):
            return value
        return self.const(value)

    def _wrap_all(self, values) -> List[Node]:
        return [self._wrap(v) for v in values]

    def __repr__(self) -> str:
        return "E"


# Singleton instance
E = _ExprBuilder()
