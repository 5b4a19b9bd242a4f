"""Polynomial coefficients backed by SymPy.

PolynomialRing lets coefficient leaves hold whole multivariate
polynomials over QQ, so 6*x**2 / (4*x) reduces to 3*x/2 without the
simplifier knowing anything about polynomial arithmetic.
"""

import logging
from fractions import Fraction
from typing import Any, List, Tuple

import sympy
from sympy import Poly, QQ, Symbol

from .errors import UnsupportedOperation
from .rings import Ring

logger = logging.getLogger(__name__)


class PolynomialRing(Ring):
    """
    Multivariate polynomials over the rationals.

    Args:
        *gens: Generator names or SymPy symbols, e.g. PolynomialRing("x", "y").

    Example:
        ring = PolynomialRing("x")
        p = ring.value_of("x**2 - 1")
        q = ring.value_of("x - 1")
        ring.divide(p, q)   # => Poly(x + 1, x, domain='QQ')
    """

    name = "polynomials"

    def __init__(self, *gens):
        if not gens:
            raise ValueError("PolynomialRing needs at least one generator")
        self.gens: Tuple[Symbol, ...] = tuple(
            Symbol(g) if isinstance(g, str) else g for g in gens
        )

    def _poly(self, expr: Any) -> Poly:
        return Poly(expr, *self.gens, domain=QQ)

    @property
    def zero(self) -> Poly:
        return self._poly(0)

    @property
    def one(self) -> Poly:
        return self._poly(1)

    def value_of(self, value: Any) -> Poly:
        if isinstance(value, Poly):
            return self._poly(value.as_expr())
        if isinstance(value, Fraction):
            return self._poly(sympy.Rational(value.numerator, value.denominator))
        return self._poly(sympy.sympify(value))

    def add(self, a: Poly, b: Poly) -> Poly:
        return a + b

    def negate(self, a: Poly) -> Poly:
        return -a

    def multiply(self, a: Poly, b: Poly) -> Poly:
        return a * b

    def divide(self, a: Poly, b: Poly) -> Poly:
        if b.is_zero:
            raise UnsupportedOperation("polynomials: division by zero")
        quotient, remainder = a.div(b)
        if not remainder.is_zero:
            raise UnsupportedOperation(
                f"polynomials: {a.as_expr()} is not divisible by {b.as_expr()}"
            )
        return quotient

    def is_equal(self, a: Poly, b: Poly) -> bool:
        return a == b

    def is_zero(self, a: Poly) -> bool:
        return a.is_zero

    def is_one(self, a: Poly) -> bool:
        return a.is_one

    def _key(self, a: Poly) -> List[Tuple[Tuple[int, ...], Fraction]]:
        terms = [
            (monom, Fraction(int(coeff.p), int(coeff.q)))
            for monom, coeff in zip(a.monoms(), a.coeffs())
        ]
        # graded lexicographic, highest degree first
        terms.sort(key=lambda t: (sum(t[0]), t[0]), reverse=True)
        return terms

    def compare(self, a: Poly, b: Poly) -> int:
        ka, kb = self._key(a), self._key(b)
        return (ka > kb) - (ka < kb)

    def sign(self, a: Poly) -> int:
        if not a.is_ground:
            raise UnsupportedOperation(f"polynomials: {a.as_expr()} has no sign")
        return int(sympy.sign(a.LC()))

    def as_integer(self, a: Poly) -> int:
        if a.is_ground:
            c = a.LC()
            if c.is_Integer:
                return int(c)
        raise UnsupportedOperation(f"polynomials: {a.as_expr()} is not an integer")

    def reduce(self, numerator: Poly, denominator: Poly) -> Tuple[Poly, Poly]:
        """Cancel the polynomial gcd and make the denominator monic."""
        if denominator.is_zero:
            return numerator, denominator
        g = numerator.gcd(denominator)
        if not g.is_one:
            numerator, _ = numerator.div(g)
            denominator, _ = denominator.div(g)
        lc = denominator.LC()
        if lc != 1:
            numerator = numerator.quo_ground(lc)
            denominator = denominator.quo_ground(lc)
        logger.debug("reduced polynomial fraction to (%s)/(%s)",
                     numerator.as_expr(), denominator.as_expr())
        return numerator, denominator

    def format(self, a: Poly) -> str:
        return str(a.as_expr())

    def __repr__(self) -> str:
        return f"PolynomialRing({', '.join(str(g) for g in self.gens)})"
