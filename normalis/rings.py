"""
Coefficient rings for NORMALIS.

The simplifier never does arithmetic itself. Every coefficient operation
goes through a Ring object, so the same engine works over integers,
rationals or polynomials.

A ring must provide:
    zero, one                   - additive / multiplicative identities
    add, negate, multiply       - total operations
    divide                      - exact division, raises UnsupportedOperation
    is_equal, is_zero, is_one   - equality tests
    compare                     - total order returning -1, 0 or 1
    reduce                      - rational reduction of a (num, den) pair

Example:
    ring = IntegerRing()
    ring.divide(6, 3)     # => 2
    ring.divide(6, 4)     # raises UnsupportedOperation
    ring.reduce(6, 4)     # => (3, 2)
"""

import math
from fractions import Fraction
from typing import Any, Tuple

from .errors import UnsupportedOperation

# Type aliases
ValueType = Any
PairType = Tuple[Any, Any]


class Ring:
    """
    Base class for coefficient rings.

    Subclasses must implement zero, one, add, negate, multiply, divide,
    is_equal and compare. The remaining operations have generic
    implementations in terms of those.
    """

    name = "ring"

    @property
    def zero(self) -> ValueType:
        raise NotImplementedError

    @property
    def one(self) -> ValueType:
        raise NotImplementedError

    def value_of(self, value: Any) -> ValueType:
        """Coerce a Python value into this ring."""
        return value

    def add(self, a: ValueType, b: ValueType) -> ValueType:
        raise NotImplementedError

    def negate(self, a: ValueType) -> ValueType:
        raise NotImplementedError

    def subtract(self, a: ValueType, b: ValueType) -> ValueType:
        return self.add(a, self.negate(b))

    def multiply(self, a: ValueType, b: ValueType) -> ValueType:
        raise NotImplementedError

    def divide(self, a: ValueType, b: ValueType) -> ValueType:
        """
        Exact division a / b.

        Raises:
            UnsupportedOperation: If the quotient does not exist in the ring.
        """
        raise NotImplementedError

    def is_equal(self, a: ValueType, b: ValueType) -> bool:
        raise NotImplementedError

    def is_zero(self, a: ValueType) -> bool:
        return self.is_equal(a, self.zero)

    def is_one(self, a: ValueType) -> bool:
        return self.is_equal(a, self.one)

    def compare(self, a: ValueType, b: ValueType) -> int:
        """Total order over ring values: -1, 0 or 1."""
        raise NotImplementedError

    def sign(self, a: ValueType) -> int:
        """
        Sign of a value relative to zero.

        Raises:
            UnsupportedOperation: If the ring has no meaningful sign.
        """
        return self.compare(a, self.zero)

    def as_integer(self, a: ValueType) -> int:
        """
        Convert a value to a Python int.

        Raises:
            UnsupportedOperation: If the value is not an integer.
        """
        raise UnsupportedOperation(f"{self.name}: cannot convert {a!r} to an integer")

    def reduce(self, numerator: ValueType, denominator: ValueType) -> PairType:
        """
        Reduce numerator / denominator to lowest terms.

        A zero denominator returns the pair unchanged.
        """
        return numerator, denominator

    def format(self, a: ValueType) -> str:
        return str(a)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class IntegerRing(Ring):
    """
    The integers, using Python ints.

    Division is exact only when the remainder is zero. reduce() cancels
    the gcd and keeps the denominator positive.
    """

    name = "integers"

    @property
    def zero(self) -> int:
        return 0

    @property
    def one(self) -> int:
        return 1

    def value_of(self, value: Any) -> int:
        if isinstance(value, Fraction):
            if value.denominator != 1:
                raise UnsupportedOperation(f"{value} is not an integer")
            return value.numerator
        return int(value)

    def add(self, a: int, b: int) -> int:
        return a + b

    def negate(self, a: int) -> int:
        return -a

    def multiply(self, a: int, b: int) -> int:
        return a * b

    def divide(self, a: int, b: int) -> int:
        if b == 0:
            raise UnsupportedOperation("integers: division by zero")
        quotient, remainder = divmod(a, b)
        if remainder != 0:
            raise UnsupportedOperation(f"integers: {a} is not divisible by {b}")
        return quotient

    def is_equal(self, a: int, b: int) -> bool:
        return a == b

    def compare(self, a: int, b: int) -> int:
        return (a > b) - (a < b)

    def as_integer(self, a: int) -> int:
        return int(a)

    def reduce(self, numerator: int, denominator: int) -> Tuple[int, int]:
        if denominator == 0:
            return numerator, denominator
        if denominator < 0:
            numerator, denominator = -numerator, -denominator
        g = math.gcd(numerator, denominator)
        return numerator // g, denominator // g


class RationalRing(Ring):
    """
    The rational numbers, using fractions.Fraction.

    Plain ints are accepted anywhere a value is expected. Division is
    exact except by zero, so reduce() only has to move everything into
    the numerator.
    """

    name = "rationals"

    @property
    def zero(self) -> Fraction:
        return Fraction(0)

    @property
    def one(self) -> Fraction:
        return Fraction(1)

    def value_of(self, value: Any) -> Fraction:
        return Fraction(value)

    def add(self, a, b) -> Fraction:
        return Fraction(a) + Fraction(b)

    def negate(self, a) -> Fraction:
        return -Fraction(a)

    def multiply(self, a, b) -> Fraction:
        return Fraction(a) * Fraction(b)

    def divide(self, a, b) -> Fraction:
        if b == 0:
            raise UnsupportedOperation("rationals: division by zero")
        return Fraction(a) / Fraction(b)

    def is_equal(self, a, b) -> bool:
        return Fraction(a) == Fraction(b)

    def compare(self, a, b) -> int:
        a, b = Fraction(a), Fraction(b)
        return (a > b) - (a < b)

    def as_integer(self, a) -> int:
        a = Fraction(a)
        if a.denominator != 1:
            raise UnsupportedOperation(f"rationals: {a} is not an integer")
        return a.numerator

    def reduce(self, numerator, denominator) -> Tuple[Fraction, Fraction]:
        if denominator == 0:
            return numerator, denominator
        return Fraction(numerator) / Fraction(denominator), Fraction(1)

    def format(self, a) -> str:
        return format_rational(a)


def format_rational(value: Any) -> str:
    """Render ints and Fractions, dropping a denominator of 1."""
    if isinstance(value, Fraction) and value.denominator == 1:
        return str(value.numerator)
    return str(value)
