"""
Example custom prelude for NORMALIS.

This file demonstrates how to extend the functions a Simplifier can
evaluate. Handlers receive the ring and the argument values, do their
arithmetic through the ring, and return None to leave the call symbolic.

Usage:
    python examples/custom_prelude.py
"""

from fractions import Fraction

from normalis import (
    E, IntegerRing, Simplifier, UnsupportedOperation,
    RING_PRELUDE, binary_only, nary_fold, unary_only,
)


def _gcd(ring, a, b):
    a, b = ring.as_integer(a), ring.as_integer(b)
    while b:
        a, b = b, a % b
    return ring.value_of(abs(a))


def _factorial(ring, n):
    n = ring.as_integer(n)
    if n < 0:
        return None
    result = ring.one
    for k in range(2, n + 1):
        result = ring.multiply(result, ring.value_of(k))
    return result


def _mod(ring, a, b):
    a, b = ring.as_integer(a), ring.as_integer(b)
    if b == 0:
        raise UnsupportedOperation("mod by zero")
    return ring.value_of(a % b)


# Start with the ring prelude and extend it
PRELUDE = {
    **RING_PRELUDE,

    # Number theory
    "gcd": binary_only(_gcd),
    "mod": binary_only(_mod),
    "factorial": unary_only(_factorial),

    # Folds
    "sum": nary_fold(lambda ring, a, b: ring.add(a, b)),
    "prod": nary_fold(lambda ring, a, b: ring.multiply(a, b)),
    "double": unary_only(lambda ring, a: ring.add(a, a)),
}


def main():
    s = Simplifier(prelude=PRELUDE)
    examples = [
        E.fn("gcd", 12, 8),
        E.fn("factorial", 5),
        E.fn("mod", 17, 5),
        E.fn("sum", 1, 2, 3, 4),
        E.fn("double", Fraction(3, 4)),
        E.sum(E.fn("factorial", 3), E.fn("x", 1), E.fn("x", 1)),
        # Symbolic arguments stay symbolic
        E.fn("gcd", E.fn("y", 1), 4),
        # Negative factorial is declined by the handler
        E.fn("factorial", -1),
    ]
    for expr in examples:
        before = s.format(expr)
        print(f"  {before} => {s.format(s.simplify(expr))}")

    # The same prelude works over the integers
    z = Simplifier(ring=IntegerRing(), prelude=PRELUDE)
    print(f"  over Z: {z.format(z.simplify(E.fn('prod', 2, 3, 7)))}")


if __name__ == "__main__":
    main()
