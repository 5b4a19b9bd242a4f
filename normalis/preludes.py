"""
Function evaluation preludes.

A prelude maps a function name to a handler that evaluates the function
when all of its arguments are coefficient leaves:

    handler(ring, values) -> value or None

Handlers do all arithmetic through the ring and return None when they
cannot evaluate (wrong arity, unsupported argument). An
UnsupportedOperation raised by a handler is treated the same way.

The default simplifier registers one evaluation strategy per prelude
entry. Pass prelude=NO_PRELUDE to keep known functions symbolic, or
build your own:

    MY_PRELUDE = {
        **RING_PRELUDE,
        "double": unary_only(lambda ring, a: ring.add(a, a)),
    }
    simplifier = Simplifier(prelude=MY_PRELUDE)
"""

from typing import Any, Callable, Dict, List, Optional

# Type aliases
ValueType = Any
FoldHandler = Callable[[Any, List[ValueType]], Optional[ValueType]]
PreludeType = Dict[str, FoldHandler]

# Largest |exponent| pow() evaluates
MAX_EXPONENT = 4096


def nary_fold(binary_op: Callable[[Any, ValueType, ValueType], ValueType]) -> FoldHandler:
    """Create an n-ary folder: f(a, b, c) = op(op(a, b), c).

    Examples:
        nary_fold(lambda ring, a, b: ring.add(a, b))   # sum of all arguments
    """
    def handler(ring, args: List[ValueType]) -> Optional[ValueType]:
        if not args:
            return None
        result = args[0]
        for a in args[1:]:
            result = binary_op(ring, result, a)
        return result
    return handler


def unary_only(f: Callable[[Any, ValueType], ValueType]) -> FoldHandler:
    """Create a unary-only folder (e.g., abs, negate)."""
    def handler(ring, args: List[ValueType]) -> Optional[ValueType]:
        if len(args) != 1:
            return None
        return f(ring, args[0])
    return handler


def binary_only(f: Callable[[Any, ValueType, ValueType], ValueType]) -> FoldHandler:
    """Create a binary-only folder (e.g., pow)."""
    def handler(ring, args: List[ValueType]) -> Optional[ValueType]:
        if len(args) != 2:
            return None
        return f(ring, args[0], args[1])
    return handler


def _abs(ring, a):
    return ring.negate(a) if ring.sign(a) < 0 else a


def _reciprocal(ring, a):
    return ring.divide(ring.one, a)


def _pow(ring, base, exponent):
    """
    Integer powers by repeated squaring. Negative exponents need a reciprocal.

    Exponents beyond MAX_EXPONENT are left unevaluated.
    """
    n = ring.as_integer(exponent)
    if abs(n) > MAX_EXPONENT:
        return None
    if n < 0:
        base = _reciprocal(ring, base)
        n = -n
    result = ring.one
    while n:
        if n & 1:
            result = ring.multiply(result, base)
        base = ring.multiply(base, base)
        n >>= 1
    return result


def _min(ring, a, b):
    return a if ring.compare(a, b) <= 0 else b


def _max(ring, a, b):
    return a if ring.compare(a, b) >= 0 else b


# Ring prelude: functions every ring can evaluate exactly
RING_PRELUDE: PreludeType = {
    "abs": unary_only(_abs),
    "negate": unary_only(lambda ring, a: ring.negate(a)),
    "reciprocal": unary_only(_reciprocal),
    "pow": binary_only(_pow),
    "min": nary_fold(_min),
    "max": nary_fold(_max),
}

# No prelude: every function stays symbolic
NO_PRELUDE: PreludeType = {}
