"""
Exception types for NORMALIS.

Three kinds of trouble exist in the engine:

    UnsupportedOperation - a ring cannot complete an exact operation
                           (usually division). Always caught inside the
                           engine and answered with a fallback.
    StructureError       - a programmer error against the tree or the
                           registry. Raised eagerly, never recovered.
    non-termination      - not an exception. Strategies must shrink the
                           expression on every accepted rewrite.
"""


class NormalisError(Exception):
    """Base class for all NORMALIS errors."""


class UnsupportedOperation(NormalisError, ArithmeticError):
    """A ring operation has no exact result (e.g. 1/3 over the integers)."""


class StructureError(NormalisError, ValueError):
    """A tree or registry precondition was violated."""


class StrategyError(StructureError):
    """A strategy is malformed or clashes with one already registered."""


class RegistryFrozenError(StrategyError):
    """Registration was attempted on a frozen registry."""
