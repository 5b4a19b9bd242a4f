"""
NORMALIS - canonical forms for symbolic expressions

Builds expression trees (sums, products, fractions, function
applications over a coefficient ring) and rewrites them into a unique
normal form, so two expressions can be compared by simplifying both and
comparing the results structurally.

Quick Start:
    from normalis import E, Simplifier

    x = E.fn("x", 1)
    expr = E.sum(E.product(x, coeff=1), E.product(x.clone(), coeff=1), E.sum(coeff=3), coeff=0)

    result = Simplifier().simplify(expr)
    str(result)  # => "2*x(1) + 3"

Node kinds:
    Coefficient       - ring value leaf
    Sum, Product      - n-ary, order-insensitive, with an accumulator coefficient
    Fraction          - numerator / denominator
    UnaryFunction, BinaryFunction, NaryFunction
                      - named function application

Rings:
    RationalRing (default), IntegerRing, PolynomialRing (SymPy)

Strategies:
    Rewrites are pluggable. Register Strategy subclasses or @strategy
    functions in a StrategyRegistry and pass it to Simplifier(registry=...).
    Capability tags switch groups of strategies on and off:

    simplifier = Simplifier().enable_tag("expand")
"""

__version__ = "0.1.0"
__author__ = "spinoza"

# Errors
from .errors import (
    NormalisError,
    UnsupportedOperation,
    StructureError,
    StrategyError,
    RegistryFrozenError,
)

# Rings
from .rings import Ring, IntegerRing, RationalRing
from .polynomials import PolynomialRing

# Node model
from .nodes import (
    NodeKind,
    Node,
    Coefficient,
    Sum,
    Product,
    Fraction,
    Function,
    UnaryFunction,
    BinaryFunction,
    NaryFunction,
    function,
    format_expr,
)

# Ordering
from .comparator import Comparator, sort_key

# Strategies
from .registry import Strategy, FunctionStrategy, StrategyRegistry, strategy
from .preludes import (
    FoldHandler,
    PreludeType,
    nary_fold,
    unary_only,
    binary_only,
    RING_PRELUDE,
    NO_PRELUDE,
)
from .strategies import (
    TAG_ALGEBRA,
    TAG_PRIMARY_FUNCTION,
    TAG_EXPAND,
    DEFAULT_TAGS,
    FlattenAndAbsorb,
    CollectLikeTerms,
    MultiplyFractions,
    CombineLikeDenominators,
    CancelCommonFactors,
    DivideByCoefficient,
    Expand,
    CollectLikeFactors,
    CancelCommonPowers,
    FoldPower,
    SquareRootToPower,
    CancelInverse,
    EvaluateFunction,
    builtin_strategies,
    power_strategies,
    default_registry,
)

# Driver
from .simplifier import Simplifier, simplify, structurally_equal, compare
from .trace import RewriteStep, RewriteTrace

# Construction and rendering
from .builder import E
from .printing import format_sexpr, dump_tree

# Public API
__all__ = [
    # Version
    "__version__",
    # Errors
    "NormalisError",
    "UnsupportedOperation",
    "StructureError",
    "StrategyError",
    "RegistryFrozenError",
    # Rings
    "Ring",
    "IntegerRing",
    "RationalRing",
    "PolynomialRing",
    # Nodes
    "NodeKind",
    "Node",
    "Coefficient",
    "Sum",
    "Product",
    "Fraction",
    "Function",
    "UnaryFunction",
    "BinaryFunction",
    "NaryFunction",
    "function",
    "format_expr",
    "Comparator",
    "sort_key",
    # Strategies
    "Strategy",
    "FunctionStrategy",
    "StrategyRegistry",
    "strategy",
    "TAG_ALGEBRA",
    "TAG_PRIMARY_FUNCTION",
    "TAG_EXPAND",
    "DEFAULT_TAGS",
    "FlattenAndAbsorb",
    "CollectLikeTerms",
    "MultiplyFractions",
    "CombineLikeDenominators",
    "CancelCommonFactors",
    "DivideByCoefficient",
    "Expand",
    "CollectLikeFactors",
    "CancelCommonPowers",
    "FoldPower",
    "SquareRootToPower",
    "CancelInverse",
    "EvaluateFunction",
    "builtin_strategies",
    "power_strategies",
    "default_registry",
    # Preludes
    "FoldHandler",
    "PreludeType",
    "nary_fold",
    "unary_only",
    "binary_only",
    "RING_PRELUDE",
    "NO_PRELUDE",
    # Driver
    "Simplifier",
    "simplify",
    "structurally_equal",
    "compare",
    "RewriteStep",
    "RewriteTrace",
    # Construction and rendering
    "E",
    "format_sexpr",
    "dump_tree",
]
