"""
Expression nodes for NORMALIS.

An expression is a tree of Node objects:

    Coefficient(value)                 - leaf wrapping a ring value
    Sum(children, coefficient)         - n-ary sum plus an additive accumulator
    Product(children, coefficient)     - n-ary product plus a multiplicative accumulator
    Fraction(numerator, denominator)   - binary, order-sensitive
    UnaryFunction(name, arg)           - f(x)
    BinaryFunction(name, a, b)         - f(x, y), optionally order-insensitive
    NaryFunction(name, args)           - f(x, y, z, ...), three or more arguments

Every node has at most one parent. The parent link is a weak reference,
so it never keeps a tree alive. A node must be detached (or cloned)
before it can be attached somewhere else:

    x = UnaryFunction("x", Coefficient(1))
    s = Sum([x])
    Product([x])            # raises StructureError: x is attached to s
    Product([x.clone()])    # fine

A Sum or Product coefficient of None stands for the ring identity
(0 for sums, 1 for products). Mutation is reserved for the simplifier
and the strategies it runs; everything else should treat trees as
read-only and clone before changing them.
"""

import enum
import fractions
import weakref
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .errors import StructureError
from .rings import format_rational

# Type aliases
ValueFormatter = Callable[[Any], str]


class NodeKind(enum.Enum):
    """The closed set of node variants."""

    COEFFICIENT = "coefficient"
    SUM = "sum"
    PRODUCT = "product"
    FRACTION = "fraction"
    UNARY_FUNCTION = "unary-function"
    BINARY_FUNCTION = "binary-function"
    NARY_FUNCTION = "nary-function"

    @property
    def is_function(self) -> bool:
        return self in FUNCTION_KINDS

    @property
    def is_combinator(self) -> bool:
        return self in (NodeKind.SUM, NodeKind.PRODUCT)


FUNCTION_KINDS = frozenset({
    NodeKind.UNARY_FUNCTION,
    NodeKind.BINARY_FUNCTION,
    NodeKind.NARY_FUNCTION,
})


class Node:
    """
    Base class for expression nodes.

    Subclasses fix the kind and the allowed number of children
    (min_children, max_children). Children are held in a private list
    and exposed as a tuple; use the mutators to change them so parent
    links stay consistent.
    """

    __slots__ = ("_parent", "_children", "__weakref__")

    kind: NodeKind = None
    min_children = 0
    max_children: Optional[int] = 0

    def __init__(self, children: Iterable["Node"] = ()):
        self._parent = None
        self._children: List[Node] = []
        children = list(children)
        self._check_arity(len(children))
        for child in children:
            self._attach(child)
            self._children.append(child)

    # ----------------------------------------------------------------
    # Parent links
    # ----------------------------------------------------------------

    @property
    def parent(self) -> Optional["Node"]:
        """The owning node, or None for a root."""
        if self._parent is None:
            return None
        return self._parent()

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def detach(self) -> bool:
        """
        Remove this node from its parent.

        Returns:
            True if the node was attached, False if it already was a root.
        """
        parent = self.parent
        self._parent = None
        if parent is None:
            return False
        del parent._children[parent._index_of(self)]
        return True

    def _attach(self, child: "Node") -> None:
        if not isinstance(child, Node):
            raise TypeError(f"expected a Node, got {type(child).__name__}")
        if child.parent is not None:
            raise StructureError(
                f"{child!r} is already attached; detach or clone it first"
            )
        ancestor = self
        while ancestor is not None:
            if ancestor is child:
                raise StructureError(f"attaching {child!r} would create a cycle")
            ancestor = ancestor.parent
        child._parent = weakref.ref(self)

    def _index_of(self, child: "Node") -> int:
        for i, c in enumerate(self._children):
            if c is child:
                return i
        raise StructureError(f"{child!r} is not a child of {self!r}")

    def _check_arity(self, n: int) -> None:
        if n < self.min_children or (self.max_children is not None and n > self.max_children):
            if self.max_children is None:
                expected = f"at least {self.min_children}"
            elif self.min_children == self.max_children:
                expected = f"exactly {self.min_children}"
            else:
                expected = f"{self.min_children} to {self.max_children}"
            raise StructureError(
                f"{type(self).__name__} takes {expected} children, got {n}"
            )

    # ----------------------------------------------------------------
    # Children
    # ----------------------------------------------------------------

    @property
    def children(self) -> Tuple["Node", ...]:
        """Read-only view of the children."""
        return tuple(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def child(self, index: int) -> "Node":
        """Get a child by position. Raises IndexError when out of range."""
        if not -len(self._children) <= index < len(self._children):
            raise IndexError(f"child index {index} out of range for {self!r}")
        return self._children[index]

    def replace_child(self, index: int, new: "Node") -> "Node":
        """
        Put new at position index.

        Returns:
            The previous child, now detached.
        """
        old = self.child(index)
        if new is old:
            return old
        self._attach(new)
        old._parent = None
        self._children[index] = new
        return old

    def append_child(self, node: "Node") -> "Node":
        if self.max_children is not None and len(self._children) >= self.max_children:
            raise StructureError(f"{type(self).__name__} cannot take another child")
        self._attach(node)
        self._children.append(node)
        return self

    def remove_child(self, index: int) -> "Node":
        """Remove and return the child at index, detached."""
        child = self.child(index)
        child.detach()
        return child

    def take_children(self) -> List["Node"]:
        """
        Detach every child and return them in order.

        The node is left empty; refill it with set_children().
        """
        taken = self._children
        self._children = []
        for child in taken:
            child._parent = None
        return taken

    def set_children(self, children: Iterable["Node"]) -> "Node":
        """Replace all children. Old children are detached."""
        children = list(children)
        self._check_arity(len(children))
        self.take_children()
        for child in children:
            self._attach(child)
            self._children.append(child)
        return self

    def sort_children(self, key: Callable[["Node"], Any]) -> "Node":
        """Sort children in place when the node is order-insensitive."""
        if self.sortable:
            self._children.sort(key=key)
        return self

    @property
    def sortable(self) -> bool:
        """True when child order carries no meaning."""
        return False

    # ----------------------------------------------------------------
    # Copying and equality
    # ----------------------------------------------------------------

    def clone(self) -> "Node":
        """Deep copy with fresh identity. The copy is a root."""
        raise NotImplementedError

    def structurally_equal(self, other: "Node", ring) -> bool:
        """
        Compare two trees using ring.is_equal for coefficient values.

        Children of order-insensitive nodes are matched as multisets.
        """
        if not isinstance(other, Node) or self.kind is not other.kind:
            return False
        if not self._same_payload(other, ring):
            return False
        if len(self._children) != len(other._children):
            return False
        if not self.sortable:
            return all(a.structurally_equal(b, ring)
                       for a, b in zip(self._children, other._children))
        unmatched = list(other._children)
        for a in self._children:
            for i, b in enumerate(unmatched):
                if a.structurally_equal(b, ring):
                    del unmatched[i]
                    break
            else:
                return False
        return True

    def _same_payload(self, other: "Node", ring) -> bool:
        return True

    def walk(self):
        """Yield this node and all descendants, pre-order."""
        yield self
        for child in self._children:
            yield from child.walk()

    def size(self) -> int:
        """Number of nodes in the tree."""
        return sum(1 for _ in self.walk())

    # ----------------------------------------------------------------
    # Rendering
    # ----------------------------------------------------------------

    def to_sexpr(self) -> Any:
        """Nested-list form, e.g. ["+", 3, ["*", 2, ["x", 1]]]."""
        raise NotImplementedError

    def __str__(self) -> str:
        return format_expr(self)


class Coefficient(Node):
    """An immutable leaf holding a ring value."""

    __slots__ = ("_value",)

    kind = NodeKind.COEFFICIENT

    def __init__(self, value: Any):
        if isinstance(value, Node):
            raise TypeError("Coefficient wraps a ring value, not a Node")
        super().__init__()
        self._value = value

    @property
    def value(self) -> Any:
        return self._value

    def clone(self) -> "Coefficient":
        return Coefficient(self._value)

    def _same_payload(self, other: "Coefficient", ring) -> bool:
        return ring.is_equal(self._value, other._value)

    def to_sexpr(self) -> Any:
        return _plain(self._value)

    def __repr__(self) -> str:
        return f"Coefficient({self._value!r})"


class _Combinator(Node):
    """Shared behavior of Sum and Product."""

    __slots__ = ("_coefficient",)

    min_children = 0
    max_children = None
    symbol = "?"

    def __init__(self, children: Iterable[Node] = (), coefficient: Any = None):
        super().__init__(children)
        self._coefficient = coefficient

    @property
    def coefficient(self) -> Any:
        """The accumulator value, or None when it is the identity."""
        return self._coefficient

    def identity(self, ring) -> Any:
        raise NotImplementedError

    def is_identity(self, value: Any, ring) -> bool:
        raise NotImplementedError

    def coefficient_or_identity(self, ring) -> Any:
        if self._coefficient is None:
            return self.identity(ring)
        return self._coefficient

    def set_coefficient(self, value: Any, ring=None) -> "_Combinator":
        """
        Set the accumulator.

        With a ring given, a value equal to the identity is stored as None.
        """
        if value is not None and ring is not None and self.is_identity(value, ring):
            value = None
        self._coefficient = value
        return self

    @property
    def sortable(self) -> bool:
        return True

    def clone(self) -> "_Combinator":
        return type(self)([c.clone() for c in self._children], self._coefficient)

    def _same_payload(self, other: "_Combinator", ring) -> bool:
        return ring.is_equal(self.coefficient_or_identity(ring),
                             other.coefficient_or_identity(ring))

    def to_sexpr(self) -> Any:
        head = [self.symbol]
        if self._coefficient is not None:
            head.append(_plain(self._coefficient))
        return head + [c.to_sexpr() for c in self._children]

    def __repr__(self) -> str:
        inner = ", ".join(repr(c) for c in self._children)
        if self._coefficient is None:
            return f"{type(self).__name__}([{inner}])"
        return f"{type(self).__name__}([{inner}], coefficient={self._coefficient!r})"


class Sum(_Combinator):
    """n-ary sum: coefficient + child0 + child1 + ..."""

    __slots__ = ()

    kind = NodeKind.SUM
    symbol = "+"

    def identity(self, ring) -> Any:
        return ring.zero

    def is_identity(self, value: Any, ring) -> bool:
        return ring.is_zero(value)


class Product(_Combinator):
    """n-ary product: coefficient * child0 * child1 * ..."""

    __slots__ = ()

    kind = NodeKind.PRODUCT
    symbol = "*"

    def identity(self, ring) -> Any:
        return ring.one

    def is_identity(self, value: Any, ring) -> bool:
        return ring.is_one(value)


class Fraction(Node):
    """numerator / denominator. Order-sensitive, no coefficient."""

    __slots__ = ()

    kind = NodeKind.FRACTION
    min_children = 2
    max_children = 2

    def __init__(self, numerator: Node, denominator: Node):
        super().__init__((numerator, denominator))

    @property
    def numerator(self) -> Node:
        return self.child(0)

    @property
    def denominator(self) -> Node:
        return self.child(1)

    def clone(self) -> "Fraction":
        return Fraction(self.numerator.clone(), self.denominator.clone())

    def to_sexpr(self) -> Any:
        return ["/", self.numerator.to_sexpr(), self.denominator.to_sexpr()]

    def __repr__(self) -> str:
        return f"Fraction({self.numerator!r}, {self.denominator!r})"


class Function(Node):
    """
    Named function application.

    Use function(name, *args) to pick the right subclass by arity.
    """

    __slots__ = ("_name", "_sortable")

    def __init__(self, name: str, args: Iterable[Node], sortable: bool = False):
        if not name:
            raise StructureError("function name must be non-empty")
        super().__init__(args)
        self._name = name
        self._sortable = sortable

    @property
    def name(self) -> str:
        return self._name

    @property
    def args(self) -> Tuple[Node, ...]:
        return self.children

    @property
    def sortable(self) -> bool:
        return self._sortable

    def clone(self) -> "Function":
        return function(self._name, *[c.clone() for c in self._children],
                        sortable=self._sortable)

    def _same_payload(self, other: "Function", ring) -> bool:
        return self._name == other._name and self._sortable == other._sortable

    def to_sexpr(self) -> Any:
        return [self._name] + [c.to_sexpr() for c in self._children]

    def __repr__(self) -> str:
        inner = ", ".join(repr(c) for c in self._children)
        return f"{type(self).__name__}({self._name!r}, [{inner}])"


class UnaryFunction(Function):
    __slots__ = ()

    kind = NodeKind.UNARY_FUNCTION
    min_children = 1
    max_children = 1

    def __init__(self, name: str, arg: Node):
        super().__init__(name, (arg,))

    @property
    def arg(self) -> Node:
        return self.child(0)


class BinaryFunction(Function):
    __slots__ = ()

    kind = NodeKind.BINARY_FUNCTION
    min_children = 2
    max_children = 2

    def __init__(self, name: str, left: Node, right: Node, sortable: bool = False):
        super().__init__(name, (left, right), sortable)


class NaryFunction(Function):
    __slots__ = ()

    kind = NodeKind.NARY_FUNCTION
    min_children = 3
    max_children = None


def function(name: str, *args: Node, sortable: bool = False) -> Function:
    """
    Build a function application of the right kind for len(args).

    Raises:
        StructureError: With no arguments.
    """
    if len(args) == 0:
        raise StructureError(f"function {name!r} needs at least one argument")
    if len(args) == 1:
        return UnaryFunction(name, args[0])
    if len(args) == 2:
        return BinaryFunction(name, args[0], args[1], sortable=sortable)
    return NaryFunction(name, args, sortable=sortable)


# ============================================================
# Infix rendering
# ============================================================

def _plain(value: Any) -> Any:
    """Turn whole-number Fractions into ints for display."""
    if isinstance(value, fractions.Fraction) and value.denominator == 1:
        return value.numerator
    return value


def _bracket(text: str) -> str:
    return f"({text})"


def _compound(text: str) -> bool:
    return " " in text or "/" in text


def _needs_brackets(text: str) -> bool:
    return _compound(text) or text.startswith("-")


def format_expr(node: Node, ring=None) -> str:
    """
    Render a tree as infix text, e.g. "2*x(1) + 3".

    Args:
        node: Tree to render.
        ring: Optional ring whose format() renders coefficient values.
    """
    fmt: ValueFormatter = ring.format if ring is not None else format_rational

    def render(n: Node) -> str:
        if n.kind is NodeKind.COEFFICIENT:
            return fmt(n.value)

        if n.kind is NodeKind.SUM:
            terms = [render(c) for c in n.children]
            if n.coefficient is not None:
                terms.append(fmt(n.coefficient))
            if not terms:
                return "0"
            text = terms[0]
            for term in terms[1:]:
                if term.startswith("-"):
                    text += " - " + term[1:]
                else:
                    text += " + " + term
            return text

        if n.kind is NodeKind.PRODUCT:
            factors = []
            for c in n.children:
                s = render(c)
                if c.kind in (NodeKind.SUM, NodeKind.FRACTION) or (
                        c.kind is NodeKind.COEFFICIENT and _needs_brackets(s)):
                    s = _bracket(s)
                factors.append(s)
            body = "*".join(factors) if factors else "1"
            if n.coefficient is None:
                return body
            coef = fmt(n.coefficient)
            if not factors:
                return coef
            if coef == "-1":
                return "-" + body
            if _compound(coef):
                coef = _bracket(coef)
            return f"{coef}*{body}"

        if n.kind is NodeKind.FRACTION:
            num = render(n.numerator)
            den = render(n.denominator)
            if n.numerator.kind in (NodeKind.SUM, NodeKind.FRACTION) or (
                    n.numerator.kind is NodeKind.COEFFICIENT and _compound(num)):
                num = _bracket(num)
            if n.denominator.kind in (NodeKind.SUM, NodeKind.PRODUCT, NodeKind.FRACTION) or (
                    n.denominator.kind is NodeKind.COEFFICIENT and _needs_brackets(den)):
                den = _bracket(den)
            return f"{num}/{den}"

        args = ", ".join(render(c) for c in n.children)
        return f"{n.name}({args})"

    return render(node)
