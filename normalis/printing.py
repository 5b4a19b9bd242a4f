"""Text renderings of expression trees besides infix (see nodes.format_expr)."""

from typing import Any, List

from .nodes import Node, NodeKind, format_expr
from .rings import format_rational


def format_sexpr(expr: Any) -> str:
    """
    Format a node (or its to_sexpr() list) as an S-expression string.

    Examples:
        Sum([x(1)], coefficient=3) -> "(+ 3 (x 1))"
        ["/", 1, ["y", 2]]         -> "(/ 1 (y 2))"
    """
    if isinstance(expr, Node):
        expr = expr.to_sexpr()
    if isinstance(expr, list):
        if not expr:
            return "()"
        return "(" + " ".join(format_sexpr(e) for e in expr) + ")"
    return format_rational(expr)


def dump_tree(node: Node, ring=None, indent: str = "  ") -> str:
    """
    Multi-line dump showing kinds, coefficients and nesting.

    Example:
        sum [coefficient 3]
          product [coefficient 2]
            unary-function x
              coefficient 1
    """
    fmt = ring.format if ring is not None else format_rational
    lines: List[str] = []

    def visit(n: Node, depth: int):
        label = n.kind.value
        if n.kind is NodeKind.COEFFICIENT:
            label += " " + fmt(n.value)
        elif n.kind.is_combinator:
            if n.coefficient is not None:
                label += f" [coefficient {fmt(n.coefficient)}]"
        elif n.kind.is_function:
            label += " " + n.name
            if n.sortable:
                label += " (sortable)"
        lines.append(indent * depth + label)
        for child in n.children:
            visit(child, depth + 1)

    visit(node, 0)
    return "\n".join(lines)


def describe(node: Node, ring=None, style: str = "infix") -> str:
    """
    Render a node in one of the supported styles.

    Args:
        style: "infix" (default), "sexpr" or "tree".
    """
    if style == "sexpr":
        return format_sexpr(node)
    if style == "tree":
        return dump_tree(node, ring)
    return format_expr(node, ring)
