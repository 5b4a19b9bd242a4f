#!/usr/bin/env python3
"""
NORMALIS Feature Demonstration

This script demonstrates the major features of the NORMALIS library.
"""

import logging
from fractions import Fraction

from normalis import (
    E, Simplifier, PolynomialRing, IntegerRing, Product,
    NO_PRELUDE, TAG_EXPAND, default_registry, strategy,
    format_sexpr, dump_tree,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def x():
    return E.fn("x", 1)


def y():
    return E.fn("y", 1)


def demo_basic_usage():
    """Demonstrate basic simplification."""
    section("Basic Usage")

    s = Simplifier()
    examples = [
        E.sum(E.product(x(), coeff=1), E.product(x(), coeff=1), E.sum(coeff=3), coeff=0),
        E.product(x(), E.sum(coeff=0), y()),
        E.sum(x(), E.product(x(), coeff=-1)),
        E.frac(6, 4),
        E.sum(E.frac(x(), 2), E.frac(x(), 2)),
        E.product(x(), E.fn("pow", x(), 2), E.fn("sqr", y()), y()),
    ]

    for expr in examples:
        before = s.format(expr)
        print(f"  {before} => {s.format(s.simplify(expr))}")


def demo_canonical_order():
    """Demonstrate that commutative reorderings meet."""
    section("Canonical Order")

    s = Simplifier()
    a = E.sum(y(), E.fn("min", 3, x()), x())
    b = E.sum(x(), E.fn("min", x(), 3), y())
    print(f"  a = {s.format(a)}")
    print(f"  b = {s.format(b)}")
    print(f"  equivalent: {s.equivalent(a, b)}")
    print(f"  canonical:  {s.format(s.simplify(a))}")


def demo_tags():
    """Demonstrate capability tags."""
    section("Capability Tags")

    expr = E.product(E.sum(x(), 1), E.sum(y(), 2))
    s = Simplifier()
    print(f"  Expression: {s.format(expr)}")
    print(f"  Default tags {sorted(s.tags)}: {s.format(s.simplify(expr.clone()))}")

    expanding = s.copy().enable_tag(TAG_EXPAND)
    print(f"  With [{TAG_EXPAND}]: {expanding.format(expanding.simplify(expr.clone()))}")

    structural = s.with_tags()
    half = E.frac(E.product(x(), coeff=2), 4)
    print(f"\n  Expression: {s.format(half)}")
    print(f"  No tags: {structural.format(structural.simplify(half.clone()))}")
    print(f"  Default: {s.format(s.simplify(half))}")


def demo_evaluation():
    """Demonstrate prelude evaluation and inverse cancellation."""
    section("Function Evaluation")

    expr = E.fn("pow", E.fn("abs", -2), E.fn("max", 1, 3))
    s = Simplifier()
    print(f"  {s.format(expr)} => {s.format(s.simplify(expr.clone()))}")

    symbolic = Simplifier(prelude=NO_PRELUDE)
    print(f"  without prelude => {symbolic.format(symbolic.simplify(expr))}")

    inverse = E.fn("exp", E.fn("ln", E.sum(x(), x())))
    print(f"  {s.format(inverse)} => {s.format(s.simplify(inverse))}")


def demo_custom_strategy():
    """Demonstrate registering a user strategy."""
    section("Custom Strategy")

    @strategy(function_name="square")
    def expand_square(node, ctx):
        """square(a) -> a*a"""
        arg = node.take_children()[0]
        return Product([arg, arg.clone()])

    registry = default_registry(extra=[expand_square])
    s = Simplifier(registry=registry)
    print(f"  Registered: {s.registry['expand-square'].description}")

    expr = E.sum(E.fn("square", x()), E.fn("square", 3))
    print(f"  {s.format(expr)} => {s.format(s.simplify(expr))}")


def demo_tracing():
    """Demonstrate trace formatting."""
    section("Tracing")

    s = Simplifier()
    expr = E.sum(E.frac(x(), 2), E.frac(x(), 2), E.product(y(), coeff=0))
    result, trace = s.simplify(expr, trace=True)

    print("  Verbose format (default):")
    for line in str(trace).split('\n'):
        print(f"    {line}")

    print(f"  Rules: {trace.format('rules')}")
    print(f"  Summary: {trace.summary()}")


def demo_rings():
    """Demonstrate different coefficient rings."""
    section("Coefficient Rings")

    expr = E.frac(6, 4)
    z = Simplifier(ring=IntegerRing())
    q = Simplifier()
    print(f"  over Z: 6/4 => {z.format(z.simplify(expr.clone()))}")
    print(f"  over Q: 6/4 => {q.format(q.simplify(expr))}")

    ring = PolynomialRing("x")
    p = Simplifier(ring=ring)
    frac = E.frac(ring.value_of("x**2 - 1"), ring.value_of("x**2 + 2*x + 1"))
    print(f"  over Q[x]: {p.format(frac)} => {p.format(p.simplify(frac))}")


def demo_renderings():
    """Demonstrate the text renderings."""
    section("Renderings")

    expr = E.sum(E.product(x(), coeff=Fraction(1, 2)), E.fn("f", y(), 2), coeff=3)
    print(f"  infix: {Simplifier().format(expr)}")
    print(f"  sexpr: {format_sexpr(expr)}")
    print("  tree:")
    for line in dump_tree(expr).split('\n'):
        print(f"    {line}")

    rebuilt = E(expr.to_sexpr())
    print(f"  rebuilt from to_sexpr(): {format_sexpr(rebuilt)}")


def main():
    """Run all demonstrations."""
    logging.basicConfig(level=logging.WARNING)

    print("NORMALIS - Canonical Simplification of Expression Trees")
    print("Feature Demonstration")

    demo_basic_usage()
    demo_canonical_order()
    demo_tags()
    demo_evaluation()
    demo_custom_strategy()
    demo_tracing()
    demo_rings()
    demo_renderings()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
