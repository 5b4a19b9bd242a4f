"""
Strategy registry for NORMALIS.

A strategy is a pluggable rewrite rule. It declares which nodes it is
for and which capability tags gate it:

    kinds          - node kinds it applies to (None: any kind)
    function_name  - narrow to function applications with this name
    tags           - fire only when the active tag set intersects these

Lookup order for a node (first strategy that changes the node wins):

    1. strategies for the node's kind and its function name
    2. strategies for the node's kind, no name restriction
    3. tag-gated strategies with no kind restriction
    4. fully general strategies

Within a tier strategies run in registration order.

Writing strategies:
    Subclass Strategy and override the hook for the kinds you handle
    (rewrite_sum, rewrite_product, rewrite_fraction, rewrite_function,
    rewrite_coefficient), or decorate a plain function with @strategy.
    A hook returns None when it leaves the node alone; otherwise it
    returns the rewritten node, which may be the same node changed in
    place or a new detached node. Children and the node itself may be
    reused freely: the simplifier hands strategies detached trees.

    Every accepted rewrite must make the expression strictly smaller by
    some well-founded measure (node count, nesting depth, number of
    fractions). A strategy that does not will loop forever; nothing
    guards against it at run time.

Example:
    @strategy("double-negate", kinds=NodeKind.UNARY_FUNCTION,
              function_name="negate")
    def double_negate(node, ctx):
        inner = node.arg
        if inner.kind is NodeKind.UNARY_FUNCTION and inner.name == "negate":
            return inner.take_children()[0]
        return None

    registry = StrategyRegistry().register(double_negate)
"""

import logging
from typing import (
    Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple, Union,
)

from .errors import RegistryFrozenError, StrategyError, UnsupportedOperation
from .nodes import FUNCTION_KINDS, Node, NodeKind

logger = logging.getLogger(__name__)

# Type aliases
KindsType = Union[None, NodeKind, Iterable[NodeKind]]
TagsType = Iterable[str]
RewriteFunc = Callable[[Node, object], Optional[Node]]

_UNSET = object()

ALL_KINDS = frozenset(NodeKind)


class Strategy:
    """
    Base class for rewrite strategies.

    Class attributes give the defaults; constructor arguments override
    them, so simple strategies can be declared entirely at class level.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    kinds: Optional[FrozenSet[NodeKind]] = None
    function_name: Optional[str] = None
    tags: FrozenSet[str] = frozenset()

    def __init__(self, name: Optional[str] = None, kinds: KindsType = _UNSET,
                 function_name: Optional[str] = None, tags: Optional[TagsType] = None,
                 description: Optional[str] = None):
        if name is not None:
            self.name = name
        if kinds is not _UNSET:
            self.kinds = kinds
        if function_name is not None:
            self.function_name = function_name
        if tags is not None:
            self.tags = tags
        if description is not None:
            self.description = description
        self._validate()

    def _validate(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise StrategyError(f"{type(self).__name__} needs a non-empty name")

        kinds = self.kinds
        if isinstance(kinds, NodeKind):
            kinds = frozenset({kinds})
        elif kinds is not None:
            kinds = frozenset(kinds)
            if not kinds:
                raise StrategyError(f"strategy {self.name!r} applies to no node kinds")
            bad = [k for k in kinds if not isinstance(k, NodeKind)]
            if bad:
                raise StrategyError(f"strategy {self.name!r} has invalid kinds {bad!r}")

        if self.function_name is not None:
            if kinds is None:
                kinds = FUNCTION_KINDS
            elif not kinds <= FUNCTION_KINDS:
                raise StrategyError(
                    f"strategy {self.name!r} names function {self.function_name!r} "
                    f"but applies to non-function kinds"
                )
        self.kinds = kinds

        if isinstance(self.tags, str):
            raise StrategyError(f"strategy {self.name!r}: tags must be a collection of strings")
        self.tags = frozenset(self.tags)

    # ----------------------------------------------------------------
    # Eligibility
    # ----------------------------------------------------------------

    def is_active(self, active_tags: Optional[Set[str]]) -> bool:
        """Untagged strategies are always active; tagged ones need a shared tag."""
        if not self.tags:
            return True
        return bool(active_tags) and not self.tags.isdisjoint(active_tags)

    @property
    def tier(self) -> int:
        if self.function_name is not None:
            return 1
        if self.kinds is not None:
            return 2
        if self.tags:
            return 3
        return 4

    # ----------------------------------------------------------------
    # Hooks
    # ----------------------------------------------------------------

    def rewrite(self, node: Node, ctx) -> Optional[Node]:
        """Dispatch to the hook for the node's kind."""
        kind = node.kind
        if kind is NodeKind.SUM:
            return self.rewrite_sum(node, ctx)
        if kind is NodeKind.PRODUCT:
            return self.rewrite_product(node, ctx)
        if kind is NodeKind.FRACTION:
            return self.rewrite_fraction(node, ctx)
        if kind is NodeKind.COEFFICIENT:
            return self.rewrite_coefficient(node, ctx)
        return self.rewrite_function(node, ctx)

    def rewrite_sum(self, node, ctx) -> Optional[Node]:
        return None

    def rewrite_product(self, node, ctx) -> Optional[Node]:
        return None

    def rewrite_fraction(self, node, ctx) -> Optional[Node]:
        return None

    def rewrite_function(self, node, ctx) -> Optional[Node]:
        return None

    def rewrite_coefficient(self, node, ctx) -> Optional[Node]:
        return None

    def __repr__(self) -> str:
        parts = [repr(self.name)]
        if self.kinds is not None:
            parts.append("kinds=" + ",".join(sorted(k.value for k in self.kinds)))
        if self.function_name:
            parts.append(f"function={self.function_name}")
        if self.tags:
            parts.append("tags=" + ",".join(sorted(self.tags)))
        return f"{type(self).__name__}({', '.join(parts)})"


class FunctionStrategy(Strategy):
    """A strategy wrapping a plain callable fn(node, ctx) -> Optional[Node]."""

    def __init__(self, func: RewriteFunc, name: Optional[str] = None, **kwargs):
        self.func = func
        if kwargs.get("description") is None and func.__doc__:
            kwargs["description"] = func.__doc__.strip().splitlines()[0]
        super().__init__(name=name or func.__name__.replace("_", "-"), **kwargs)

    def rewrite(self, node: Node, ctx) -> Optional[Node]:
        return self.func(node, ctx)


def strategy(name: Optional[str] = None, kinds: KindsType = None,
             function_name: Optional[str] = None, tags: Optional[TagsType] = None,
             description: Optional[str] = None) -> Callable[[RewriteFunc], FunctionStrategy]:
    """
    Decorator turning fn(node, ctx) into a FunctionStrategy.

    Example:
        @strategy("drop-unit-fraction", kinds=NodeKind.FRACTION)
        def drop_unit(node, ctx):
            ...
    """
    def wrap(func: RewriteFunc) -> FunctionStrategy:
        return FunctionStrategy(func, name=name, kinds=kinds, function_name=function_name,
                                tags=tags, description=description)
    return wrap


class StrategyRegistry:
    """
    Ordered, indexed collection of strategies.

    Build it once, then freeze it; a Simplifier freezes the registry it
    is given. Frozen registries are safe to share between threads.

    Example:
        registry = StrategyRegistry().register(FlattenAndAbsorb()).freeze()
        node, applied = registry.apply_once(node, {"algebra"}, simplifier)
    """

    def __init__(self, strategies: Optional[Iterable[Strategy]] = None):
        self._strategies: List[Strategy] = []
        self._by_name: Dict[str, Strategy] = {}
        self._by_kind_name: Dict[Tuple[NodeKind, str], List[Strategy]] = {}
        self._by_kind: Dict[NodeKind, List[Strategy]] = {}
        self._tagged: List[Strategy] = []
        self._general: List[Strategy] = []
        self._frozen = False
        if strategies is not None:
            self.register_all(strategies)

    def register(self, strategy: Strategy) -> 'StrategyRegistry':
        """
        Add a strategy after all existing ones.

        Raises:
            RegistryFrozenError: If the registry is frozen.
            StrategyError: If the strategy is malformed or its name is taken.
        """
        if self._frozen:
            raise RegistryFrozenError(f"cannot register {strategy.name!r}: registry is frozen")
        if not isinstance(strategy, Strategy):
            raise StrategyError(f"expected a Strategy, got {type(strategy).__name__}")
        if strategy.name in self._by_name:
            raise StrategyError(f"a strategy named {strategy.name!r} is already registered")

        self._strategies.append(strategy)
        self._by_name[strategy.name] = strategy
        if strategy.function_name is not None:
            for kind in strategy.kinds:
                self._by_kind_name.setdefault((kind, strategy.function_name), []).append(strategy)
        elif strategy.kinds is not None:
            for kind in strategy.kinds:
                self._by_kind.setdefault(kind, []).append(strategy)
        elif strategy.tags:
            self._tagged.append(strategy)
        else:
            self._general.append(strategy)
        logger.debug("registered strategy %r (tier %d)", strategy.name, strategy.tier)
        return self

    def register_all(self, strategies: Iterable[Strategy]) -> 'StrategyRegistry':
        for s in strategies:
            self.register(s)
        return self

    def freeze(self) -> 'StrategyRegistry':
        """Disallow further registration."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def candidates(self, node: Node) -> List[Strategy]:
        """Strategies declared for this node in tier order, ignoring tags."""
        found: List[Strategy] = []
        if node.kind.is_function:
            found.extend(self._by_kind_name.get((node.kind, node.name), ()))
        found.extend(self._by_kind.get(node.kind, ()))
        found.extend(self._tagged)
        found.extend(self._general)
        return found

    def applicable(self, node: Node, tags: Optional[Iterable[str]] = None) -> List[Strategy]:
        """Strategies eligible for node under the active tags, in the order they are tried."""
        active = set(tags) if tags is not None else set()
        return [s for s in self.candidates(node) if s.is_active(active)]

    def apply_once(self, node: Node, tags: Optional[Iterable[str]],
                   ctx) -> Tuple[Node, Optional[Strategy]]:
        """
        Run the first strategy that changes the node.

        Args:
            node: Detached node to rewrite.
            tags: Active capability tags.
            ctx: Simplification context (provides ring and reduce()).

        Returns:
            Tuple of (result, strategy) where strategy is None if nothing applied.
        """
        for s in self.applicable(node, tags):
            try:
                result = s.rewrite(node, ctx)
            except UnsupportedOperation as exc:
                logger.debug("strategy %r skipped: %s", s.name, exc)
                continue
            if result is not None:
                return result, s
        return node, None

    def apply(self, node: Node, tags: Optional[Iterable[str]], ctx) -> Node:
        """Like apply_once(), returning only the node."""
        return self.apply_once(node, tags, ctx)[0]

    @property
    def strategies(self) -> List[Strategy]:
        return list(self._strategies)

    @property
    def tags(self) -> Set[str]:
        """All tags used by registered strategies."""
        result: Set[str] = set()
        for s in self._strategies:
            result |= s.tags
        return result

    def names(self) -> List[str]:
        return [s.name for s in self._strategies]

    def copy(self) -> 'StrategyRegistry':
        """An unfrozen copy holding the same strategies."""
        return StrategyRegistry(self._strategies)

    def __or__(self, other: 'StrategyRegistry') -> 'StrategyRegistry':
        """Union: strategies of self, then those of other not already present."""
        result = self.copy()
        for s in other:
            if result._by_name.get(s.name) is s:
                continue
            result.register(s)
        return result

    def __len__(self) -> int:
        return len(self._strategies)

    def __iter__(self) -> Iterator[Strategy]:
        return iter(self._strategies)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> Strategy:
        if name not in self._by_name:
            raise KeyError(f"No strategy named '{name}'")
        return self._by_name[name]

    def __repr__(self) -> str:
        state = ", frozen" if self._frozen else ""
        return f"StrategyRegistry({len(self._strategies)} strategies{state})"
