"""Rewrite traces: which strategies fired, in what order, on what."""

from collections import Counter
from typing import Dict, List, NamedTuple, Optional

from .nodes import NodeKind


class RewriteStep(NamedTuple):
    """One accepted rewrite, rendered when it ran.

    The nodes keep changing after a step, so only their infix text is kept.
    """
    strategy_name: str
    kind: NodeKind
    before: str
    after: str

    def __str__(self) -> str:
        return f"{self.strategy_name} on {self.kind.value}: {self.before} => {self.after}"

    def to_dict(self) -> Dict:
        data = self._asdict()
        data["kind"] = self.kind.value
        return data


class RewriteTrace:
    """
    Accepted rewrites of one simplify() call, innermost first.

    Example:
        result, trace = Simplifier().simplify(expr, trace=True)
        print(trace)                  # numbered steps between Initial/Final
        trace.format("rules")         # "collect-like-terms -> expand"
    """

    STYLES = ("verbose", "rules")

    def __init__(self):
        self.steps: List[RewriteStep] = []
        self.initial: Optional[str] = None
        self.final: Optional[str] = None

    def add_step(self, step: RewriteStep):
        self.steps.append(step)

    def format(self, style: str = "verbose") -> str:
        """
        Render the trace.

        Args:
            style: "verbose" for one numbered line per step between the
                initial and final renderings, "rules" for the strategy
                names only.

        Raises:
            ValueError: For any other style.
        """
        if style == "rules":
            return " -> ".join(self.rules_applied()) or "(no rules applied)"
        if style != "verbose":
            raise ValueError(f"unknown trace style {style!r}; expected one of {self.STYLES}")
        lines = [f"Initial: {self.initial}"]
        lines.extend(f"  {i}. {step}" for i, step in enumerate(self.steps, 1))
        lines.append(f"Final: {self.final}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"RewriteTrace({len(self.steps)} steps)"

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any rewrite was accepted."""
        return bool(self.steps)

    def rules_applied(self) -> List[str]:
        return [step.strategy_name for step in self.steps]

    def rule_counts(self) -> Dict[str, int]:
        return dict(Counter(self.rules_applied()))

    def summary(self) -> str:
        if not self.steps:
            return "No rewriting performed"
        counts = Counter(self.rules_applied())
        name, times = counts.most_common(1)[0]
        return (f"{len(self.steps)} steps using {len(counts)} unique strategies. "
                f"Most used: {name} ({times}x)")

    def to_dict(self) -> Dict:
        """JSON-serializable form."""
        return {
            "initial": self.initial,
            "final": self.final,
            "steps": [step.to_dict() for step in self.steps],
            "step_count": len(self.steps),
        }
