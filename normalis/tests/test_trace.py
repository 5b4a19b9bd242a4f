"""Tests for rewrite traces."""

import json

import pytest
from normalis import E, Simplifier, RewriteTrace, RewriteStep, NodeKind


def two_x_plus_three():
    x = E.fn("x", 1)
    return E.sum(E.product(x, coeff=1), E.product(x.clone(), coeff=1), E.sum(coeff=3), coeff=0)


class TestTraceRecording:
    """Tests for what simplify(trace=True) records."""

    def setup_method(self):
        """Set up simplifier."""
        self.s = Simplifier()

    def test_returns_pair(self):
        """trace=True returns (result, trace)."""
        result, trace = self.s.simplify(two_x_plus_three(), trace=True)
        assert isinstance(trace, RewriteTrace)
        assert str(result) == "2*x(1) + 3"

    def test_initial_and_final(self):
        """Renderings of the input and output are kept."""
        _, trace = self.s.simplify(two_x_plus_three(), trace=True)
        assert trace.initial == "1*x(1) + 1*x(1) + 3 + 0"
        assert trace.final == "2*x(1) + 3"

    def test_steps(self):
        """Collecting x + x is one step on a sum."""
        _, trace = self.s.simplify(two_x_plus_three(), trace=True)
        assert trace.rules_applied() == ["collect-like-terms"]
        step = trace.steps[0]
        assert isinstance(step, RewriteStep)
        assert step.kind is NodeKind.SUM
        assert step.before == "x(1) + x(1) + 3"
        assert step.after == "2*x(1) + 3"

    def test_no_steps(self):
        """Already canonical input records nothing."""
        _, trace = self.s.simplify(E.fn("x", 1), trace=True)
        assert not trace
        assert len(trace) == 0
        assert trace.summary() == "No rewriting performed"

    def test_inner_steps_first(self):
        """Rewrites below a node are recorded before rewrites of the node."""
        expr = E.sum(E.fn("f", E.sum(E.fn("y", 1), E.fn("y", 1))), E.fn("x", 1), E.fn("x", 1))
        _, trace = self.s.simplify(expr, trace=True)
        afters = [step.after for step in trace]
        assert afters[0] == "2*y(1)"


class TestTraceFormatting:
    """Tests for format() and serialization."""

    def setup_method(self):
        """Set up a recorded trace."""
        _, self.trace = Simplifier().simplify(two_x_plus_three(), trace=True)

    def test_format_verbose(self):
        """Verbose format shows full details."""
        verbose = self.trace.format("verbose")
        assert "Initial:" in verbose
        assert "Final:" in verbose
        assert "collect-like-terms" in verbose

    def test_step_rendering(self):
        """Each verbose line names the strategy and the node kind."""
        lines = self.trace.format().splitlines()
        assert lines[1] == "  1. collect-like-terms on sum: x(1) + x(1) + 3 => 2*x(1) + 3"
        assert str(self.trace) == self.trace.format("verbose")

    def test_format_rules(self):
        """Rules format shows just strategy names."""
        assert self.trace.format("rules") == "collect-like-terms"
        assert RewriteTrace().format("rules") == "(no rules applied)"

    def test_unknown_style_rejected(self):
        """Only verbose and rules exist."""
        with pytest.raises(ValueError):
            self.trace.format("chain")

    def test_counts_and_summary(self):
        """rule_counts() and summary()."""
        assert self.trace.rule_counts() == {"collect-like-terms": 1}
        assert "1 steps using 1 unique strategies" in self.trace.summary()

    def test_to_dict_is_json(self):
        """to_dict() is JSON-serializable."""
        data = self.trace.to_dict()
        assert data["step_count"] == 1
        assert data["steps"][0]["kind"] == "sum"
        json.dumps(data)
