"""
Tests for CompiledFunction and MathEngine.

Covers the compile / evaluate contract end to end: both evaluation paths,
chained comparisons, derivative composition, integrals and failure handling.
"""

import logging
import math

import pytest

from functer_math import CompiledFunction, EngineConfig, MathEngine, from_json


class TestEvaluationPaths:
    """Evaluator and native paths agree."""

    @pytest.mark.parametrize("text,scope", [
        ("2*x + 1", {"x": 3}),
        (r"\frac{x^{2}}{3} - 4x", {"x": 1.5}),
        (r"\sin(x) \cdot \cos(y)", {"x": 0.3, "y": -1.2}),
        (r"\sqrt{x} + |y|", {"x": 2.0, "y": -3.0}),
        (r"e^{x} + \ln(x) + \log(x)", {"x": 4.0}),
        (r"2(x+1)", {"x": 2}),
        ("(x>0)x", {"x": 3}),
        ("(x<1)+1", {"x": 0.5}),
        (r"1 + \neg(x<1)", {"x": 2}),
    ])
    def test_paths_agree(self, engine, text, scope):
        f = engine.compile(text)
        assert f.is_valid
        assert f.native is not None
        assert f.evaluate_native(scope) == pytest.approx(f.evaluate(scope), rel=1e-9)

    def test_linear(self, engine):
        f = engine.compile("2*x + 1")
        assert f.evaluate({"x": 3}) == 7
        assert f.evaluate_native({"x": 3}) == 7
        assert f({"x": 3}) == 7

    def test_native_optional(self, engine):
        f = engine.compile(r"\sec(x)")
        assert f.is_valid
        assert f.native is None and f.native_text is None
        assert f.evaluate_native({"x": 0}) == pytest.approx(1.0)

    def test_native_disabled_by_config(self):
        engine = MathEngine(EngineConfig(enable_native=False))
        f = engine.compile("2*x + 1")
        assert f.is_valid and f.native is None


class TestChainedComparisons:

    @pytest.mark.parametrize("x,expected", [(4, True), (5, True), (6, False), (3.999, False)])
    def test_half_open_interval(self, engine, x, expected):
        f = engine.compile(r"4 \le x < 6")
        assert bool(f.evaluate({"x": x})) is expected
        assert bool(f.evaluate_native({"x": x})) is expected

    @pytest.mark.parametrize("y", [-0.5, 0, 0.5, 1, 1.5])
    def test_chain_matches_conjunction(self, engine, y):
        chained = engine.compile("0<=y<1")
        explicit = engine.compile("0 <= y and y < 1")
        assert bool(chained.evaluate({"y": y})) == bool(explicit.evaluate({"y": y}))

    def test_mathjson_nested_chain(self, engine):
        f = engine.compile_tree(from_json(["LessEqual", 0, ["Less", "y", 1]]))
        assert f.evaluate({"y": 0.5}) is True
        assert f.evaluate({"y": 1}) is False


class TestDerivatives:

    def test_applied_derivative(self, engine):
        g = engine.compile("f + f'(X)")
        assert g.is_valid
        assert g.transpiled.count("derivative_f(") == 1
        assert "derivative_f(x)(" not in g.transpiled
        assert g.native is None
        assert g.evaluate({"f": 10, "X": 5, "derivative_f": lambda v: 2 * v}) == 20

    def test_bare_derivative(self, engine):
        g = engine.compile("f'")
        assert g.evaluate({"x": 3, "derivative_f": lambda v: 2 * v}) == 6

    def test_evaluate_chain(self, engine):
        f = engine.compile("x^2")
        g = engine.compile("f + f'(X)")
        assert engine.evaluate_chain(g, f, 3.0, X=2.0) == pytest.approx(13.0, rel=1e-6)

    def test_chain_calls_player_function(self, engine):
        f = engine.compile("x^2")
        g = engine.compile("F(x + 1)")
        assert engine.evaluate_chain(g, f, 1.0) == pytest.approx(4.0)

    def test_chain_defaults_x_position(self, engine):
        f = engine.compile("x")
        g = engine.compile("X + t")
        assert engine.evaluate_chain(g, f, 2.0, t=0.5) == pytest.approx(2.5)

    def test_chain_with_invalid_function(self, engine):
        assert math.isnan(engine.evaluate_chain(engine.compile("x"), engine.compile("("), 1.0))


class TestIntegrals:

    @pytest.mark.parametrize("text,expected", [
        (r"\int_{0}^{10} 1 \, dx", 10.0),
        (r"\int_{0}^{2} x \, dx", 2.0),
        (r"\int_{0}^{3} x^{2} \, dx", 9.0),
    ])
    def test_definite(self, engine, text, expected):
        f = engine.compile(text)
        assert f.is_valid
        assert f.evaluate({}) == pytest.approx(expected, abs=1e-6)

    def test_dynamic_limit(self, engine):
        f = engine.compile(r"\int_{0}^{a} t \, dt")
        assert f.evaluate({"a": 2}) == pytest.approx(2.0)
        assert f.evaluate({"a": 4}) == pytest.approx(8.0)

    def test_integrand_sees_scope(self, engine):
        f = engine.compile(r"\int_{0}^{1} k x \, dx")
        assert f.evaluate({"k": 4}) == pytest.approx(2.0)

    def test_bound_variable_shadows_scope(self, engine):
        f = engine.compile(r"\int_{0}^{2} x \, dx + x")
        assert f.evaluate({"x": 100}) == pytest.approx(102.0)


class TestFailures:
    """Construction and evaluation never raise."""

    @pytest.mark.parametrize("text", ["", "   ", "(x + 1", "x +", r"\frac{1}"])
    def test_invalid_input(self, engine, text):
        f = engine.compile(text)
        assert not f.is_valid
        assert f.error
        assert math.isnan(f.evaluate({"x": 1}))
        assert math.isnan(f.evaluate_native({"x": 1}))

    def test_empty_message(self, engine):
        assert engine.compile("").error == "Empty"

    def test_unsupported_tree(self, engine):
        f = engine.compile_tree(from_json(["Add", "x", ["Prime", ["Add", "f", 1]]]))
        assert not f.is_valid
        assert f.error == "Unsupported expression"

    def test_division_by_zero(self, engine):
        f = engine.compile("1/x")
        value = f.evaluate({"x": 0})
        assert math.isinf(value) or math.isnan(value)

    def test_undefined_name(self, engine):
        f = engine.compile("q + 1")
        assert f.is_valid
        assert math.isnan(f.evaluate({}))
        assert math.isnan(f.evaluate_native({}))

    def test_domain_error(self, engine):
        assert math.isnan(engine.compile(r"\sqrt{x}").evaluate({"x": -4}))

    def test_non_numeric_result(self, engine):
        assert math.isnan(engine.compile("F").evaluate({"F": len}))

    def test_repr(self, engine):
        assert "invalid" in repr(engine.compile(""))


class TestIdempotence:

    def test_recompile(self, engine):
        a = engine.compile(r"\frac{1}{2}x^{2} + \sin(x)")
        b = engine.compile(r"\frac{1}{2}x^{2} + \sin(x)")
        assert a.is_valid == b.is_valid
        assert a.transpiled == b.transpiled
        for x in (-2.0, 0.0, 1.5):
            assert a.evaluate({"x": x}) == b.evaluate({"x": x})
            assert a.evaluate({"x": x}) == a.evaluate({"x": x})

    def test_separate_engines(self):
        text = "y > x^2"
        a, b = MathEngine().compile(text), MathEngine().compile(text)
        assert a.transpiled == b.transpiled
        assert a.evaluate({"x": 1, "y": 2}) == b.evaluate({"x": 1, "y": 2})


class TestEngineHelpers:

    def test_transpile(self, engine):
        assert engine.transpile("2*x + 1") == "((2 * x) + 1)"

    def test_evaluate_condition(self, engine):
        assert engine.evaluate_condition("y > x", {"x": 1, "y": 2}) is True
        assert engine.evaluate_condition("y > x", {"x": 2, "y": 1}) is False
        assert engine.evaluate_condition("(", {}) is False
        assert engine.evaluate_condition("q > 1", {}) is False
        assert engine.evaluate_condition(r"\neg a", {"x": -1}) is False

    def test_evaluate_condition_with_compiled(self, engine):
        c = engine.compile("0 < y <= 1")
        assert isinstance(c, CompiledFunction)
        assert engine.evaluate_condition(c, {"y": 1}) is True

    def test_evaluate_scalar(self, engine):
        assert engine.evaluate_scalar("2 + 3") == 5.0
        assert engine.evaluate_scalar("2 t", {"t": 1.5}) == 3.0
        assert math.isnan(engine.evaluate_scalar(""))

    def test_get_boundaries(self, engine):
        assert [b.axis for b in engine.get_boundaries("0 < y <= 1")] == ["y", "y"]
        assert engine.get_boundaries("((") == []

    def test_numerical_derivative(self, engine):
        assert engine.numerical_derivative(lambda v: v ** 2, 2.0) == pytest.approx(4.0)

    def test_integrate(self, engine):
        assert engine.integrate(lambda v: v, 0, 1) == pytest.approx(0.5)

    def test_function_scope(self, engine):
        scope = engine.function_scope(engine.compile("x^2"), 3.0, t=1.0)
        assert scope["f"] == 9.0
        assert scope["F"](2.0) == 4.0
        assert scope["derivative_f"](3.0) == pytest.approx(6.0)
        assert scope["X"] == 3.0 and scope["Y"] == 0.0
        assert scope["t"] == scope["T"] == 1.0

    def test_odd_interval_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="functer_math.engine"):
            engine = MathEngine(EngineConfig(integral_intervals=7))
        assert any("even" in r.getMessage() for r in caplog.records)
        assert engine.config.simpson_intervals == 8
        assert engine.compile(r"\int_{0}^{1} x \, dx").evaluate({}) == pytest.approx(0.5)
