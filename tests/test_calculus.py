"""
Tests for the numeric calculus helpers.

SymPy provides the exact reference values.
"""

import math

import numpy as np
import pytest
import sympy

from functer_math.calculus import central_difference, derivative_of, simpson, simpson_weights

t = sympy.Symbol("t")


class TestCentralDifference:

    def test_quadratic(self):
        assert central_difference(lambda v: v ** 2, 3.0) == pytest.approx(6.0, rel=1e-6)

    def test_matches_sympy(self):
        exact = float(sympy.diff(sympy.sin(t) * sympy.exp(t), t).subs(t, 0.7))
        approx = central_difference(lambda v: math.sin(v) * math.exp(v), 0.7)
        assert approx == pytest.approx(exact, abs=1e-5)

    def test_custom_step(self):
        assert central_difference(lambda v: v ** 3, 1.0, h=0.1) == pytest.approx(3.01)

    def test_non_finite_propagates(self):
        assert math.isnan(central_difference(lambda v: math.nan, 1.0))

    def test_errors_propagate(self):
        with pytest.raises(ValueError):
            central_difference(math.log, 0.0)

    def test_derivative_of(self):
        d = derivative_of(math.sin)
        assert d(0.0) == pytest.approx(1.0, abs=1e-6)


class TestSimpson:

    def test_weights(self):
        np.testing.assert_array_equal(simpson_weights(4), [1, 4, 2, 4, 1])
        assert simpson_weights(20).sum() == 60

    @pytest.mark.parametrize("func,lower,upper,expected", [
        (lambda v: 1.0, 0, 10, 10.0),
        (lambda v: v, 0, 2, 2.0),
        (lambda v: v * v, 0, 3, 9.0),
        (lambda v: v ** 3 - v, -1, 2, 2.25),
    ])
    def test_exact_for_cubics(self, func, lower, upper, expected):
        assert simpson(func, lower, upper) == pytest.approx(expected, abs=1e-9)

    def test_matches_sympy(self):
        exact = float(sympy.integrate(sympy.sin(t), (t, 0, sympy.pi)))
        assert simpson(math.sin, 0, math.pi) == pytest.approx(exact, abs=1e-4)

    def test_reversed_limits(self):
        assert simpson(lambda v: v, 2, 0) == pytest.approx(-2.0)

    def test_failed_sample_counts_as_zero(self):
        def one_except_at_zero(v):
            if v == 0.0:
                raise ZeroDivisionError
            return 1.0
        # the first sample (weight 1 of 60) is lost
        assert simpson(one_except_at_zero, 0, 1) == pytest.approx(59 / 60)

    @pytest.mark.parametrize("intervals", [0, 3, -2])
    def test_interval_count_must_be_even(self, intervals):
        with pytest.raises(ValueError):
            simpson(lambda v: v, 0, 1, intervals)
