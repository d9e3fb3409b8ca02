"""
Tests for the constraint mask and curve sampling helpers.
"""

import numpy as np

from functer_math.sampling import constraint_mask, sample_curve


class TestConstraintMask:

    def test_single_constraint(self, engine):
        mask = constraint_mask([[engine.compile("y > x")]], xs=[0, 1, 2], ys=[0, 1, 2])
        assert mask.shape == (3, 3)
        np.testing.assert_array_equal(mask, [
            [False, False, False],
            [True, False, False],
            [True, True, False],
        ])

    def test_groups_are_alternatives(self, engine):
        groups = [[engine.compile("x < 1")], [engine.compile("x > 1")]]
        mask = constraint_mask(groups, xs=[0, 1, 2], ys=[0])
        np.testing.assert_array_equal(mask, [[True, False, True]])

    def test_constraints_in_group_all_hold(self, engine):
        group = [engine.compile("x >= 1"), engine.compile("y >= 1")]
        mask = constraint_mask([group], xs=[0, 1], ys=[0, 1])
        np.testing.assert_array_equal(mask, [[False, False], [False, True]])

    def test_invalid_functions_dropped(self, engine):
        group = [engine.compile("(("), engine.compile("x > 0")]
        mask = constraint_mask([group], xs=[-1, 1], ys=[0])
        np.testing.assert_array_equal(mask, [[False, True]])

    def test_group_without_valid_functions(self, engine):
        mask = constraint_mask([[engine.compile("")]], xs=[0, 1], ys=[0])
        assert not mask.any()

    def test_evaluator_fallback(self, engine):
        c = engine.compile(r"y > \sec(x)")
        assert c.native is None
        mask = constraint_mask([[c]], xs=[0], ys=[0, 2])
        np.testing.assert_array_equal(mask, [[False], [True]])

    def test_nan_is_not_satisfied(self, engine):
        mask = constraint_mask([[engine.compile("q > 0")]], xs=[0], ys=[0])
        assert not mask.any()

    def test_undefined_name_never_satisfied(self, engine):
        c = engine.compile(r"\neg a")
        assert c.native is not None
        mask = constraint_mask([[c]], xs=[-1, 0, 1], ys=[0, 1])
        assert not mask.any()

    def test_extra_scope(self, engine):
        mask = constraint_mask([[engine.compile("y < X")]], xs=[0], ys=[0, 1], scope={"X": 0.5})
        np.testing.assert_array_equal(mask, [[True], [False]])


class TestSampleCurve:

    def test_composition(self, engine):
        values = sample_curve(engine, engine.compile("x"), engine.compile("f^2"), [0, 1, 2])
        np.testing.assert_allclose(values, [0.0, 1.0, 4.0])

    def test_gaps_are_nan(self, engine):
        values = sample_curve(engine, engine.compile("x"), engine.compile("1/f"), [0, 1])
        assert np.isnan(values[0])
        assert values[1] == 1.0

    def test_position_defaults_match_evaluate_chain(self, engine):
        f, g = engine.compile("x"), engine.compile("X + Y")
        values = sample_curve(engine, f, g, [1, 2])
        np.testing.assert_allclose(values, [engine.evaluate_chain(g, f, 1.0), engine.evaluate_chain(g, f, 2.0)])
        np.testing.assert_allclose(values, [1.0, 2.0])
        np.testing.assert_allclose(sample_curve(engine, f, g, [1, 2], X=0.5, Y=1.0), [1.5, 1.5])

    def test_invalid_function(self, engine):
        values = sample_curve(engine, engine.compile("x"), engine.compile("("), [0, 1])
        assert np.isnan(values).all()
