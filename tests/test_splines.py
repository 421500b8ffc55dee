"""Tests for the natural cubic spline basis."""

import numpy as np
import pytest
from scipy.interpolate import CubicSpline

import splinede as sd

TIMES = np.array([0, 2, 4, 8, 12, 24, 0, 2, 4, 8, 12, 24], dtype=float)
KNOTS = [4, 12]


class TestBasisShape:

    def test_two_knots_three_columns(self):
        b = sd.ns(TIMES, knots=KNOTS)
        assert b.basis.shape == (12, 3)
        assert b.n_basis == 3
        assert np.array_equal(b.boundary_knots, [0.0, 24.0])
        assert np.array_equal(b.knots, [4.0, 12.0])

    def test_intercept_adds_column(self):
        b = sd.ns(TIMES, knots=KNOTS, intercept=True)
        assert b.basis.shape == (12, 4)

    def test_df_places_knots_at_quantiles(self):
        b = sd.ns(TIMES, df=3)
        assert np.allclose(b.knots, np.quantile(TIMES, [1 / 3, 2 / 3]))
        assert b.n_basis == 3

    def test_left_boundary_row_is_zero(self):
        b = sd.ns(TIMES, knots=KNOTS)
        assert np.allclose(b.basis[TIMES == 0], 0.0, atol=1e-12)

    def test_to_frame(self):
        b = sd.ns(TIMES, knots=KNOTS)
        df = b.to_frame()
        assert list(df.columns) == ['fun1', 'fun2', 'fun3']
        assert np.array_equal(df.values, b.basis)


class TestBasisDeterminism:

    def test_identical_construction_is_bit_identical(self):
        a = sd.ns(TIMES, knots=KNOTS)
        b = sd.ns(TIMES, knots=KNOTS)
        assert np.array_equal(a.basis, b.basis)

    def test_predict_at_original_points(self):
        b = sd.ns(TIMES, knots=KNOTS)
        again = b.predict(TIMES)
        assert np.array_equal(again, b.basis)

    def test_dense_grid_contains_original_points(self):
        b = sd.ns(TIMES, knots=KNOTS)
        grid = np.linspace(0, 24, 25)
        dense = b.predict(grid)
        for t in np.unique(TIMES):
            row = dense[np.argmin(np.abs(grid - t))]
            assert np.allclose(row, b.basis[TIMES == t][0], atol=1e-12)

    def test_rebuilt_from_params_matches(self):
        b = sd.ns(TIMES, knots=KNOTS)
        p = b.params
        c = sd.ns(np.linspace(0, 24, 7), knots=p['knots'],
                  boundary_knots=p['boundary_knots'], intercept=p['intercept'])
        b.check_compatible(c)
        assert np.array_equal(c.predict(TIMES), b.basis)


class TestNaturalSplineSpace:

    def test_spans_linear_functions(self):
        b = sd.ns(TIMES, knots=KNOTS)
        x = np.linspace(-5, 30, 50)
        X = np.column_stack([np.ones_like(x), b.predict(x)])
        coef, *_ = np.linalg.lstsq(X, x, rcond=None)
        assert np.allclose(X @ coef, x, atol=1e-8)

    def test_spans_natural_cubic_interpolant(self):
        b = sd.ns(TIMES, knots=KNOTS)
        knots_all = np.array([0.0, 4.0, 12.0, 24.0])
        cs = CubicSpline(knots_all, [1.0, -2.0, 3.0, 0.5], bc_type='natural')
        x = np.linspace(0, 24, 60)
        X = np.column_stack([np.ones_like(x), b.predict(x)])
        coef, *_ = np.linalg.lstsq(X, cs(x), rcond=None)
        assert np.allclose(X @ coef, cs(x), atol=1e-8)

    def test_linear_beyond_boundaries(self):
        b = sd.ns(TIMES, knots=KNOTS)
        right = b.predict([25.0, 27.0, 29.0])
        assert np.allclose(right[0] - 2 * right[1] + right[2], 0.0, atol=1e-10)
        left = b.predict([-1.0, -3.0, -5.0])
        assert np.allclose(left[0] - 2 * left[1] + left[2], 0.0, atol=1e-10)

    def test_continuous_at_boundary(self):
        b = sd.ns(TIMES, knots=KNOTS)
        inside = b.predict([24.0])
        outside = b.predict([24.0 + 1e-9])
        assert np.allclose(inside, outside, atol=1e-8)


class TestBasisValidation:

    def test_knots_outside_boundary(self):
        with pytest.raises(ValueError, match="strictly inside"):
            sd.ns(TIMES, knots=[4, 30])

    def test_non_finite_times(self):
        with pytest.raises(ValueError, match="missing"):
            sd.ns([0, 2, np.nan, 8], knots=[4])

    def test_single_timepoint(self):
        with pytest.raises(ValueError, match="distinct"):
            sd.ns([4, 4, 4], df=3)

    def test_needs_knots_or_df(self):
        with pytest.raises(ValueError):
            sd.ns(TIMES)

    def test_mismatch_detected(self):
        a = sd.ns(TIMES, knots=KNOTS)
        with pytest.raises(ValueError, match="knots"):
            a.check_compatible(sd.ns(TIMES, knots=[6, 12]))
        with pytest.raises(ValueError, match="intercept"):
            a.check_compatible(sd.ns(TIMES, knots=KNOTS, intercept=True))
        with pytest.raises(ValueError, match="boundary"):
            a.check_compatible(sd.ns(TIMES, knots=KNOTS, boundary_knots=[0, 48]))
