import numpy as np
import pytest

from tensorgrid import DegenerateGeometry, PolyTrend, Sampling
from tensorgrid._sampling import grid_coordinates


def test_linear_trend_recovered():
    rng = np.random.default_rng(3)
    x1 = rng.random(20)
    x2 = rng.random(20)
    f = 2.0 + 3.0 * x1 - 1.5 * x2
    trend = PolyTrend(1, f, x1, x2)
    np.testing.assert_allclose(trend.detrend(f, x1, x2), 0.0, atol=1e-12)
    np.testing.assert_allclose(trend.evaluate(0.5, 0.5), 2.0 + 1.5 - 0.75)


def test_quadratic_trend():
    rng = np.random.default_rng(4)
    x1 = rng.random(30)
    x2 = rng.random(30)
    f = x1 * x2 + x1 * x1
    trend = PolyTrend(2, f, x1, x2)
    assert trend.coefficients.shape == (6,)
    np.testing.assert_allclose(trend.detrend(f, x1, x2), 0.0, atol=1e-10)


def test_constant_trend_is_mean():
    f = np.array([1.0, 2.0, 6.0])
    trend = PolyTrend(0, f, [0.0, 1.0, 2.0], [0.0, 0.0, 1.0])
    np.testing.assert_allclose(trend.evaluate([5.0], [5.0]), [3.0])


def test_restore_on_grid():
    x1 = np.array([0.0, 1.0, 0.0])
    x2 = np.array([0.0, 0.0, 1.0])
    f = 1.0 + x1 + 2.0 * x2
    trend = PolyTrend(1, f, x1, x2)
    s1, s2 = Sampling(3, 0.5), Sampling(2, 1.0)
    g = trend.restore(np.zeros((2, 3)), s1, s2)
    gx1, gx2 = grid_coordinates((s1, s2))
    np.testing.assert_allclose(g, 1.0 + gx1 + 2.0 * gx2)


def test_bad_order():
    with pytest.raises(ValueError):
        PolyTrend(3, [1.0, 2.0, 3.0], [0.0, 1.0, 2.0], [0.0, 1.0, 0.0])


def test_underdetermined_trend():
    with pytest.raises(DegenerateGeometry):
        PolyTrend(1, [1.0, 2.0, 3.0], [0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
    with pytest.raises(DegenerateGeometry):
        PolyTrend(2, [1.0, 2.0, 3.0, 4.0], [0, 1, 0, 1], [0, 0, 1, 1])
