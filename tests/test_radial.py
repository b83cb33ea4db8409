import numpy as np
import pytest

from tensorgrid import Biharmonic, DegenerateGeometry, RadialGridder, Sampling, WesselBercovici


@pytest.fixture
def scattered():
    rng = np.random.default_rng(5)
    x1 = rng.random(15)
    x2 = rng.random(15)
    f = np.cos(3.0 * x1) + x2 * x2
    return f, x1, x2


def test_biharmonic_values():
    b = Biharmonic()
    np.testing.assert_allclose(b.evaluate([0.0, 1.0, np.e]), [0.0, -1.0, 0.0], atol=1e-12)
    b2 = Biharmonic(scale=2.0)
    assert b2.evaluate([2.0])[0] == pytest.approx(-1.0)


def test_wessel_bercovici_zero_tension_is_biharmonic():
    r = np.linspace(0.0, 3.0, 7)
    np.testing.assert_allclose(
        WesselBercovici(0.0, 0.5).evaluate(r), Biharmonic(0.5).evaluate(r)
    )


def test_wessel_bercovici_finite_at_origin():
    g = WesselBercovici(0.5).evaluate([0.0, 1e-3, 1.0])
    assert g[0] == 0.0
    assert np.all(np.isfinite(g))
    # K0(x) + log(x) tends to log 2 - gamma, so g is continuous at zero
    assert g[1] == pytest.approx(0.0, abs=1e-4)


@pytest.mark.parametrize("tension", [-0.1, 1.0])
def test_wessel_bercovici_tension_range(tension):
    with pytest.raises(ValueError):
        WesselBercovici(tension)


@pytest.mark.parametrize("basis", [Biharmonic(), WesselBercovici(0.5, 0.1)])
@pytest.mark.parametrize("order", [-1, 0, 1, 2])
def test_interpolates_data(scattered, basis, order):
    f, x1, x2 = scattered
    rg = RadialGridder(basis, f, x1, x2)
    rg.set_poly_trend(order)
    np.testing.assert_allclose(rg.interpolate(x1, x2), f, atol=1e-6)
    assert rg.weights.shape == (15,)


def test_linear_data_reproduced_by_trend():
    x1 = np.array([0.0, 1.0, 0.0, 1.0, 0.5])
    x2 = np.array([0.0, 0.0, 1.0, 1.0, 0.3])
    f = 1.0 + 2.0 * x1 - x2
    rg = RadialGridder(Biharmonic(), f, x1, x2)
    rg.set_poly_trend(1)
    np.testing.assert_allclose(rg.weights, 0.0, atol=1e-10)
    np.testing.assert_allclose(rg.interpolate(0.25, 0.75), 1.0 + 0.5 - 0.75)


def test_grid_matches_interpolate(scattered):
    f, x1, x2 = scattered
    rg = RadialGridder(Biharmonic(), f, x1, x2)
    rg.set_poly_trend(1)
    s1, s2 = Sampling(7, 1.0 / 6), Sampling(5, 0.25)
    g = rg.grid(s1, s2)
    assert g.shape == (5, 7)
    assert g[2, 3] == pytest.approx(float(rg.interpolate(s1.value(3), s2.value(2))))


def test_metric_tensor():
    f = np.array([0.0, 1.0, 0.0, 1.0])
    x1 = np.array([0.0, 1.0, 0.0, 1.0])
    x2 = np.array([0.0, 0.0, 1.0, 1.0])
    rg = RadialGridder(Biharmonic(), f, x1, x2)
    rg.set_metric_tensor(1.0, 0.0, 4.0)
    np.testing.assert_allclose(rg.interpolate(x1, x2), f, atol=1e-10)
    with pytest.raises(ValueError):
        rg.set_metric_tensor(1.0, 2.0, 1.0)


def test_poly_trend_range():
    rg = RadialGridder(Biharmonic())
    with pytest.raises(ValueError):
        rg.set_poly_trend(3)


def test_radial_is_2d_only():
    with pytest.raises(ValueError):
        RadialGridder(Biharmonic(), [1.0], [0.0], [0.0], [0.0])


def test_collinear_rejected():
    rg = RadialGridder(Biharmonic(), [0.0, 1.0, 2.0], [0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
    with pytest.raises(DegenerateGeometry):
        rg.grid(Sampling(3), Sampling(3))


def test_requires_samples():
    with pytest.raises(RuntimeError):
        RadialGridder(Biharmonic()).interpolate(0.0, 0.0)
