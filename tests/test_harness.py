import logging

import numpy as np
import pytest

from tensorgrid import ConsistencyViolation, GridderKind, GridderSpec, UnknownConfiguration
from tensorgrid.datasets import DemoContext, data_saddle, samplings_square, setup_for
from tensorgrid.harness import (
    blend_circle_data,
    blend_sphere_data,
    blend_teapot,
    check_known_samples,
    compare_gridders,
    compare_tensor_guidance,
    known_sample_mismatches,
    put_data_on_grid,
    sample_residuals,
    splines_convergence,
)
from tensorgrid._sampling import Sampling


@pytest.fixture
def saddle_context():
    return DemoContext("Saddle", data_saddle(), samplings_square)


def test_known_sample_mismatches(caplog):
    t = np.array([[0.0, 1.0], [0.0, 0.0]])
    p = np.array([[1.0, 2.0], [3.0, 4.0]])
    q = np.array([[1.0, 9.0], [3.5, 4.0 + 1e-7]])
    with caplog.at_level(logging.WARNING, logger="tensorgrid.harness"):
        mismatches = known_sample_mismatches(t, p, q)
    assert len(mismatches) == 1
    assert mismatches[0].index == (1, 0)
    assert mismatches[0].magnitude == pytest.approx(0.5)
    assert "(1, 0)" in caplog.text


def test_check_known_samples_raises_worst():
    t = np.zeros((2, 2))
    p = np.zeros((2, 2))
    q = np.array([[0.1, 0.0], [0.0, -0.3]])
    with pytest.raises(ConsistencyViolation) as info:
        check_known_samples(t, p, q)
    assert info.value.index == (1, 1)
    assert info.value.magnitude == pytest.approx(0.3)
    check_known_samples(t, p, np.zeros((2, 2)))


def test_check_known_samples_shape_mismatch():
    with pytest.raises(ValueError):
        check_known_samples(np.zeros(3), np.zeros(3), np.zeros(4))


def test_put_data_on_grid_returns_copy():
    d = data_saddle()
    s = Sampling(5, 0.25)
    on_grid = put_data_on_grid(d, (s, s))
    np.testing.assert_allclose(on_grid.x1, [0.0, 1.0, 0.0, 1.0])
    np.testing.assert_array_equal(d.x1, [0.1, 0.9, 0.1, 0.9])
    np.testing.assert_array_equal(on_grid.f, d.f)


def test_sample_residuals():
    d = data_saddle()
    s1, s2 = samplings_square("coarse")
    g = np.zeros((51, 51))
    np.testing.assert_allclose(sample_residuals(g, (s1, s2), d), [0.0, 1.0, 1.0, 0.0])


def test_compare_gridders(saddle_context):
    results = compare_gridders(saddle_context, "coarse")
    assert [r.name for r in results][:2] == [
        "Bi-harmonic radial basis",
        "Wessel-Bercovici: t = 0",
    ]
    assert len(results) == 6
    for r in results:
        assert r.field.shape == (51, 51)
        assert r.max_residual < 1e-3


def test_compare_gridders_on_grid_with_specs():
    ctx = setup_for("Lamont")
    specs = [GridderSpec(GridderKind.SIBSON), GridderSpec(GridderKind.BLENDED)]
    results = compare_gridders(ctx, "coarse", specs=specs, on_grid=True)
    assert [r.spec.kind for r in results] == [GridderKind.SIBSON, GridderKind.BLENDED]
    for r in results:
        assert r.field.shape == (73, 53)
        assert np.all(np.isfinite(r.field))


def test_compare_gridders_unknown_grid(saddle_context):
    with pytest.raises(UnknownConfiguration):
        compare_gridders(saddle_context, "ultrafine")


def test_compare_tensor_guidance(saddle_context):
    results = compare_tensor_guidance(saddle_context, "coarse")
    assert [(r.spec.kind, r.guided) for r in results] == [
        (GridderKind.SPLINES, False),
        (GridderKind.BLENDED, False),
        (GridderKind.SPLINES, True),
        (GridderKind.BLENDED, True),
    ]
    for r in results:
        assert r.max_residual < 1e-3
    assert not np.allclose(results[1].field, results[3].field)


def test_splines_convergence(saddle_context):
    results = splines_convergence(saddle_context, grids=("coarse",))
    assert results[0].shape == (51, 51)
    assert results[0].iterations == len(results[0].residuals) - 1 > 0


def test_blend_circle_data():
    t, p, q = blend_circle_data(61, 61, 10, 20, au=0.01)
    assert t.shape == p.shape == q.shape == (61, 61)
    known = t == 0.0
    assert known.any()
    np.testing.assert_allclose(q[known], p[known], atol=1e-5)
    assert np.all(t >= 0.0)


def test_blend_circle_isotropic_differs():
    _, _, q_aniso = blend_circle_data(41, 41, 10, 20, au=0.01)
    _, _, q_iso = blend_circle_data(41, 41, 10, 20, au=1.0)
    assert not np.allclose(q_aniso, q_iso)


def test_blend_sphere_data():
    t, p, q = blend_sphere_data(21, 21, 21, 6, 6, 6, au=0.01)
    assert q.shape == (21, 21, 21)
    np.testing.assert_allclose(q[t == 0.0], p[t == 0.0], atol=1e-5)


def test_blend_teapot_on_synthetic_image():
    i2 = np.arange(357)[:, None] * np.ones((1, 251))
    image = np.sin(0.3 * i2 + 0.02 * np.arange(251)[None, :])
    t, p, q = blend_teapot(image)
    assert q.shape == (357, 251)
    np.testing.assert_allclose(q[t == 0.0], p[t == 0.0], atol=1e-5)
