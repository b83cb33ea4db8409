import numpy as np
import pytest

from tensorgrid import DegenerateGeometry, Sampling, Scattered
from tensorgrid._sampling import grid_coordinates, grid_shape
from tensorgrid._scattered import check_geometry


def test_sampling_values():
    s = Sampling(51, 0.02, 0.0)
    assert s.count == 51
    assert s.last == pytest.approx(1.0)
    np.testing.assert_allclose(s.values, np.linspace(0.0, 1.0, 51))
    assert s.value(5) == pytest.approx(0.1)


def test_sampling_defaults():
    s = Sampling(10)
    assert s.delta == 1.0
    assert s.first == 0.0
    assert s.last == 9.0


@pytest.mark.parametrize("count, delta", [(0, 1.0), (5, 0.0), (5, -1.0)])
def test_sampling_rejects_bad_arguments(count, delta):
    with pytest.raises(ValueError):
        Sampling(count, delta)


def test_index_of_nearest():
    s = Sampling(51, 0.02, 0.0)
    assert s.index_of_nearest(0.1) == 5
    assert s.index_of_nearest(0.9) == 45
    assert s.index_of_nearest(-3.0) == 0
    assert s.index_of_nearest(3.0) == 50
    np.testing.assert_array_equal(s.index_of_nearest([0.0, 0.011, 0.5]), [0, 1, 25])


def test_contains_half_cell():
    s = Sampling(11, 1.0, 0.0)
    np.testing.assert_array_equal(
        s.contains([-0.6, -0.4, 5.0, 10.4, 10.6]), [False, True, True, True, False]
    )


def test_grid_shape_and_coordinates():
    s1 = Sampling(4, 1.0, 0.0)
    s2 = Sampling(3, 2.0, 10.0)
    assert grid_shape((s1, s2)) == (3, 4)
    x1, x2 = grid_coordinates((s1, s2))
    assert x1.shape == x2.shape == (3, 4)
    # x1 varies along the last (fast) array axis
    np.testing.assert_allclose(x1[0], [0.0, 1.0, 2.0, 3.0])
    np.testing.assert_allclose(x2[:, 0], [10.0, 12.0, 14.0])


def test_scattered_coerces_arrays():
    d = Scattered.of([1, 2, 3], [0, 1, 0], [0, 0, 1])
    assert len(d) == 3
    assert d.ndim == 2
    assert d.f.dtype == np.float64
    assert d.points.shape == (3, 2)
    np.testing.assert_array_equal(d.x2, [0.0, 0.0, 1.0])


def test_scattered_length_mismatch():
    with pytest.raises(ValueError):
        Scattered.of([1.0, 2.0], [0.0, 1.0, 2.0], [0.0, 1.0])


def test_geometry_too_few_points():
    with pytest.raises(DegenerateGeometry):
        Scattered.of([1.0, 2.0], [0.0, 1.0], [0.0, 1.0]).check_geometry()


def test_geometry_collinear():
    with pytest.raises(DegenerateGeometry, match="collinear"):
        check_geometry(np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0], [3.0, 3.0]]))


def test_geometry_coplanar():
    points = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 1, 0]], dtype=float)
    with pytest.raises(DegenerateGeometry, match="coplanar"):
        check_geometry(points)


def test_geometry_ok():
    check_geometry(np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]]))
    check_geometry(np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float))


def test_degenerate_geometry_is_value_error():
    assert issubclass(DegenerateGeometry, ValueError)
