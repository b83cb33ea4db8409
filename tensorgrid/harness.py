"""Evaluation harness: known-sample checks, gridder comparisons and the
tensor-guided blending workflows."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ._constants import DEFAULT_GRID, FAR_NULL_VALUE, KNOWN_SAMPLE_TOLERANCE, NULL_VALUE
from ._errors import ConsistencyViolation
from ._sampling import Sampling
from ._scattered import Scattered
from .datasets import DemoContext, data_teapot, make_circle_data, make_sphere_data
from .factory import GridderKind, GridderSpec, make_gridder, make_gridders
from .gridders import BlendedGridder, SimpleGridder, SplinesGridder
from .tensors import make_circle_tensors, make_image_tensors, make_sphere_tensors

logger = logging.getLogger(__name__)


# -- known-sample consistency ------------------------------------------------


@dataclass(frozen=True)
class Mismatch:
    index: tuple[int, ...]
    expected: float
    actual: float

    @property
    def magnitude(self) -> float:
        return abs(self.actual - self.expected)


def known_sample_mismatches(
    t: ArrayLike, p: ArrayLike, q: ArrayLike, tolerance: float = KNOWN_SAMPLE_TOLERANCE
) -> list[Mismatch]:
    """Cells with zero time whose blended value *q* differs from *p*.

    Indices are array indices, slowest axis first. Each mismatch is logged.
    """
    t = np.asarray(t)
    p = np.asarray(p)
    q = np.asarray(q)
    if not t.shape == p.shape == q.shape:
        raise ValueError(f"Shapes differ: t {t.shape}, p {p.shape}, q {q.shape}")
    bad = (t == 0.0) & (np.abs(q - p) > tolerance)
    mismatches = []
    for index in zip(*np.nonzero(bad)):
        m = Mismatch(tuple(int(i) for i in index), float(p[index]), float(q[index]))
        logger.warning(f"Known sample at {m.index}: p = {m.expected}, q = {m.actual}")
        mismatches.append(m)
    return mismatches


def check_known_samples(
    t: ArrayLike, p: ArrayLike, q: ArrayLike, tolerance: float = KNOWN_SAMPLE_TOLERANCE
) -> None:
    """Raise ConsistencyViolation for the worst known-sample mismatch, if any."""
    mismatches = known_sample_mismatches(t, p, q, tolerance)
    if mismatches:
        worst = max(mismatches, key=lambda m: m.magnitude)
        raise ConsistencyViolation(worst.index, worst.expected, worst.actual)


def sample_residuals(g: NDArray, samplings, data: Scattered) -> NDArray:
    """``|g - f|`` at the cell nearest to each scattered sample inside the grid."""
    inside = np.ones(len(data), dtype=bool)
    for s, xk in zip(samplings, data.x):
        inside &= s.contains(xk)
    index = tuple(
        np.atleast_1d(s.index_of_nearest(xk[inside]))
        for s, xk in zip(reversed(samplings), reversed(data.x))
    )
    return np.abs(np.asarray(g)[index] - data.f[inside])


def put_data_on_grid(data: Scattered, samplings) -> Scattered:
    """Copy of *data* with coordinates moved to their nearest grid nodes."""
    x = tuple(s.values[s.index_of_nearest(xk)] for s, xk in zip(samplings, data.x))
    return Scattered(data.f, x)


# -- gridder comparisons -----------------------------------------------------


@dataclass(frozen=True)
class Comparison:
    spec: GridderSpec
    field: NDArray
    max_residual: float
    guided: bool = False

    @property
    def name(self) -> str:
        return self.spec.name


def _grid_one(spec, data, samplings, tensors, guided=False) -> Comparison:
    s1, s2 = samplings
    logger.info(f"{spec.name}: gridding {len(data)} samples onto {s2.count}x{s1.count}")
    gridder = make_gridder(spec, data.f, data.x1, data.x2, s1, s2, tensors=tensors)
    g = gridder.grid(s1, s2)
    r = sample_residuals(g, samplings, data)
    return Comparison(spec, g, float(r.max()) if r.size else 0.0, guided)


def compare_gridders(
    context: DemoContext,
    grid: str = DEFAULT_GRID,
    specs: list[GridderSpec] | None = None,
    on_grid: bool = False,
    tensors=None,
) -> list[Comparison]:
    """Grid one dataset with every gridder in *specs*.

    Parameters
    ----------
    context : DemoContext
        Dataset and its named samplings.
    grid : str
        Resolution name passed to ``context.grid``.
    specs : list of GridderSpec, optional
        Gridders to run, ``make_gridders()`` by default.
    on_grid : bool
        Move the samples to grid nodes first, so every gridder sees exactly
        the same known cells.
    tensors : EigenTensors2, optional
        Passed to gridders that accept tensors.

    Returns
    -------
    list of Comparison
        One gridded field and its maximum sample misfit per spec.
    """
    samplings = context.grid(grid)
    data = put_data_on_grid(context.data, samplings) if on_grid else context.data
    if specs is None:
        specs = make_gridders()
    return [_grid_one(spec, data, samplings, tensors) for spec in specs]


def compare_tensor_guidance(
    context: DemoContext,
    grid: str = DEFAULT_GRID,
    tension: float = 0.0,
    smoothness: float = 0.5,
) -> list[Comparison]:
    """Splines and blended gridding without and then with circle tensors."""
    s1, s2 = context.grid(grid)
    tensors = make_circle_tensors(s1.count, s2.count)
    specs = [
        GridderSpec(GridderKind.SPLINES, tension=tension),
        GridderSpec(GridderKind.BLENDED, smoothness=smoothness),
    ]
    results = []
    for guided in (False, True):
        for spec in specs:
            results.append(
                _grid_one(
                    spec, context.data, (s1, s2), tensors if guided else None, guided
                )
            )
    return results


@dataclass(frozen=True)
class Convergence:
    grid: str
    shape: tuple[int, ...]
    iterations: int
    residuals: NDArray


def splines_convergence(
    context: DemoContext,
    grids=("coarse", "medium", "fine", "finer"),
    tension: float = 0.0,
) -> list[Convergence]:
    """Conjugate-gradient iterations of the splines gridder as the grid is refined."""
    results = []
    for grid in grids:
        s1, s2 = context.grid(grid)
        sg = SplinesGridder(context.data.f, *context.data.x)
        sg.set_tension(tension)
        sg.grid(s1, s2)
        logger.info(f"{s2.count}x{s1.count}: {sg.iteration_count} iterations")
        results.append(
            Convergence(grid, (s2.count, s1.count), sg.iteration_count, sg.residuals)
        )
    return results


# -- tensor-guided blending --------------------------------------------------


def _blend(data: Scattered, samplings, tensors, fnull: float, smoothness: float):
    sg = SimpleGridder(data.f, *data.x, null_value=fnull)
    p = sg.grid(*samplings)
    bg = BlendedGridder(data.f, *data.x, tensors=tensors)
    bg.set_smoothness(smoothness)
    t, p = bg.grid_nearest(fnull, p)
    q = bg.grid_blended(t, p)
    check_known_samples(t, p, q)
    return t, p, q


def blend_circle_data(
    n1: int, n2: int, kr: int, kt: int, au: float, smoothness: float = 0.5
) -> tuple[NDArray, NDArray, NDArray]:
    """Blend samples on circular arcs guided by circle tensors.

    Returns times, nearest-neighbour values and blended values. Small *au*
    keeps blending along the arcs; ``au = 1`` is isotropic.
    """
    data = make_circle_data(n1, n2, kr, kt)
    tensors = make_circle_tensors(n1, n2, au)
    return _blend(data, (Sampling(n1), Sampling(n2)), tensors, FAR_NULL_VALUE, smoothness)


def blend_sphere_data(
    n1: int,
    n2: int,
    n3: int,
    kr: int,
    kt: int,
    kp: int,
    au: float,
    smoothness: float = 0.5,
) -> tuple[NDArray, NDArray, NDArray]:
    """3D analogue of :func:`blend_circle_data` with spherical shells."""
    data = make_sphere_data(n1, n2, n3, kr, kt, kp)
    tensors = make_sphere_tensors(n1, n2, n3, au)
    samplings = (Sampling(n1), Sampling(n2), Sampling(n3))
    return _blend(data, samplings, tensors, FAR_NULL_VALUE, smoothness)


def blend_teapot(
    image: ArrayLike, smoothness: float = 1.0, data: Scattered | None = None
) -> tuple[NDArray, NDArray, NDArray]:
    """Blend picks on a seismic image along its structure.

    *image* has shape ``(n2, n1)``; *data* defaults to the Teapot picks.
    """
    image = np.asarray(image, dtype="float64")
    if data is None:
        data = data_teapot()
    n2, n1 = image.shape
    tensors = make_image_tensors(image)
    return _blend(data, (Sampling(n1), Sampling(n2)), tensors, NULL_VALUE, smoothness)
