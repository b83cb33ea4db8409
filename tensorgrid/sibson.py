"""Discrete natural-neighbour (Sibson) gridding.

Each grid cell ``p`` looks up its nearest known cell, at distance ``r(p)``,
and scatters that cell's value onto every cell within the disc (ball in 3D)
of radius ``r(p)`` centred on ``p``. The value of a cell is the average of
everything scattered onto it. This converges to Sibson's natural-neighbour
interpolant as the grid is refined (Park et al., 2006), without building a
Voronoi diagram.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.signal import fftconvolve
from scipy.spatial import cKDTree

from ._constants import PNULL
from ._sampling import Sampling, grid_coordinates
from .gridders import Gridder, SimpleGridder

logger = logging.getLogger(__name__)


class SibsonGridder(Gridder):
    """Natural-neighbour gridding, C0 by default or C1 with ``set_smooth(True)``.

    In C1 mode each known sample scatters its linear extrapolation
    ``f_i + g_i . (x - x_i)`` instead of its value, with gradients ``g_i``
    estimated from nearby samples.
    """

    def __init__(self, f: ArrayLike | None = None, *x: ArrayLike) -> None:
        super().__init__(f, *x)
        self._smooth = False

    def set_smooth(self, smooth: bool) -> None:
        self._smooth = bool(smooth)

    @property
    def smooth(self) -> bool:
        return self._smooth

    def grid(self, *samplings: Sampling) -> NDArray:
        data = self._checked(samplings)
        p = SimpleGridder(data.f, *data.x, null_value=PNULL).grid(*samplings)
        known = p != PNULL
        if not known.any():
            raise ValueError("No scattered samples inside the grid")
        coords = grid_coordinates(samplings)
        delta = np.array([s.delta for s in samplings])

        kx = np.column_stack([c[known] for c in coords])
        kf = p[known]
        tree = cKDTree(kx)
        r, nearest = tree.query(np.column_stack([c.ravel() for c in coords]))
        r = r.reshape(p.shape)
        nearest = nearest.reshape(p.shape)

        # Sources scattered by each cell: the nearest value, or for C1 the
        # constant and gradient terms of the nearest linear extrapolation.
        if self._smooth:
            grad = sample_gradients(kx, kf)
            a0 = kf - np.einsum("ij,ij->i", grad, kx)
            sources = [a0[nearest]] + [grad[nearest, k] for k in range(len(coords))]
        else:
            sources = [kf[nearest]]

        h = delta.min()
        radius = np.floor(r / h + 1.0e-6).astype(int)
        num = np.zeros((len(sources),) + p.shape)
        den = np.zeros(p.shape)
        for rad in np.unique(radius):
            mask = (radius == rad).astype("float64")
            kernel = _ball(rad * h, delta)
            stack = np.stack([mask] + [mask * s for s in sources])
            conv = fftconvolve(
                stack, kernel[np.newaxis], mode="same", axes=tuple(range(1, p.ndim + 1))
            )
            den += conv[0]
            num += conv[1:]
        logger.debug(
            f"sibson: {int(known.sum())} known cells, "
            f"{np.unique(radius).size} radii, smooth={self._smooth}"
        )

        q = num[0]
        if self._smooth:
            for k, c in enumerate(coords):
                q = q + c * num[k + 1]
        q = q / np.maximum(den, 0.5)
        q[known] = p[known]
        return q


def _ball(radius: float, delta: NDArray) -> NDArray:
    """Indicator of cells within *radius* of the centre cell, array axis order."""
    half = [int(np.floor(radius / d + 1.0e-6)) for d in delta[::-1]]
    axes = [np.arange(-m, m + 1) * d for m, d in zip(half, delta[::-1])]
    mesh = np.meshgrid(*axes, indexing="ij")
    d2 = sum(m * m for m in mesh)
    return (d2 <= radius * radius * (1.0 + 1.0e-6)).astype("float64")


def sample_gradients(x: NDArray, f: NDArray, neighbours: int | None = None) -> NDArray:
    """Gradients of *f* at points *x* ``(N, ndim)`` from weighted local planes.

    Each gradient is the least-squares slope of ``f_j - f_i`` against
    ``x_j - x_i`` over the nearest neighbours ``j`` of sample ``i``, weighted
    by inverse squared distance. Samples with too few neighbours get zero.
    """
    x = np.asarray(x, dtype="float64")
    f = np.asarray(f, dtype="float64")
    n, ndim = x.shape
    grad = np.zeros((n, ndim))
    if neighbours is None:
        neighbours = 3 * ndim
    k = min(n, neighbours + 1)
    if k <= ndim:
        return grad
    _, index = cKDTree(x).query(x, k=k)
    for i in range(n):
        j = index[i, 1:]
        dx = x[j] - x[i]
        df = f[j] - f[i]
        w = 1.0 / np.maximum(np.einsum("ij,ij->i", dx, dx), np.finfo(float).tiny)
        sw = np.sqrt(w)
        g, _, rank, _ = np.linalg.lstsq(dx * sw[:, None], df * sw, rcond=None)
        if rank == ndim:
            grad[i] = g
    return grad
