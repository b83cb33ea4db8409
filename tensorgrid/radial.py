"""Radial basis function interpolation of 2D scattered data.

The interpolant is ``q(x) = trend(x) + sum_i w_i g(r(x, x_i))`` where ``r``
is the distance under an optional constant metric tensor. Weights solve
``G w = f - trend(f)`` with ``G_ij = g(r(x_i, x_j))``.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import k0

from ._sampling import Sampling, grid_coordinates
from ._trend import PolyTrend
from .gridders import Gridder

logger = logging.getLogger(__name__)

# Distance matrix entries evaluated per block in RadialGridder.grid.
_BLOCK_SIZE = 1 << 20


class Biharmonic:
    """Green's function ``g(r) = (r/s)^2 (log(r/s) - 1)`` of the biharmonic operator."""

    def __init__(self, scale: float = 1.0) -> None:
        if not scale > 0.0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.scale = float(scale)

    def evaluate(self, r: ArrayLike) -> NDArray:
        rs = np.asarray(r, dtype="float64") / self.scale
        g = np.zeros_like(rs)
        nz = rs > 0.0
        g[nz] = rs[nz] * rs[nz] * (np.log(rs[nz]) - 1.0)
        return g

    def __repr__(self) -> str:
        return f"Biharmonic(scale={self.scale})"


class WesselBercovici:
    """Green's function for splines in tension (Wessel and Bercovici, 1998).

    ``g(r) = K0(p r/s) + log(p r/s) + gamma - log 2`` with
    ``p = sqrt(t / (1 - t))``. Tension 0 reduces to :class:`Biharmonic`.
    """

    def __init__(self, tension: float, scale: float = 1.0) -> None:
        if not 0.0 <= tension < 1.0:
            raise ValueError(f"tension must be in [0, 1), got {tension}")
        if not scale > 0.0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.tension = float(tension)
        self.scale = float(scale)
        self.p = np.sqrt(tension / (1.0 - tension))
        self._biharmonic = Biharmonic(scale) if self.p == 0.0 else None

    def evaluate(self, r: ArrayLike) -> NDArray:
        if self._biharmonic is not None:
            return self._biharmonic.evaluate(r)
        pr = self.p * np.asarray(r, dtype="float64") / self.scale
        g = np.zeros_like(pr)
        nz = pr > 0.0
        g[nz] = k0(pr[nz]) + np.log(pr[nz]) + np.euler_gamma - np.log(2.0)
        return g

    def __repr__(self) -> str:
        return f"WesselBercovici(tension={self.tension}, scale={self.scale})"


class RadialGridder(Gridder):
    """Grids 2D scattered samples with a radial basis function interpolant."""

    def __init__(self, basis, f: ArrayLike | None = None, *x: ArrayLike) -> None:
        self._basis = basis
        self._order = -1
        self._metric = np.eye(2)
        self._weights = None
        self._trend = None
        super().__init__(f, *x)

    def set_scattered(self, f: ArrayLike, *x: ArrayLike) -> None:
        if len(x) != 2:
            raise ValueError(f"Radial gridding needs x1 and x2, got {len(x)} axes")
        super().set_scattered(f, *x)
        self._weights = None

    @property
    def basis(self):
        return self._basis

    def set_poly_trend(self, order: int) -> None:
        """Polynomial trend order; -1 for none, otherwise 0, 1 or 2."""
        if not -1 <= order <= 2:
            raise ValueError(f"Trend order must be in [-1, 2], got {order}")
        self._order = int(order)
        self._weights = None

    def set_metric_tensor(self, m11: float, m12: float, m22: float) -> None:
        """Constant metric ``r^2 = dx' M dx`` for anisotropic distances."""
        if not (m11 > 0.0 and m22 > 0.0 and m11 * m22 >= m12 * m12):
            raise ValueError(
                f"Metric tensor ({m11}, {m12}, {m22}) is not positive definite"
            )
        self._metric = np.array([[m11, m12], [m12, m22]], dtype="float64")
        self._weights = None

    @property
    def weights(self) -> NDArray:
        self._solve()
        return self._weights.copy()

    def _distances(self, x1: NDArray, x2: NDArray) -> NDArray:
        data = self._data
        d1 = x1[:, None] - data.x1[None, :]
        d2 = x2[:, None] - data.x2[None, :]
        m = self._metric
        r2 = m[0, 0] * d1 * d1 + 2.0 * m[0, 1] * d1 * d2 + m[1, 1] * d2 * d2
        return np.sqrt(np.maximum(r2, 0.0))

    def _solve(self) -> None:
        if self._weights is not None:
            return
        if self._data is None:
            raise RuntimeError("No scattered samples. Call set_scattered() first.")
        data = self._data
        data.check_geometry()
        f = data.f
        self._trend = None
        if self._order >= 0:
            self._trend = PolyTrend(self._order, data.f, data.x1, data.x2)
            f = self._trend.detrend(data.f, data.x1, data.x2)
        g = self._basis.evaluate(self._distances(data.x1, data.x2))
        self._weights, _, rank, _ = np.linalg.lstsq(g, f, rcond=None)
        logger.debug(
            f"radial: {self._basis!r} n={len(data)} rank={rank} trend={self._order}"
        )

    def interpolate(self, x1: ArrayLike, x2: ArrayLike) -> NDArray:
        """Interpolated values at arbitrary points *x1*, *x2*."""
        self._solve()
        x1, x2 = np.broadcast_arrays(
            np.asarray(x1, dtype="float64"), np.asarray(x2, dtype="float64")
        )
        shape = x1.shape
        x1 = x1.ravel()
        x2 = x2.ravel()
        q = self._basis.evaluate(self._distances(x1, x2)) @ self._weights
        if self._trend is not None:
            q += self._trend.evaluate(x1, x2)
        return q.reshape(shape)

    def grid(self, *samplings: Sampling) -> NDArray:
        self._checked(samplings)
        s1, s2 = samplings
        x1, x2 = grid_coordinates(samplings)
        rows = max(1, _BLOCK_SIZE // (len(self._data) * s1.count))
        q = np.empty(x1.shape)
        for i2 in range(0, s2.count, rows):
            q[i2 : i2 + rows] = self.interpolate(x1[i2 : i2 + rows], x2[i2 : i2 + rows])
        return q
