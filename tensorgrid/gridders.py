"""Gridders that work on the cells of a regular grid.

Every gridder takes scattered samples ``f, x1, x2[, x3]`` and returns values
on the grid defined by one uniform :class:`Sampling` per axis, as an array of
shape ``(n2, n1)`` or ``(n3, n2, n1)``.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ._constants import PNULL, SPLINES_MAXITER, SPLINES_SMALL
from ._operators import adjust_times, diffusion_operator, mark_times, smooth, solve_cg
from ._sampling import Sampling, grid_coordinates, grid_shape
from ._scattered import Scattered
from ._trend import PolyTrend

logger = logging.getLogger(__name__)


class Gridder:
    """Base class holding the scattered samples."""

    def __init__(self, f: ArrayLike | None = None, *x: ArrayLike) -> None:
        self._data = None
        if f is not None:
            self.set_scattered(f, *x)

    def set_scattered(self, f: ArrayLike, *x: ArrayLike) -> None:
        self._data = Scattered.of(f, *x)

    @property
    def scattered(self) -> Scattered | None:
        return self._data

    def grid(self, *samplings: Sampling) -> NDArray:
        raise NotImplementedError

    def _checked(
        self, samplings, geometry: bool = True, min_count: int = 1
    ) -> Scattered:
        if self._data is None:
            raise RuntimeError("No scattered samples. Call set_scattered() first.")
        if len(samplings) != self._data.ndim:
            raise ValueError(
                f"Expected {self._data.ndim} samplings, got {len(samplings)}"
            )
        if any(s.count < min_count for s in samplings):
            raise ValueError(
                f"{type(self).__name__} needs at least {min_count} samples per axis, "
                f"got {[s.count for s in samplings]}"
            )
        if geometry:
            self._data.check_geometry()
        return self._data


# -- simple ------------------------------------------------------------------


class SimpleGridder(Gridder):
    """Bins each sample into its nearest grid cell.

    Samples more than half a cell outside the grid are ignored; coincident
    samples are averaged. Cells without samples get the null value.
    """

    def __init__(
        self, f: ArrayLike | None = None, *x: ArrayLike, null_value: float = 0.0
    ) -> None:
        super().__init__(f, *x)
        self._null = float(null_value)

    def set_null_value(self, null_value: float) -> None:
        self._null = float(null_value)

    @property
    def null_value(self) -> float:
        return self._null

    def grid(self, *samplings: Sampling) -> NDArray:
        data = self._checked(samplings, geometry=False)
        g, c = _bin(data, samplings)
        out = np.full(g.shape, self._null)
        np.divide(g, c, out=out, where=c > 0.0)
        return out

    @staticmethod
    def samples_on_grid(samplings, f: ArrayLike, *x: ArrayLike) -> Scattered:
        """Scattered samples moved to, and averaged within, grid cells."""
        g, c = _bin(Scattered.of(f, *x), samplings)
        known = c > 0.0
        coords = [xk[known] for xk in grid_coordinates(samplings)]
        return Scattered(g[known] / c[known], tuple(coords))

    @staticmethod
    def gridded_samples(null_value: float, samplings, g: NDArray) -> Scattered:
        """Non-null values of gridded *g* as scattered samples."""
        g = np.asarray(g)
        known = g != null_value
        coords = [xk[known] for xk in grid_coordinates(samplings)]
        return Scattered(g[known], tuple(coords))


def _bin(data: Scattered, samplings) -> tuple[NDArray, NDArray]:
    shape = grid_shape(samplings)
    inside = np.ones(len(data), dtype=bool)
    for s, xk in zip(samplings, data.x):
        inside &= s.contains(xk)
    index = tuple(
        np.atleast_1d(s.index_of_nearest(xk[inside]))
        for s, xk in zip(reversed(samplings), reversed(data.x))
    )
    g = np.zeros(shape)
    c = np.zeros(shape)
    np.add.at(g, index, data.f[inside])
    np.add.at(c, index, 1.0)
    return g, c


# -- blended -----------------------------------------------------------------


class BlendedGridder(Gridder):
    """Blended neighbour gridding.

    Gridding happens in two steps. :meth:`grid_nearest` assigns every
    unknown cell the value of the known cell that is nearest in time, where
    times are measured along paths whose speed is set by the tensors, and
    returns those times. :meth:`grid_blended` then solves an anisotropic
    diffusion equation whose coefficients grow with the squared times,
    which blends nearest-neighbour values smoothly while leaving known
    values in place.
    Every output axis needs at least two samples.
    """

    def __init__(
        self, f: ArrayLike | None = None, *x: ArrayLike, tensors=None
    ) -> None:
        super().__init__(f, *x)
        self._tensors = tensors
        self._c = 0.5
        self._tmax = np.inf
        self._blending = True

    def set_tensors(self, tensors) -> None:
        """Tensors steering both time marking and blending; None for isotropic."""
        self._tensors = tensors

    @property
    def tensors(self):
        return self._tensors

    def set_smoothness(self, smoothness: float) -> None:
        """Larger smoothness gives smoother blends; 0.5 is the default."""
        if not smoothness > 0.0:
            raise ValueError(f"smoothness must be positive, got {smoothness}")
        self._c = 0.25 / smoothness

    @property
    def smoothness(self) -> float:
        return 0.25 / self._c

    def set_time_max(self, tmax: float) -> None:
        """Clip times (in samples) at *tmax*, limiting how far blending reaches."""
        if not tmax > 0.0:
            raise ValueError(f"tmax must be positive, got {tmax}")
        self._tmax = float(tmax)

    def set_blending(self, blending: bool) -> None:
        self._blending = bool(blending)

    def grid_nearest(self, pnull: float, p: ArrayLike) -> tuple[NDArray, NDArray]:
        """Nearest-neighbour interpolation of the non-null values in *p*.

        Parameters
        ----------
        pnull : float
            Value marking cells with no sample.
        p : array_like, shape (n2, n1) or (n3, n2, n1)
            Gridded samples, *pnull* where unknown. Not modified.

        Returns
        -------
        t : ndarray
            Tensor-weighted time to the nearest known cell, zero at known
            cells and clipped at the maximum time.
        q : ndarray
            *p* with every null cell replaced by its nearest known value.

        Raises
        ------
        ValueError
            If *p* has no known cells or the tensors do not match its shape.
        """
        p = np.array(p, dtype="float64")
        known = p != pnull
        metric = None
        if self._tensors is not None:
            self._check_tensors(p.shape)
            metric = self._tensors.metric()
        t, nearest = mark_times(known, metric)
        t = adjust_times(t, nearest)
        q = p.ravel()[nearest.ravel()].reshape(p.shape)
        t = np.minimum(t, self._tmax)
        logger.debug(
            f"grid_nearest: {int(known.sum())} known cells, max time {t.max():.3g}"
        )
        return t, q

    def grid_blended(
        self, t: ArrayLike, p: ArrayLike, out: NDArray | None = None
    ) -> NDArray:
        """Blend nearest-neighbour values *p* using times *t*.

        Cells with zero time keep their values exactly.
        """
        t = np.asarray(t, dtype="float64")
        p = np.asarray(p, dtype="float64")
        if t.shape != p.shape:
            raise ValueError(f"t {t.shape} and p {p.shape} differ in shape")
        if self._tensors is not None:
            self._check_tensors(p.shape)
        known = t == 0.0
        pavg = p.mean()
        q = smooth(self._tensors, self._c, t * t, p - pavg) + pavg
        q[known] = p[known]
        if out is None:
            return q
        out[...] = q
        return out

    def grid(self, *samplings: Sampling) -> NDArray:
        data = self._checked(samplings, min_count=2)
        p = SimpleGridder(data.f, *data.x, null_value=PNULL).grid(*samplings)
        t, p = self.grid_nearest(PNULL, p)
        if not self._blending:
            return p
        return self.grid_blended(t, p)

    def _check_tensors(self, shape) -> None:
        if tuple(self._tensors.shape) != tuple(shape):
            raise ValueError(
                f"Tensors have shape {tuple(self._tensors.shape)}, "
                f"grid has {tuple(shape)}"
            )


class NearestGridder(BlendedGridder):
    """Nearest-neighbour gridding along tensor-weighted times, no blending."""

    def __init__(
        self, f: ArrayLike | None = None, *x: ArrayLike, tensors=None
    ) -> None:
        super().__init__(f, *x, tensors=tensors)
        self.set_blending(False)


# -- splines -----------------------------------------------------------------


class SplinesGridder(Gridder):
    """Splines with tension, solved on the grid.

    Missing cells minimize ``|L q|^2 + t |G q|^2`` with known cells fixed,
    where ``L = G' D G`` is the tensor-weighted Laplacian. Tension 0 gives
    minimum-curvature (thin-plate) splines; increasing tension makes the
    interpolant more local, up to harmonic interpolation at tension 1.
    A linear trend is removed before and restored after gridding.
    Every output axis needs at least two samples.
    """

    def __init__(
        self, f: ArrayLike | None = None, *x: ArrayLike, tensors=None
    ) -> None:
        super().__init__(f, *x)
        self._tensors = tensors
        self._tension = 0.0
        self._niter = SPLINES_MAXITER
        self._residuals = [1.0]

    def set_tensors(self, tensors) -> None:
        self._tensors = tensors

    @property
    def tensors(self):
        return self._tensors

    def set_tension(self, tension: float) -> None:
        if not 0.0 <= tension <= 1.0:
            raise ValueError(f"tension must be in [0, 1], got {tension}")
        self._tension = float(tension)

    @property
    def tension(self) -> float:
        return self._tension

    def set_max_iterations(self, niter: int) -> None:
        self._niter = int(niter)

    @property
    def iteration_count(self) -> int:
        """Conjugate-gradient iterations used by the last solve."""
        return len(self._residuals) - 1

    @property
    def residuals(self) -> NDArray:
        """Residual norms of the last solve, normalized by the first."""
        return np.array(self._residuals)

    def grid_missing(self, qnull: float, q: ArrayLike) -> NDArray:
        """Return *q* with every cell equal to *qnull* interpolated."""
        q = np.asarray(q, dtype="float64")
        return self.grid_missing_mask(q == qnull, q)

    def grid_missing_mask(self, missing: ArrayLike, q: ArrayLike) -> NDArray:
        """Return *q* with the cells flagged in *missing* interpolated."""
        q = np.array(q, dtype="float64")
        missing = np.asarray(missing, dtype=bool).ravel()
        if missing.shape[0] != q.size:
            raise ValueError("missing mask and q differ in size")
        self._residuals = [1.0]
        if not missing.any():
            return q
        if missing.all():
            raise ValueError("No known samples in q")
        if self._tensors is not None and tuple(self._tensors.shape) != q.shape:
            raise ValueError(
                f"Tensors have shape {tuple(self._tensors.shape)}, grid has {q.shape}"
            )

        lop = diffusion_operator(q.shape, self._tensors)
        if self._tension >= 1.0:
            a = lop
        else:
            s = 0.02 * sum(n - 1 for n in q.shape)
            t = self._tension / (1.0 - self._tension) / (s * s)
            a = (lop @ lop + t * lop).tocsr()

        known = ~missing
        a_missing = a[missing]
        amm = a_missing[:, missing]
        b = -(a_missing[:, known] @ q.ravel()[known])
        bnorm = np.linalg.norm(b)
        small = SPLINES_SMALL * 1.0e5 / q.size

        if bnorm > 0.0:
            def record(xk):
                self._residuals.append(np.linalg.norm(b - amm @ xk) / bnorm)

            x, _ = solve_cg(amm, b, rtol=small, maxiter=self._niter, callback=record)
        else:
            x = np.zeros(int(missing.sum()))
        logger.debug(
            f"splines: small={small:.3g} iter={self.iteration_count} "
            f"rnorm={self._residuals[-1]:.3g}"
        )

        out = q.ravel()
        out[missing] = x
        return out.reshape(q.shape)

    def grid(self, *samplings: Sampling) -> NDArray:
        data = self._checked(samplings, min_count=2)
        trend = PolyTrend(1, data.f, *data.x)
        f = trend.detrend(data.f, *data.x)
        q = SimpleGridder(f, *data.x, null_value=PNULL).grid(*samplings)
        q = self.grid_missing(PNULL, q)
        return trend.restore(q, *samplings)
