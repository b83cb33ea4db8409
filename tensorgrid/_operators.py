"""Sparse finite-difference operators and the time marker used by gridders.

Diffusion operators are assembled face by face. On the faces normal to
axis ``xk`` the gradient has a plain two-cell difference as its ``k``
component and, for every other axis, the central difference averaged over
the two cells sharing the face. With ``D`` the diffusion tensor and ``s``
an optional per-cell scale, both averaged onto faces, the operator is
``L = 1/2 sum_k Gk' (s D) Gk``. Every face contributes a quadratic form
``g' D g``, so ``L`` is positive semidefinite and, because the normal
component is a plain difference, only constants lie in its null space.
"""

from __future__ import annotations

import itertools
import logging

import numpy as np
import scipy.sparse
from numpy.typing import NDArray
from scipy.ndimage import maximum_filter
from scipy.sparse.csgraph import dijkstra
from scipy.sparse.linalg import LinearOperator, cg

from ._constants import SMOOTHING_MAXITER, SMOOTHING_RTOL

logger = logging.getLogger(__name__)

FLT_MIN = float(np.finfo(np.float32).tiny)


def _difference(n: int) -> scipy.sparse.spmatrix:
    return scipy.sparse.diags([-1.0, 1.0], [0, 1], shape=(n - 1, n))


def _average(n: int) -> scipy.sparse.spmatrix:
    return scipy.sparse.diags([0.5, 0.5], [0, 1], shape=(n - 1, n))


def _central(n: int) -> scipy.sparse.spmatrix:
    """Central differences with the end samples mirrored."""
    c = scipy.sparse.diags([-0.5, 0.5], [-1, 1], shape=(n, n)).tolil()
    c[0, 0] = -0.5
    c[n - 1, n - 1] = 0.5
    return c.tocsr()


def _kron_all(factors) -> scipy.sparse.csr_matrix:
    op = factors[0]
    for m in factors[1:]:
        op = scipy.sparse.kron(op, m)
    return scipy.sparse.csr_matrix(op)


def _check_shape(shape: tuple[int, ...]) -> None:
    if any(n < 2 for n in shape):
        raise ValueError(f"Grid must have at least 2 samples per axis, got {shape}")


def face_average(shape: tuple[int, ...], axis: int) -> scipy.sparse.csr_matrix:
    """Average of the two cells on each face normal to array *axis*."""
    _check_shape(shape)
    return _kron_all(
        [_average(n) if a == axis else scipy.sparse.identity(n) for a, n in enumerate(shape)]
    )


def face_gradients(shape: tuple[int, ...], axis: int) -> list[scipy.sparse.csr_matrix]:
    """Gradient operators ``[G1, G2, ...]`` (axes ``x1, x2, ...``) on the
    faces normal to array *axis*."""
    _check_shape(shape)
    ndim = len(shape)
    grads = []
    for k in range(ndim):
        along = ndim - 1 - k
        factors = []
        for a, n in enumerate(shape):
            if a == axis:
                factors.append(_difference(n) if a == along else _average(n))
            elif a == along:
                factors.append(_central(n))
            else:
                factors.append(scipy.sparse.identity(n))
        grads.append(_kron_all(factors))
    return grads


def diffusion_operator(
    shape: tuple[int, ...],
    tensors=None,
    scale: NDArray | None = None,
) -> scipy.sparse.csr_matrix:
    """Assemble ``L = 1/2 sum_k Gk' (s D) Gk`` on a grid of the given shape.

    *tensors* provides per-cell diffusion matrices through ``diffusion()``;
    ``None`` means isotropic. *scale* is an optional per-cell factor ``s``.
    """
    shape = tuple(shape)
    ndim = len(shape)
    _check_shape(shape)

    d = None
    if tensors is not None:
        if tuple(tensors.shape) != shape:
            raise ValueError(
                f"Tensors have shape {tuple(tensors.shape)}, grid has {shape}"
            )
        d = tensors.diffusion()

    size = int(np.prod(shape))
    op = scipy.sparse.csr_matrix((size, size))
    for axis in range(ndim):
        grads = face_gradients(shape, axis)
        avg = face_average(shape, axis)
        w = 0.5 * (np.ones(avg.shape[0]) if scale is None else avg @ np.ravel(scale))
        for j in range(ndim):
            for k in range(ndim):
                if d is None:
                    if j != k:
                        continue
                    djk = w
                else:
                    djk = w * (avg @ d[..., j, k].ravel())
                op = op + grads[j].T @ scipy.sparse.diags(djk) @ grads[k]
    return op.tocsr()


def solve_cg(
    a: scipy.sparse.spmatrix,
    b: NDArray,
    *,
    rtol: float,
    maxiter: int,
    jacobi: bool = False,
    callback=None,
) -> tuple[NDArray, int]:
    """Conjugate-gradient solve of ``a x = b`` starting from zero."""
    m = None
    if jacobi:
        diag = a.diagonal()
        m = LinearOperator(a.shape, matvec=lambda v: v / diag, dtype="float64")
    x, info = cg(a, b, rtol=rtol, atol=0.0, maxiter=maxiter, M=m, callback=callback)
    if info > 0:
        logger.debug(f"cg: no convergence to rtol={rtol} after {info} iterations")
    return x, info


def smooth(
    tensors,
    c: float,
    s: NDArray | None,
    x: NDArray,
    *,
    rtol: float = SMOOTHING_RTOL,
    maxiter: int = SMOOTHING_MAXITER,
) -> NDArray:
    """Local smoothing: solve ``(I + c G'(s D)G) y = x`` for *y*."""
    op = diffusion_operator(x.shape, tensors, s)
    a = scipy.sparse.identity(x.size, format="csr") + c * op
    y, _ = solve_cg(a, x.ravel(), rtol=rtol, maxiter=maxiter, jacobi=True)
    return y.reshape(x.shape)


# -- time marker -------------------------------------------------------------


def _stencil(ndim: int) -> list[tuple[int, ...]]:
    """Half of the neighbour offsets (array axis order) linked to each cell.

    2D grids use the 16-neighbour stencil (knight moves included), which
    keeps path times within a few percent of straight-line distances; 3D
    grids use the 26 nearest neighbours.
    """
    radius = 2 if ndim == 2 else 1
    offsets = []
    for o in itertools.product(range(-radius, radius + 1), repeat=ndim):
        nonzero = [v for v in o if v != 0]
        if not nonzero or nonzero[0] < 0:
            continue
        if np.gcd.reduce(np.abs(o)) != 1:
            continue
        offsets.append(o)
    return offsets


def _shifted(offset, shape):
    src, dst = [], []
    for o, n in zip(offset, shape):
        if o >= 0:
            src.append(slice(0, n - o))
            dst.append(slice(o, n))
        else:
            src.append(slice(-o, n))
            dst.append(slice(0, n + o))
    return tuple(src), tuple(dst)


def _metric_length(metric: NDArray, dx: NDArray) -> NDArray:
    return np.sqrt(np.einsum("i,...ij,j->...", dx, metric, dx))


def mark_times(known: NDArray, metric: NDArray | None = None):
    """Times from every cell to its nearest known cell, and that cell.

    *known* is a boolean grid. *metric* holds per-cell inverse diffusion
    tensors ``(..., ndim, ndim)`` in axis order ``x1, x2, ...``; ``None``
    means Euclidean distances in samples. Returns ``(t, nearest)`` where
    ``nearest`` holds the flat index of the known cell reached first.
    """
    known = np.asarray(known, dtype=bool)
    shape = known.shape
    sources = np.flatnonzero(known.ravel())
    if sources.size == 0:
        raise ValueError("No known samples to mark times from")

    n = known.size
    index = np.arange(n).reshape(shape)
    rows, cols, vals = [], [], []
    for offset in _stencil(known.ndim):
        src, dst = _shifted(offset, shape)
        if index[src].size == 0:
            continue
        dx = np.array(offset[::-1], dtype="float64")
        if metric is None:
            w = np.full(index[src].shape, np.sqrt(dx @ dx))
        else:
            w = 0.5 * (
                _metric_length(metric[src], dx) + _metric_length(metric[dst], dx)
            )
        rows.append(index[src].ravel())
        cols.append(index[dst].ravel())
        vals.append(w.ravel())
    graph = scipy.sparse.csr_matrix(
        (np.concatenate(vals), (np.concatenate(rows), np.concatenate(cols))),
        shape=(n, n),
    )
    t, _, nearest = dijkstra(
        graph,
        directed=False,
        indices=sources,
        return_predecessors=True,
        min_only=True,
    )
    t[sources] = 0.0
    nearest[sources] = sources
    return t.reshape(shape), nearest.reshape(shape)


def adjust_times(t: NDArray, nearest: NDArray) -> NDArray:
    """Shift times down by the largest time adjacent to each known cell.

    Times of unknown cells become nearly zero next to known cells, which
    keeps blending from pulling known values apart. Known cells stay zero.
    """
    s = maximum_filter(t, size=3, mode="nearest")
    shift = s.ravel()[nearest.ravel()].reshape(t.shape)
    return np.where(t > 0.0, np.maximum(FLT_MIN, t - shift), t)
