"""Eigen-decomposed tensor fields that steer anisotropic gridding.

A 2D tensor at each cell is ``D = au u u' + av v v'`` with unit vector ``u``
and ``v`` perpendicular to it. For smoothing tensors ``au`` is small where
smoothing across structure should stop and ``av`` is near one along
structure. 3D tensors add a third unit vector ``w`` and eigenvalue ``aw``.
All vectors are stored in axis order ``x1, x2[, x3]``; arrays have the grid
shape ``(n2, n1)`` or ``(n3, n2, n1)``.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ._constants import COHERENCE_MAX, EIGENVALUE_FLOOR, TENSOR_CENTER

FLT_MIN = float(np.finfo(np.float32).tiny)
FLT_EPSILON = float(np.finfo(np.float32).eps)


class _EigenTensors:
    _n_eigen = 0

    @property
    def shape(self) -> tuple[int, ...]:
        return self._a.shape[1:]

    @property
    def ndim(self) -> int:
        return self._n_eigen

    def get_eigenvalues(self) -> tuple[NDArray, ...]:
        """Copies of the eigenvalue arrays, largest-index last."""
        return tuple(a.copy() for a in self._a)

    def set_eigenvalues(self, *a: ArrayLike) -> None:
        if len(a) != self._n_eigen:
            raise ValueError(f"Expected {self._n_eigen} eigenvalue arrays, got {len(a)}")
        self._a = np.stack([np.broadcast_to(np.asarray(ai, "float64"), self.shape) for ai in a])

    def scale(self, s: ArrayLike) -> None:
        """Multiply all eigenvalues by per-cell factors *s*."""
        self._a = self._a * np.asarray(s, dtype="float64")

    def eigenvectors(self) -> tuple[NDArray, ...]:
        raise NotImplementedError

    def diffusion(self) -> NDArray:
        """Per-cell tensors as ``(*shape, ndim, ndim)`` matrices."""
        d = np.zeros(self.shape + (self.ndim, self.ndim))
        for a, e in zip(self._a, self.eigenvectors()):
            d += a[..., None, None] * e[..., :, None] * e[..., None, :]
        return d

    def metric(self) -> NDArray:
        """Per-cell inverse tensors, eigenvalues floored at a small value."""
        m = np.zeros(self.shape + (self.ndim, self.ndim))
        for a, e in zip(self._a, self.eigenvectors()):
            inv = 1.0 / np.maximum(a, EIGENVALUE_FLOOR)
            m += inv[..., None, None] * e[..., :, None] * e[..., None, :]
        return m


class EigenTensors2(_EigenTensors):
    """Tensors from unit vectors ``u = (u1, u2)`` and eigenvalues ``au, av``."""

    _n_eigen = 2

    def __init__(self, u1: ArrayLike, u2: ArrayLike, au: ArrayLike, av: ArrayLike) -> None:
        u1 = np.array(u1, dtype="float64")
        u2 = np.array(u2, dtype="float64")
        if u1.shape != u2.shape:
            raise ValueError(f"u1 {u1.shape} and u2 {u2.shape} differ in shape")
        self._u = np.stack([u1, u2], axis=-1)
        self._a = np.zeros((2,) + u1.shape)
        self.set_eigenvalues(au, av)

    @property
    def u(self) -> NDArray:
        return self._u

    @property
    def v(self) -> NDArray:
        return np.stack([-self._u[..., 1], self._u[..., 0]], axis=-1)

    @property
    def au(self) -> NDArray:
        return self._a[0]

    @property
    def av(self) -> NDArray:
        return self._a[1]

    def eigenvectors(self) -> tuple[NDArray, ...]:
        return self.u, self.v

    def invert_structure(self, p0: float, p1: float) -> None:
        """Turn structure tensors into normalized smoothing tensors.

        Eigenvalues are first ordered so ``au >= av >= 0``. With ``amin`` the
        smallest ``av``, the new eigenvalues are ``av = (amin/av)**p0`` and
        ``au = av * (av/au)**p1``, all in ``(0, 1]``.
        """
        au, av = self._a
        av = np.maximum(av, 0.0)
        au = np.maximum(au, av)
        amin, amax = av.min(), au.max()
        aeps = max(FLT_MIN * 100.0, FLT_EPSILON * amax)
        amin += aeps
        au = au + aeps
        av = av + aeps
        a0 = (amin / av) ** p0
        a1 = (av / au) ** p1
        self._a = np.stack([a0 * a1, a0])


class EigenTensors3(_EigenTensors):
    """Tensors from orthogonal unit vectors ``u``, ``w`` and eigenvalues
    ``au, av, aw``; ``v`` completes the right-handed frame.

    When ``u3`` or ``w3`` is omitted it is recovered from the other two
    components as the non-negative value that gives a unit vector.
    """

    _n_eigen = 3

    def __init__(
        self,
        u1: ArrayLike,
        u2: ArrayLike,
        w1: ArrayLike,
        w2: ArrayLike,
        au: ArrayLike,
        av: ArrayLike,
        aw: ArrayLike,
        *,
        u3: ArrayLike | None = None,
        w3: ArrayLike | None = None,
    ) -> None:
        self._u = _unit3(u1, u2, u3)
        self._w = _unit3(w1, w2, w3)
        if self._u.shape != self._w.shape:
            raise ValueError("u and w differ in shape")
        self._a = np.zeros((3,) + self._u.shape[:-1])
        self.set_eigenvalues(au, av, aw)

    @property
    def u(self) -> NDArray:
        return self._u

    @property
    def v(self) -> NDArray:
        return np.cross(self._w, self._u)

    @property
    def w(self) -> NDArray:
        return self._w

    @property
    def au(self) -> NDArray:
        return self._a[0]

    @property
    def av(self) -> NDArray:
        return self._a[1]

    @property
    def aw(self) -> NDArray:
        return self._a[2]

    def eigenvectors(self) -> tuple[NDArray, ...]:
        return self.u, self.v, self.w

    def invert_structure(self, p0: float, p1: float, p2: float) -> None:
        """3D analogue of :meth:`EigenTensors2.invert_structure`."""
        au, av, aw = self._a
        aw = np.maximum(aw, 0.0)
        av = np.maximum(av, aw)
        au = np.maximum(au, av)
        amin, amax = aw.min(), au.max()
        aeps = max(FLT_MIN * 100.0, FLT_EPSILON * amax)
        amin += aeps
        au = au + aeps
        av = av + aeps
        aw = aw + aeps
        a0 = (amin / aw) ** p0
        a1 = (aw / av) ** p1
        a2 = (av / au) ** p2
        self._a = np.stack([a0 * a1 * a2, a0 * a1, a0])


def _unit3(c1, c2, c3) -> NDArray:
    c1 = np.array(c1, dtype="float64")
    c2 = np.array(c2, dtype="float64")
    if c3 is None:
        c3 = np.sqrt(np.maximum(0.0, 1.0 - c1 * c1 - c2 * c2))
    else:
        c3 = np.array(c3, dtype="float64")
    return np.stack(np.broadcast_arrays(c1, c2, c3), axis=-1)


# -- builders ----------------------------------------------------------------


def _check_eigenvalues(au: float, *a: float) -> None:
    if not (0.0 <= au <= min(a) and max(a) <= 1.0):
        raise ValueError(
            f"Eigenvalues must lie in [0, 1] with au smallest, got {(au,) + a}"
        )


def make_circle_tensors(
    n1: int, n2: int, au: float = 0.01, av: float = 1.0
) -> EigenTensors2:
    """Tensors for smoothing along concentric circular arcs about the origin.

    ``u`` points radially away from a centre offset slightly from the
    corner sample, so no cell has a zero-length radius.
    """
    _check_eigenvalues(au, av)
    x2, x1 = np.meshgrid(
        np.arange(n2) - TENSOR_CENTER, np.arange(n1) - TENSOR_CENTER, indexing="ij"
    )
    xs = 1.0 / np.hypot(x1, x2)
    return EigenTensors2(xs * x1, xs * x2, np.full((n2, n1), au), np.full((n2, n1), av))


def make_sphere_tensors(
    n1: int, n2: int, n3: int, au: float = 0.01, av: float = 1.0, aw: float = 1.0
) -> EigenTensors3:
    """Tensors for smoothing within concentric spherical shells."""
    _check_eigenvalues(au, av, aw)
    x3, x2, x1 = np.meshgrid(
        np.arange(n3) - TENSOR_CENTER,
        np.arange(n2) - TENSOR_CENTER,
        np.arange(n1) - TENSOR_CENTER,
        indexing="ij",
    )
    xu = 1.0 / np.sqrt(x1 * x1 + x2 * x2 + x3 * x3)
    xw = 1.0 / np.hypot(x1, x2)
    shape = (n3, n2, n1)
    return EigenTensors3(
        xu * x1,
        xu * x2,
        -xw * x2,
        xw * x1,
        np.full(shape, au),
        np.full(shape, av),
        np.full(shape, aw),
        u3=xu * x3,
        w3=np.zeros(shape),
    )


def make_image_tensors(image: ArrayLike, sigma: float = 3) -> EigenTensors2:
    """Tensors for smoothing along the features of a 2D image.

    Structure tensors are scaled by ``1 - c``, where ``c`` is the coherence
    clipped to ``[0, 0.99]``, then inverted into smoothing tensors. Coherent
    features therefore get strongly directional tensors, incoherent areas
    nearly isotropic ones.
    """
    from ._orient import LocalOrientFilter

    image = np.asarray(image, dtype="float64")
    if image.ndim != 2:
        raise ValueError(f"Image tensors need a 2D image, got {image.ndim}D")
    t = LocalOrientFilter(sigma).apply_for_tensors(image)
    c = coherence(sigma, t, image)
    c = np.clip(c, 0.0, COHERENCE_MAX)
    t.scale(1.0 - c)
    t.invert_structure(1.0, 1.0)
    return t


def coherence(sigma: float, tensors: EigenTensors2, image: ArrayLike) -> NDArray:
    """Structure-oriented semblance of *image* along the ``v`` direction."""
    from ._orient import LocalSemblanceFilter

    lsf = LocalSemblanceFilter(int(sigma), int(4 * sigma))
    return lsf.semblance("V", tensors, np.asarray(image, dtype="float64"))
