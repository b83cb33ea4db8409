from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ._errors import DegenerateGeometry


@dataclass(frozen=True)
class Scattered:
    """Scattered samples ``f[i]`` at coordinates ``x1[i], x2[i][, x3[i]]``."""

    f: NDArray
    x: tuple[NDArray, ...]

    def __post_init__(self) -> None:
        f = np.array(self.f, dtype="float64").ravel()
        x = tuple(np.array(xi, dtype="float64").ravel() for xi in self.x)
        if len(x) not in (1, 2, 3):
            raise ValueError(f"Expected 1 to 3 coordinate arrays, got {len(x)}")
        for k, xk in enumerate(x, start=1):
            if xk.shape != f.shape:
                raise ValueError(
                    f"x{k} has {xk.shape[0]} samples but f has {f.shape[0]}"
                )
        object.__setattr__(self, "f", f)
        object.__setattr__(self, "x", x)

    @classmethod
    def of(cls, f: ArrayLike, *x: ArrayLike) -> "Scattered":
        return cls(f, tuple(x))

    def __len__(self) -> int:
        return self.f.shape[0]

    @property
    def ndim(self) -> int:
        return len(self.x)

    @property
    def x1(self) -> NDArray:
        return self.x[0]

    @property
    def x2(self) -> NDArray:
        return self.x[1]

    @property
    def x3(self) -> NDArray:
        return self.x[2]

    @property
    def points(self) -> NDArray:
        """``(N, ndim)`` array of coordinates."""
        return np.column_stack(self.x)

    def check_geometry(self) -> None:
        check_geometry(self.points)


def check_geometry(points: NDArray) -> None:
    """Raise DegenerateGeometry unless *points* span their whole space.

    In 2D that means at least three non-collinear points, in 3D at least
    four non-coplanar points.
    """
    points = np.atleast_2d(np.asarray(points, dtype="float64"))
    n, ndim = points.shape
    if n < ndim + 1:
        raise DegenerateGeometry(
            f"Need at least {ndim + 1} scattered points in {ndim}D, got {n}"
        )
    centered = points - points.mean(axis=0)
    scale = np.abs(centered).max()
    if scale == 0.0 or np.linalg.matrix_rank(centered / scale, tol=1e-10) < ndim:
        kind = {2: "collinear", 3: "coplanar"}.get(ndim, "coincident")
        raise DegenerateGeometry(f"All {n} scattered points are {kind}")
