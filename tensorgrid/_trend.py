from __future__ import annotations

import itertools

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ._errors import DegenerateGeometry
from ._sampling import grid_coordinates


class PolyTrend:
    """Least-squares polynomial trend of order 0, 1 or 2 in scattered data.

    Coordinates are centred on the mean of the scattered points before
    fitting, which keeps the normal equations well conditioned.
    """

    def __init__(self, order: int, f: ArrayLike, *x: ArrayLike) -> None:
        if not 0 <= order <= 2:
            raise ValueError(f"Trend order must be 0, 1 or 2, got {order}")
        self.order = order
        f = np.asarray(f, dtype="float64")
        x = [np.asarray(xi, dtype="float64") for xi in x]
        self._origin = np.array([xi.mean() for xi in x])

        a = self._design(*x)
        if a.shape[0] < a.shape[1] or np.linalg.matrix_rank(a) < a.shape[1]:
            raise DegenerateGeometry(
                f"{a.shape[0]} scattered points cannot determine a "
                f"{len(x)}D trend of order {order}"
            )
        self._coefficients, *_ = np.linalg.lstsq(a, f, rcond=None)

    @property
    def coefficients(self) -> NDArray:
        return self._coefficients.copy()

    def _design(self, *x: NDArray) -> NDArray:
        y = [np.ravel(xi) - oi for xi, oi in zip(x, self._origin)]
        columns = [np.ones_like(y[0])]
        if self.order >= 1:
            columns.extend(y)
        if self.order >= 2:
            for j, k in itertools.combinations_with_replacement(range(len(y)), 2):
                columns.append(y[j] * y[k])
        return np.column_stack(columns)

    def evaluate(self, *x: ArrayLike) -> NDArray:
        x = np.broadcast_arrays(*[np.asarray(xi, dtype="float64") for xi in x])
        return (self._design(*x) @ self._coefficients).reshape(x[0].shape)

    def detrend(self, f: ArrayLike, *x: ArrayLike) -> NDArray:
        """Return *f* with the trend removed."""
        return np.asarray(f, dtype="float64") - self.evaluate(*x)

    def restore(self, g: NDArray, *samplings) -> NDArray:
        """Return gridded *g* with the trend added back on the grid."""
        return g + self.evaluate(*grid_coordinates(samplings))
