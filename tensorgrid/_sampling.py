from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class Sampling:
    """Uniform sampling of one axis: values ``first + i*delta`` for ``i`` in
    ``[0, count)``.

    Two or three samplings, given in axis order ``s1, s2[, s3]``, define a
    grid whose arrays have shape ``(n2, n1)`` or ``(n3, n2, n1)``; the first
    axis ``x1`` varies fastest and is the last array axis.
    """

    count: int
    delta: float = 1.0
    first: float = 0.0

    def __post_init__(self) -> None:
        if int(self.count) < 1:
            raise ValueError(f"Sampling count must be >= 1, got {self.count}")
        if not self.delta > 0.0:
            raise ValueError(f"Sampling delta must be positive, got {self.delta}")
        object.__setattr__(self, "count", int(self.count))
        object.__setattr__(self, "delta", float(self.delta))
        object.__setattr__(self, "first", float(self.first))

    @property
    def last(self) -> float:
        return self.first + (self.count - 1) * self.delta

    @property
    def values(self) -> NDArray:
        return self.first + np.arange(self.count) * self.delta

    def value(self, i: int) -> float:
        return self.first + i * self.delta

    def index_of_nearest(self, x: ArrayLike) -> NDArray | int:
        """Index of the sample nearest to *x*, clipped to the sampling."""
        i = np.rint((np.asarray(x, dtype="float64") - self.first) / self.delta)
        i = np.clip(i, 0, self.count - 1).astype(int)
        return int(i) if i.ndim == 0 else i

    def contains(self, x: ArrayLike) -> NDArray | bool:
        """True where *x* lies within half a sample of the sampled range."""
        x = np.asarray(x, dtype="float64")
        lo = self.first - 0.5 * self.delta
        hi = self.last + 0.5 * self.delta
        inside = (lo <= x) & (x <= hi)
        return bool(inside) if inside.ndim == 0 else inside


def grid_shape(samplings) -> tuple[int, ...]:
    """Array shape of the grid defined by *samplings* (slowest axis first)."""
    return tuple(s.count for s in reversed(samplings))


def grid_coordinates(samplings) -> list[NDArray]:
    """Coordinate arrays ``[x1, x2, ...]``, each with the grid shape."""
    axes = [s.values for s in reversed(samplings)]
    mesh = np.meshgrid(*axes, indexing="ij")
    return mesh[::-1]
