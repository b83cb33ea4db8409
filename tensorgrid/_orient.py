"""Local orientation and semblance estimates for 2D and 3D images."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import gaussian_filter, map_coordinates

from .tensors import EigenTensors2, EigenTensors3


class LocalOrientFilter:
    """Structure tensors from Gaussian-smoothed outer products of gradients.

    Gradients are Gaussian derivatives with unit half-width; their outer
    products are smoothed with half-width *sigma*. The eigenvector of the
    largest eigenvalue (``u``) is normal to image features.
    """

    def __init__(self, sigma: float, gradient_sigma: float = 1.0) -> None:
        self.sigma = float(sigma)
        self.gradient_sigma = float(gradient_sigma)

    def apply_for_tensors(self, image: NDArray) -> EigenTensors2 | EigenTensors3:
        image = np.asarray(image, dtype="float64")
        ndim = image.ndim
        if ndim not in (2, 3):
            raise ValueError(f"Expected a 2D or 3D image, got {ndim}D")

        # gradient along x1 is the derivative along the last array axis
        grads = []
        for k in range(ndim):
            order = [0] * ndim
            order[ndim - 1 - k] = 1
            grads.append(gaussian_filter(image, self.gradient_sigma, order=order))

        s = np.empty(image.shape + (ndim, ndim))
        for j in range(ndim):
            for k in range(j, ndim):
                sjk = gaussian_filter(grads[j] * grads[k], self.sigma)
                s[..., j, k] = sjk
                s[..., k, j] = sjk

        # eigh sorts eigenvalues ascending
        a, e = np.linalg.eigh(s)
        if ndim == 2:
            u = e[..., :, 1]
            return EigenTensors2(u[..., 0], u[..., 1], a[..., 1], a[..., 0])
        u = e[..., :, 2]
        w = e[..., :, 0]
        return EigenTensors3(
            u[..., 0], u[..., 1], w[..., 0], w[..., 1],
            a[..., 2], a[..., 1], a[..., 0],
            u3=u[..., 2], w3=w[..., 2],
        )


class LocalSemblanceFilter:
    """Semblance of an image along directions given by 2D tensors.

    Semblance is ``smooth2(smooth1(f)**2) / smooth2(smooth1(f**2))``, where
    ``smooth1`` averages over ``[-hw1, hw1]`` samples along the requested
    direction and ``smooth2`` over ``[-hw2, hw2]`` along the orthogonal one.
    """

    DIRECTIONS = ("U", "V", "UV")

    def __init__(self, half_width1: int, half_width2: int) -> None:
        self.hw1 = int(half_width1)
        self.hw2 = int(half_width2)

    def semblance(self, direction: str, tensors: EigenTensors2, f: NDArray) -> NDArray:
        if direction not in self.DIRECTIONS:
            raise ValueError(
                f"direction must be one of {self.DIRECTIONS}, got {direction!r}"
            )
        f = np.asarray(f, dtype="float64")
        sn = self.smooth1(direction, tensors, f)
        sn = self.smooth2(direction, tensors, sn * sn)
        sd = self.smooth1(direction, tensors, f * f)
        sd = self.smooth2(direction, tensors, sd)

        s = np.zeros_like(f)
        valid = (sd > 0.0) & (sn >= 0.0)
        s[valid] = np.minimum(1.0, sn[valid] / sd[valid])
        return s

    def smooth1(self, direction: str, tensors: EigenTensors2, f: NDArray) -> NDArray:
        return _smooth(direction, tensors, f, self.hw1)

    def smooth2(self, direction: str, tensors: EigenTensors2, f: NDArray) -> NDArray:
        return _smooth(_orthogonal(direction), tensors, f, self.hw2)


def _orthogonal(direction: str) -> str:
    return {"U": "V", "V": "U", "UV": "UV"}[direction]


def _smooth(direction: str, tensors: EigenTensors2, f: NDArray, hw: int) -> NDArray:
    if hw <= 0:
        return f.copy()
    if direction == "UV":
        return gaussian_filter(f, hw / np.sqrt(3.0), mode="nearest")
    e = tensors.u if direction == "U" else tensors.v
    return _line_average(f, e, hw)


def _line_average(f: NDArray, e: NDArray, hw: int) -> NDArray:
    """Average of *f* over ``2*hw+1`` points along unit vectors *e*."""
    i2, i1 = np.meshgrid(np.arange(f.shape[0]), np.arange(f.shape[1]), indexing="ij")
    g = np.zeros_like(f)
    for k in range(-hw, hw + 1):
        coords = [i2 + k * e[..., 1], i1 + k * e[..., 0]]
        g += map_coordinates(f, coords, order=1, mode="nearest")
    return g / (2 * hw + 1)
