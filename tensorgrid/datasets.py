"""Synthetic and literal scattered datasets with their named grids.

Literal datasets return ``Scattered`` samples with coordinates in axis
order ``x1, x2``. Each has a ``samplings_*`` function mapping a grid
resolution name to the samplings ``(s1, s2)`` used to grid it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import gaussian_filter

from ._constants import DEFAULT_GRID, RANDOM_SEED
from ._errors import UnknownConfiguration
from ._sampling import Sampling
from ._scattered import Scattered
from .volume import load_volume, volume_samplings

# -- synthetic ---------------------------------------------------------------


def make_circle_data(n1: int, n2: int, kr: int, kt: int) -> Scattered:
    """Samples spaced along quarter-circle arcs centred on cell (0, 0).

    Arcs are *kr* samples apart radially and samples are about *kt* samples
    apart along each arc. Values alternate 1, 0, 1, ... from arc to arc.
    """
    f, x1, x2 = [], [], []
    fi = 1.0
    nr = int(math.sqrt(n1 * n1 + n2 * n2))
    mr = nr // kr
    jr = (nr - (mr - 1) * kr) // 2
    for r in range(jr, nr, kr):
        nt = int(0.5 * math.pi * r)
        mt = nt // kt
        jt = (nt - (mt - 1) * kt) // 2
        for it in range(jt, nt, kt):
            t = 0.5 * math.pi * it / nt
            i1 = int(r * math.cos(t) + 0.5)
            i2 = int(r * math.sin(t) + 0.5)
            if i1 < n1 and i2 < n2:
                f.append(fi)
                x1.append(float(i1))
                x2.append(float(i2))
        fi = 0.0 if fi == 1.0 else 1.0
    return Scattered.of(f, x1, x2)


def make_sphere_data(n1: int, n2: int, n3: int, kr: int, kt: int, kp: int) -> Scattered:
    """Samples spaced over octant spherical shells centred on cell (0, 0, 0).

    *kt* and *kp* are the polar and azimuthal spacings in samples.
    """
    f, x1, x2, x3 = [], [], [], []
    fi = 1.0
    nr = int(math.sqrt(n1 * n1 + n2 * n2 + n3 * n3))
    mr = nr // kr
    jr = (nr - (mr - 1) * kr) // 2
    for r in range(jr, nr, kr):
        nt = int(0.5 * math.pi * r)
        mt = nt // kt
        jt = (nt - (mt - 1) * kt) // 2
        for it in range(jt, nt, kt):
            t = 0.5 * math.pi * it / nt
            np_ = int(0.5 * math.pi * r * math.sin(t))
            mp = np_ // kp
            jp = (np_ - (mp - 1) * kp) // 2
            for ip in range(jp, np_, kp):
                p = 0.5 * math.pi * ip / np_
                i1 = int(r * math.cos(t) + 0.5)
                i2 = int(r * math.sin(t) * math.cos(p) + 0.5)
                i3 = int(r * math.sin(t) * math.sin(p) + 0.5)
                if i1 < n1 and i2 < n2 and i3 < n3:
                    f.append(fi)
                    x1.append(float(i1))
                    x2.append(float(i2))
                    x3.append(float(i3))
        fi = 0.0 if fi == 1.0 else 1.0
    return Scattered.of(f, x1, x2, x3)


def random_image(
    n1: int, n2: int, seed: int = RANDOM_SEED, sigma: float | None = None
) -> NDArray:
    """Uniform random values in ``[-0.5, 0.5)`` on an ``(n2, n1)`` grid.

    The same seed always gives the same image. With *sigma* the image is
    Gaussian smoothed.
    """
    rng = np.random.default_rng(seed)
    image = rng.random((n2, n1)) - 0.5
    if sigma is not None:
        image = gaussian_filter(image, sigma)
    return image


def make_sin_image(s1: Sampling, s2: Sampling) -> NDArray:
    """``sin(2 pi x1) sin(2 pi x2)`` sampled on a grid."""
    return np.outer(np.sin(2.0 * np.pi * s2.values), np.sin(2.0 * np.pi * s1.values))


def random_samples(nr: int, s: Sampling, seed: int = RANDOM_SEED) -> NDArray:
    """*nr* sorted random coordinates spanning exactly ``[s.first, s.last]``."""
    if nr < 2:
        raise ValueError(f"Need at least 2 random samples, got {nr}")
    r = np.random.default_rng(seed).random(nr)
    rmin, rmax = r.min(), r.max()
    return np.sort(s.first + (s.last - s.first) / (rmax - rmin) * (r - rmin))


# -- literal datasets --------------------------------------------------------


def data_saddle() -> Scattered:
    """Four corner samples of a saddle on the unit square."""
    return Scattered.of([0.0, 1.0, 1.0, 0.0], [0.1, 0.9, 0.1, 0.9], [0.1, 0.1, 0.9, 0.9])


def data_sin_sin(n: int = 100, seed: int = RANDOM_SEED) -> Scattered:
    """*n* random samples of ``sin(2 pi x1) sin(2 pi x2)`` in the unit square."""
    rng = np.random.default_rng(seed)
    x1 = rng.random(n)
    x2 = rng.random(n)
    return Scattered.of(np.sin(2.0 * np.pi * x1) * np.sin(2.0 * np.pi * x2), x1, x2)


# Davis (2002), Statistics and Data Analysis in Geology, p. 381, LAMONT.TXT:
# easting, northing and depth (ft) of a seismic horizon.
_LAMONT = [
    32000, 87015, 7888, 38600, 87030, 8020, 44000, 86400, 7943,
    48200, 87060, 8003, 30650, 82200, 7918, 35030, 80901, 7905,
    39476, 80970, 7900, 44198, 80910, 7998, 33530, 76230, 7879,
    38024, 76170, 7817, 42440, 76650, 8018, 46955, 76620, 7890,
    30350, 71700, 7903, 35195, 71745, 7815, 39650, 71760, 7966,
    44180, 71766, 7913, 48800, 70215, 7818, 29240, 81960, 7920,
    32270, 83760, 7923, 33770, 84720, 7918, 35240, 85590, 7927,
    36740, 86520, 7969, 39680, 88350, 8043, 41240, 89250, 8059,
    29840, 67560, 7932, 31280, 66600, 7883, 32720, 65610, 7842,
    34190, 64650, 7842, 35720, 63720, 7874, 37100, 62700, 7871,
    38600, 61800, 7861, 40100, 60840, 7875, 30200, 62280, 7678,
    31730, 63000, 7740, 33500, 63720, 7799, 36680, 65160, 7902,
    38300, 65790, 7943, 39830, 66540, 7962, 41420, 67200, 7967,
    43010, 67920, 7931, 44690, 68580, 7876, 46250, 69300, 7854,
    30200, 76500, 7849, 31640, 75420, 7880, 33080, 74280, 7869,
    34520, 73260, 7820, 37280, 71070, 7892, 38660, 70020, 7965,
    40040, 69000, 8008, 41450, 67890, 7986, 42800, 66900, 7922,
    44240, 65730, 7852, 45500, 64710, 7773, 46940, 63600, 7693,
    48200, 62520, 7632, 49610, 61410, 7567, 33800, 89220, 7896,
    34880, 87720, 7915, 35840, 86280, 7943, 37040, 84720, 7948,
    37940, 83160, 7928, 40784, 79260, 7923, 42740, 75120, 8004,
    43730, 74610, 8001, 44660, 73200, 7927, 45680, 71700, 7877,
    46760, 70200, 7857, 47600, 68790, 7824, 48500, 67380, 7768,
    49520, 65940, 7696, 42320, 89100, 8032, 43700, 88080, 7971,
    45080, 87000, 7946, 46520, 86010, 7973, 47900, 85050, 8003,
    49400, 84000, 8032,
]  # fmt: skip

# Davis (2002), p. 374, NOTREDAM.TXT: surveyed elevations in map units.
_NOTRE_DAME = [
    0.3, 6.1, 870.0, 1.4, 6.2, 793.0, 2.4, 6.1, 755.0, 3.6, 6.2, 690.0,
    5.7, 6.2, 800.0, 1.6, 5.2, 800.0, 2.9, 5.1, 730.0, 3.4, 5.3, 728.0,
    3.4, 5.7, 710.0, 4.8, 5.6, 780.0, 5.3, 5.0, 804.0, 6.2, 5.2, 855.0,
    0.2, 4.3, 830.0, 0.9, 4.2, 813.0, 2.3, 4.8, 762.0, 2.5, 4.5, 765.0,
    3.0, 4.5, 740.0, 3.5, 4.5, 765.0, 4.1, 4.6, 760.0, 4.9, 4.2, 790.0,
    6.3, 4.3, 820.0, 0.9, 3.2, 855.0, 1.7, 3.8, 812.0, 2.4, 3.8, 773.0,
    3.7, 3.5, 812.0, 4.5, 3.2, 827.0, 5.2, 3.2, 805.0, 6.3, 3.4, 840.0,
    0.3, 2.4, 890.0, 2.0, 2.7, 820.0, 3.8, 2.3, 873.0, 6.3, 2.2, 875.0,
    0.6, 1.7, 873.0, 1.5, 1.8, 865.0, 2.1, 1.8, 841.0, 2.1, 1.1, 862.0,
    3.1, 1.1, 908.0, 4.5, 1.8, 855.0, 5.5, 1.7, 850.0, 5.7, 1.0, 882.0,
    6.2, 1.0, 910.0, 0.4, 0.5, 940.0, 1.4, 0.6, 915.0, 1.4, 0.1, 890.0,
    2.1, 0.7, 880.0, 2.3, 0.3, 870.0, 3.1, 0.0, 880.0, 4.1, 0.8, 960.0,
    5.4, 0.4, 890.0, 6.0, 0.1, 860.0, 5.7, 3.0, 830.0, 3.6, 6.0, 705.0,
]  # fmt: skip

# Teapot Dome horizon picks: time sample, trace and value.
_TEAPOT = [
    30, 69, 0.50, 99, 72, 0.50, 153, 69, 0.50, 198, 68, 0.50,
    63, 71, 0.90, 128, 72, 0.90, 176, 69, 0.90,
    29, 172, 0.35, 97, 173, 0.35, 150, 173, 0.35, 192, 176, 0.35,
    63, 173, 0.75, 127, 174, 0.75, 172, 174, 0.75,
    33, 272, 0.20, 103, 270, 0.20, 160, 267, 0.20, 199, 267, 0.20,
    70, 271, 0.60, 134, 268, 0.60, 179, 267, 0.60,
]  # fmt: skip

_TEAPOT_SHALLOW = [
    30, 69, 0.50, 99, 72, 0.50,
    63, 71, 0.90, 128, 72, 0.90,
    29, 172, 0.35, 97, 173, 0.35,
    63, 173, 0.75, 127, 174, 0.75,
    33, 272, 0.20, 103, 270, 0.20,
    70, 271, 0.60, 134, 268, 0.60,
]  # fmt: skip


def _triples(values) -> NDArray:
    return np.asarray(values, dtype="float64").reshape(-1, 3)


def data_lamont() -> Scattered:
    """Lamont horizon depths; easting, northing and depth all in kft."""
    xyz = 0.001 * _triples(_LAMONT)
    return Scattered.of(xyz[:, 2], xyz[:, 0], xyz[:, 1])


def data_notre_dame() -> Scattered:
    """Notre Dame elevations, with coordinates at 50 ft per map unit."""
    xyz = _triples(_NOTRE_DAME)
    return Scattered.of(xyz[:, 2], 50.0 * xyz[:, 0], 50.0 * xyz[:, 1])


def data_teapot() -> Scattered:
    """Values picked on the Teapot image, ``x1`` = time and ``x2`` = trace."""
    txf = _triples(_TEAPOT)
    return Scattered.of(txf[:, 2], txf[:, 0], txf[:, 1])


def data_teapot_shallow() -> Scattered:
    """Teapot picks without the deepest samples of each horizon."""
    txf = _triples(_TEAPOT_SHALLOW)
    return Scattered.of(txf[:, 2], txf[:, 0], txf[:, 1])


def image_teapot() -> NDArray:
    """The Teapot seismic image, shape ``(357, 251)``."""
    return load_volume("teapot")


# -- named samplings ---------------------------------------------------------

_SQUARE_GRIDS = {"coarse": 51, "medium": 101, "fine": 201, "finer": 401, "finest": 801}

_LAMONT_GRIDS = {
    "coarse": (0.40, 53, 73),
    "medium": (0.20, 105, 146),
    "fine": (0.10, 210, 291),
    "finer": (0.05, 420, 581),
}

_NOTRE_DAME_GRIDS = {
    "coarser": (8.00, 42),
    "coarse": (4.00, 83),
    "medium": (2.00, 165),
    "fine": (1.00, 329),
    "finer": (0.50, 657),
    "finest": (0.25, 1313),
}


def _lookup(table: dict, grid: str, what: str):
    if grid not in table:
        raise UnknownConfiguration(what, grid, table)
    return table[grid]


def samplings_square(grid: str = DEFAULT_GRID) -> tuple[Sampling, Sampling]:
    """Unit-square samplings used by the saddle and sin-sin datasets."""
    n = _lookup(_SQUARE_GRIDS, grid, "grid resolution")
    s = Sampling(n, 1.0 / (n - 1), 0.0)
    return s, s


def samplings_lamont(grid: str = DEFAULT_GRID) -> tuple[Sampling, Sampling]:
    d, nx, ny = _lookup(_LAMONT_GRIDS, grid, "grid resolution")
    return Sampling(nx, d, 29.0), Sampling(ny, d, 60.5)


def samplings_notre_dame(grid: str = DEFAULT_GRID) -> tuple[Sampling, Sampling]:
    d, n = _lookup(_NOTRE_DAME_GRIDS, grid, "grid resolution")
    return Sampling(n, d, -5.0), Sampling(n, d, -5.0)


def samplings_teapot(grid: str = DEFAULT_GRID) -> tuple[Sampling, Sampling]:
    """The Teapot image grid; only "fine" exists."""
    _lookup({"fine": None}, grid, "grid resolution")
    return volume_samplings("teapot")


# -- demo contexts -----------------------------------------------------------


@dataclass(frozen=True)
class DemoContext:
    """A named dataset and the function giving its samplings by resolution."""

    name: str
    data: Scattered
    samplings: Callable[[str], tuple[Sampling, ...]]

    def grid(self, grid: str = DEFAULT_GRID) -> tuple[Sampling, ...]:
        return self.samplings(grid)


def setup_for(name: str = "Saddle", n: int = 100) -> DemoContext:
    """Dataset and samplings for "Saddle", "SinSin", "Lamont", "NotreDame" or "Teapot".

    *n* is the number of random samples for "SinSin".
    """
    builders = {
        "Saddle": lambda: (data_saddle(), samplings_square),
        "SinSin": lambda: (data_sin_sin(n), samplings_square),
        "Lamont": lambda: (data_lamont(), samplings_lamont),
        "NotreDame": lambda: (data_notre_dame(), samplings_notre_dame),
        "Teapot": lambda: (data_teapot(), samplings_teapot),
    }
    if name not in builders:
        raise UnknownConfiguration("dataset", name, builders)
    data, samplings = builders[name]()
    return DemoContext(name, data, samplings)
