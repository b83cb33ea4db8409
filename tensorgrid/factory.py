"""Named gridder configurations and the builders that wire them up."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

import numpy as np

from ._errors import UnknownConfiguration
from ._sampling import Sampling
from .gridders import BlendedGridder, SplinesGridder
from .radial import Biharmonic, RadialGridder, WesselBercovici
from .sibson import SibsonGridder

logger = logging.getLogger(__name__)


class GridderKind(enum.Enum):
    BIHARMONIC = "Biharmonic"
    WESSEL_BERCOVICI = "WesselBercovici"
    SPLINES = "Splines"
    BLENDED = "Blended"
    SIBSON = "Sibson"

    @classmethod
    def parse(cls, name: str | GridderKind) -> GridderKind:
        """Kind from its value or member name, ignoring case and separators."""
        if isinstance(name, cls):
            return name
        key = str(name).replace("_", "").replace("-", "").lower()
        for kind in cls:
            if key in (kind.value.lower(), kind.name.replace("_", "").lower()):
                return kind
        raise UnknownConfiguration("gridder kind", name, [k.value for k in cls])


@dataclass(frozen=True)
class GridderSpec:
    """One gridder configuration.

    *tension* applies to splines and Wessel-Bercovici, *smoothness* and
    *time_max* to blended, *smooth* (C1) to Sibson.
    """

    kind: GridderKind
    tension: float = 0.0
    smoothness: float = 0.5
    smooth: bool = False
    time_max: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", GridderKind.parse(self.kind))

    @property
    def name(self) -> str:
        return display_name(self)


def _number(v: float) -> str:
    return f"{v:g}"


def display_name(spec: GridderSpec) -> str:
    kind = spec.kind
    if kind is GridderKind.BIHARMONIC:
        return "Bi-harmonic radial basis"
    if kind is GridderKind.WESSEL_BERCOVICI:
        return f"Wessel-Bercovici: t = {_number(spec.tension)}"
    if kind is GridderKind.SPLINES:
        return f"Splines: t = {_number(spec.tension)}"
    if kind is GridderKind.BLENDED:
        return f"Blended: s = {_number(spec.smoothness)}"
    return "Sibson C1" if spec.smooth else "Sibson C0"


# -- builders ----------------------------------------------------------------


def make_splines_gridder(f, x1, x2, tension: float = 0.5) -> SplinesGridder:
    sg = SplinesGridder(f, x1, x2)
    sg.set_tension(tension)
    return sg


def make_biharmonic_gridder(f, x1, x2) -> RadialGridder:
    rg = RadialGridder(Biharmonic(), f, x1, x2)
    rg.set_poly_trend(1)
    return rg


def make_wessel_bercovici_gridder(
    f, x1, x2, s1: Sampling, s2: Sampling, tension: float = 0.5
) -> RadialGridder:
    """Wessel-Bercovici gridder scaled to 2% of the output grid's extent."""
    scale = 0.02 * (s1.last - s1.first + s2.last - s2.first)
    if not scale > 0.0:
        raise ValueError("Wessel-Bercovici scale needs samplings with extent")
    logger.info(
        f"WB: tension t = {tension}, p = {np.sqrt(tension / (1.0 - tension)) / scale:g}"
    )
    rg = RadialGridder(WesselBercovici(tension, scale), f, x1, x2)
    rg.set_poly_trend(1)
    return rg


def make_blended_gridder(
    f, x1, x2, smoothness: float = 0.5, time_max: float | None = None
) -> BlendedGridder:
    bg = BlendedGridder(f, x1, x2)
    bg.set_smoothness(smoothness)
    if time_max is not None:
        bg.set_time_max(time_max)
    return bg


def make_sibson_gridder(f, x1, x2, smooth: bool = False) -> SibsonGridder:
    sg = SibsonGridder(f, x1, x2)
    sg.set_smooth(smooth)
    return sg


def make_gridder(
    spec: GridderSpec,
    f,
    x1,
    x2,
    s1: Sampling | None = None,
    s2: Sampling | None = None,
    tensors=None,
):
    """Build the gridder described by *spec* for 2D samples ``f, x1, x2``.

    Parameters
    ----------
    spec : GridderSpec
        Strategy and its parameters.
    f, x1, x2 : array_like, shape (N,)
        Sample values and coordinates.
    s1, s2 : Sampling, optional
        Output samplings. Required for Wessel-Bercovici, whose scale is a
        fraction of the sampled span.
    tensors : EigenTensors2, optional
        Attached to the splines and blended gridders, ignored by the others.

    Returns
    -------
    Gridder
        A configured gridder; call ``grid(s1, s2)`` on it.

    Raises
    ------
    ValueError
        If Wessel-Bercovici is requested without *s1* and *s2*.
    """
    kind = spec.kind
    if kind is GridderKind.BIHARMONIC:
        return make_biharmonic_gridder(f, x1, x2)
    if kind is GridderKind.WESSEL_BERCOVICI:
        if s1 is None or s2 is None:
            raise ValueError("Wessel-Bercovici gridder needs samplings s1 and s2")
        return make_wessel_bercovici_gridder(f, x1, x2, s1, s2, tension=spec.tension)
    if kind is GridderKind.SPLINES:
        g = make_splines_gridder(f, x1, x2, tension=spec.tension)
        g.set_tensors(tensors)
        return g
    if kind is GridderKind.BLENDED:
        g = make_blended_gridder(
            f, x1, x2, smoothness=spec.smoothness, time_max=spec.time_max
        )
        g.set_tensors(tensors)
        return g
    return make_sibson_gridder(f, x1, x2, smooth=spec.smooth)


def make_gridders() -> list[GridderSpec]:
    """The default comparison: one configuration of every strategy."""
    return [
        GridderSpec(GridderKind.BIHARMONIC),
        GridderSpec(GridderKind.WESSEL_BERCOVICI, tension=0.0),
        GridderSpec(GridderKind.SPLINES, tension=0.0),
        GridderSpec(GridderKind.BLENDED, smoothness=0.7),
        GridderSpec(GridderKind.BLENDED, smoothness=0.5),
        GridderSpec(GridderKind.SIBSON, smooth=False),
    ]
