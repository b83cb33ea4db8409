from ._errors import (
    ConsistencyViolation,
    DataUnavailable,
    DegenerateGeometry,
    UnknownConfiguration,
)
from ._sampling import Sampling
from ._scattered import Scattered
from ._trend import PolyTrend
from .datasets import DemoContext, setup_for
from .factory import GridderKind, GridderSpec, display_name, make_gridder, make_gridders
from .gridders import BlendedGridder, NearestGridder, SimpleGridder, SplinesGridder
from .harness import check_known_samples, compare_gridders
from .radial import Biharmonic, RadialGridder, WesselBercovici
from .sibson import SibsonGridder
from .tensors import EigenTensors2, EigenTensors3

__all__ = [
    "Sampling",
    "Scattered",
    "PolyTrend",
    "EigenTensors2",
    "EigenTensors3",
    "SimpleGridder",
    "NearestGridder",
    "BlendedGridder",
    "SplinesGridder",
    "RadialGridder",
    "Biharmonic",
    "WesselBercovici",
    "SibsonGridder",
    "GridderKind",
    "GridderSpec",
    "display_name",
    "make_gridder",
    "make_gridders",
    "DemoContext",
    "setup_for",
    "check_known_samples",
    "compare_gridders",
    "UnknownConfiguration",
    "DegenerateGeometry",
    "DataUnavailable",
    "ConsistencyViolation",
]
