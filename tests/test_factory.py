import numpy as np
import pytest

from tensorgrid import (
    BlendedGridder,
    DegenerateGeometry,
    GridderKind,
    GridderSpec,
    RadialGridder,
    SibsonGridder,
    SplinesGridder,
    UnknownConfiguration,
    WesselBercovici,
    display_name,
    make_gridder,
    make_gridders,
)
from tensorgrid.datasets import data_saddle, samplings_square
from tensorgrid.tensors import make_circle_tensors


@pytest.mark.parametrize(
    "name, kind",
    [
        ("Biharmonic", GridderKind.BIHARMONIC),
        ("wessel_bercovici", GridderKind.WESSEL_BERCOVICI),
        ("WesselBercovici", GridderKind.WESSEL_BERCOVICI),
        ("splines", GridderKind.SPLINES),
        ("BLENDED", GridderKind.BLENDED),
        ("Sibson", GridderKind.SIBSON),
    ],
)
def test_parse_kind(name, kind):
    assert GridderKind.parse(name) is kind


def test_parse_unknown_kind():
    with pytest.raises(UnknownConfiguration, match="Kriging"):
        GridderKind.parse("Kriging")


def test_display_names():
    names = [spec.name for spec in make_gridders()]
    assert names == [
        "Bi-harmonic radial basis",
        "Wessel-Bercovici: t = 0",
        "Splines: t = 0",
        "Blended: s = 0.7",
        "Blended: s = 0.5",
        "Sibson C0",
    ]
    assert display_name(GridderSpec("Sibson", smooth=True)) == "Sibson C1"
    assert display_name(GridderSpec("Splines", tension=0.5)) == "Splines: t = 0.5"


def test_spec_accepts_kind_names():
    assert GridderSpec("Blended").kind is GridderKind.BLENDED


def test_make_gridder_wiring():
    d = data_saddle()
    s1, s2 = samplings_square("coarse")
    tensors = make_circle_tensors(51, 51)

    rg = make_gridder(GridderSpec("WesselBercovici", tension=0.3), d.f, d.x1, d.x2, s1, s2)
    assert isinstance(rg, RadialGridder)
    assert isinstance(rg.basis, WesselBercovici)
    assert rg.basis.scale == pytest.approx(0.04)
    assert rg.basis.tension == 0.3

    sg = make_gridder(GridderSpec("Splines", tension=0.2), d.f, d.x1, d.x2, tensors=tensors)
    assert isinstance(sg, SplinesGridder)
    assert sg.tension == 0.2
    assert sg.tensors is tensors

    bg = make_gridder(
        GridderSpec("Blended", smoothness=0.7, time_max=10.0), d.f, d.x1, d.x2, tensors=tensors
    )
    assert isinstance(bg, BlendedGridder)
    assert bg.smoothness == pytest.approx(0.7)
    assert bg.tensors is tensors

    sib = make_gridder(GridderSpec("Sibson", smooth=True), d.f, d.x1, d.x2)
    assert isinstance(sib, SibsonGridder)
    assert sib.smooth


def test_wessel_bercovici_needs_samplings():
    d = data_saddle()
    with pytest.raises(ValueError):
        make_gridder(GridderSpec("WesselBercovici"), d.f, d.x1, d.x2)


@pytest.mark.parametrize("spec", make_gridders(), ids=lambda s: s.name)
def test_saddle_corners(spec):
    d = data_saddle()
    s1, s2 = samplings_square("coarse")
    g = make_gridder(spec, d.f, d.x1, d.x2, s1, s2).grid(s1, s2)
    assert g.shape == (51, 51)
    i = s1.index_of_nearest(0.1)
    j = s1.index_of_nearest(0.9)
    assert g[i, i] == pytest.approx(0.0, abs=1e-3)
    assert g[i, j] == pytest.approx(1.0, abs=1e-3)
    assert g[j, i] == pytest.approx(1.0, abs=1e-3)
    assert g[j, j] == pytest.approx(0.0, abs=1e-3)
    assert np.all(np.isfinite(g))


@pytest.mark.parametrize("kind", list(GridderKind))
def test_known_samples_on_nodes_reproduced(kind):
    s1, s2 = samplings_square("coarse")
    nodes = np.array([[5, 5], [45, 8], [10, 40], [40, 44], [25, 25], [18, 33], [33, 15], [25, 5]])
    x1 = s1.values[nodes[:, 0]]
    x2 = s2.values[nodes[:, 1]]
    f = np.sin(3.0 * x1) + x2
    g = make_gridder(GridderSpec(kind), f, x1, x2, s1, s2).grid(s1, s2)
    np.testing.assert_allclose(g[nodes[:, 1], nodes[:, 0]], f, atol=1e-6)


@pytest.mark.parametrize("kind", list(GridderKind))
def test_collinear_rejected(kind):
    s1, s2 = samplings_square("coarse")
    x = np.array([0.1, 0.5, 0.9])
    with pytest.raises(DegenerateGeometry):
        make_gridder(GridderSpec(kind), [0.0, 1.0, 2.0], x, x, s1, s2).grid(s1, s2)
