"""Header-less binary sample volumes and the manifest that names them."""

from __future__ import annotations

import hashlib
import json
import logging
import os
from pathlib import Path

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ._errors import DataUnavailable, UnknownConfiguration
from ._sampling import Sampling

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).resolve().parent / "data"
_MANIFEST = Path(__file__).resolve().parent / "datasets.json"

_BYTE_ORDERS = {"big": ">", "little": "<"}


def _dtype(byte_order: str, dtype: str = "float32") -> np.dtype:
    if byte_order not in _BYTE_ORDERS:
        raise UnknownConfiguration("byte order", byte_order, _BYTE_ORDERS)
    return np.dtype(dtype).newbyteorder(_BYTE_ORDERS[byte_order])


def _file_sha256(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def read_volume(
    path: str | os.PathLike, shape, byte_order: str = "big", dtype: str = "float32"
) -> NDArray:
    """Read a header-less binary array as float64.

    Parameters
    ----------
    path : str or PathLike
        File holding the raw samples.
    shape : tuple of int
        Array shape, slowest axis first, e.g. ``(n2, n1)``.
    byte_order : str
        ``"big"`` (default) or ``"little"``.
    dtype : str
        Sample type on disk, ``"float32"`` by default.

    Returns
    -------
    ndarray
        The samples with the given *shape*.

    Raises
    ------
    DataUnavailable
        If the file is missing or unreadable, or its size does not match
        *shape*.
    """
    path = Path(path)
    shape = tuple(int(n) for n in shape)
    dt = _dtype(byte_order, dtype)
    if not path.is_file():
        raise DataUnavailable(f"Sample volume not found: {path}")
    expected = int(np.prod(shape)) * dt.itemsize
    actual = path.stat().st_size
    if actual != expected:
        raise DataUnavailable(
            f"{path} has {actual} bytes, expected {expected} for shape {shape}"
        )
    logger.debug(f"Reading {path} as {shape} {byte_order}-endian {dtype}")
    try:
        a = np.fromfile(path, dtype=dt)
    except OSError as err:
        raise DataUnavailable(f"Cannot read {path}: {err}") from err
    return a.reshape(shape).astype("float64")


def write_volume(
    path: str | os.PathLike, array: ArrayLike, byte_order: str = "big", dtype: str = "float32"
) -> Path:
    """Write *array* as raw samples, slowest axis first."""
    path = Path(path)
    np.asarray(array).astype(_dtype(byte_order, dtype)).tofile(path)
    return path


def data_dir() -> Path:
    """Directory holding sample volumes; ``$TENSORGRID_DATA`` overrides."""
    env = os.environ.get(load_manifest().get("env", "TENSORGRID_DATA"))
    return Path(env) if env else _DATA_DIR


def load_manifest() -> dict:
    with open(_MANIFEST) as f:
        return json.load(f)


def _entry(name: str) -> dict:
    volumes = load_manifest()["volumes"]
    if name not in volumes:
        raise UnknownConfiguration("sample volume", name, volumes)
    return volumes[name]


def volume_path(name: str) -> Path:
    return data_dir() / _entry(name)["filename"]


def volume_samplings(name: str) -> tuple[Sampling, ...]:
    """Samplings ``s1, s2[, s3]`` of a named volume."""
    return tuple(Sampling(*s) for s in _entry(name)["samplings"])


def load_volume(name: str) -> NDArray:
    """Read the named volume, verifying its SHA-256 hash when the manifest has one."""
    entry = _entry(name)
    path = data_dir() / entry["filename"]
    array = read_volume(
        path,
        entry["shape"],
        byte_order=entry.get("byte_order", "big"),
        dtype=entry.get("dtype", "float32"),
    )
    expected_hash = entry.get("sha256")
    if expected_hash:
        actual = _file_sha256(path)
        if actual != expected_hash:
            raise DataUnavailable(
                f"Hash mismatch for {path.name}: expected {expected_hash}, got {actual}"
            )
    return array
