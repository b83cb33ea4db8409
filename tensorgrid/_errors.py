"""Exceptions raised by tensorgrid."""

from __future__ import annotations


class UnknownConfiguration(ValueError):
    """A named option (dataset, grid resolution, gridder kind) is not known."""

    def __init__(self, what: str, name: object, choices=()) -> None:
        self.what = what
        self.name = name
        self.choices = tuple(choices)
        message = f"Unknown {what} {name!r}"
        if self.choices:
            message += f"; expected one of {', '.join(map(repr, self.choices))}"
        super().__init__(message)


class DegenerateGeometry(ValueError):
    """Scattered points are too few, or collinear/coplanar."""


class DataUnavailable(FileNotFoundError):
    """A sample volume is missing or does not match its declared shape."""


class ConsistencyViolation(RuntimeError):
    """A known sample was not reproduced by a gridded field."""

    def __init__(self, index: tuple, expected: float, actual: float) -> None:
        self.index = tuple(int(i) for i in index)
        self.expected = float(expected)
        self.actual = float(actual)
        self.magnitude = abs(self.actual - self.expected)
        super().__init__(
            f"Known sample at index {self.index} changed from "
            f"{self.expected} to {self.actual} (|diff| = {self.magnitude:.3e})"
        )
