from __future__ import annotations


class GroupLensError(Exception):
    """Base class for errors raised by the prediction core."""


class DimensionMismatchError(GroupLensError, ValueError):
    """Two matrices that must line up have different shapes."""

    def __init__(self, what: str, expected: tuple[int, ...], got: tuple[int, ...]) -> None:
        super().__init__(f"{what}: expected shape {expected}, got {got}")
        self.expected = expected
        self.got = got


class InvalidParameterError(GroupLensError, ValueError):
    """A tuning parameter (k, n_jobs, normalization, ...) is out of its domain."""


class UndefinedMeanError(GroupLensError, ArithmeticError):
    """A mean was requested over zero stored ratings."""
