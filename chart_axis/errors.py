from __future__ import annotations


class ChartAxisError(ValueError):
    """Base class for axis computation errors."""


class InvalidRangeError(ChartAxisError):
    """
    A value range could not be used for tick computation
    (non-positive delta, non-finite bounds).

    Callers usually fall back to a default 1-unit range.
    """


class InvalidDisplayConstraintError(ChartAxisError):
    """
    Pixel length, label spacing or ladder settings make tick placement impossible.

    Callers usually skip tick computation for that layout pass.
    """
