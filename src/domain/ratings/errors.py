"""Error taxonomy for the rating engine."""

from __future__ import annotations


class RatingError(ValueError):
    """Base class for rating computation errors."""


class InvalidRatingError(RatingError):
    """A rating triple with non-positive or non-finite rd/vol reached the engine."""


class MissingSnapshotError(RatingError):
    """A match record carries an incomplete snapshot."""


class VolatilityConvergenceError(RatingError):
    """The Glicko-2 volatility solve failed to bracket or converge."""


__all__ = [
    "InvalidRatingError",
    "MissingSnapshotError",
    "RatingError",
    "VolatilityConvergenceError",
]
