"""Composite rating domain modules."""

from domain.ratings.common import GlickoRating, MatchRecord, MatchStatus

__all__ = ["GlickoRating", "MatchRecord", "MatchStatus"]
