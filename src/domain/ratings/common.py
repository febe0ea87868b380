"""Shared types for the composite rating engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Final

from domain.ratings.errors import MissingSnapshotError

RD_MIN: Final[float] = 50.0
RD_MAX: Final[float] = 350.0
GLOBAL_RATING_GROUP: Final[str] = "global"

# Modes that feed the shared global chain; all other rated modes keep their own.
_GLOBAL_MODES: Final[frozenset[str]] = frozenset({"survival_rated", "challenge_rated"})


@dataclass(frozen=True)
class GlickoRating:
    """Rating, rating deviation and volatility of one entity at one instant."""

    rating: float
    rd: float
    vol: float

    def as_glicko(self) -> GlickoRating:
        return GlickoRating(rating=self.rating, rd=self.rd, vol=self.vol)


DEFAULT_GLICKO_RATING: Final[GlickoRating] = GlickoRating(rating=1500.0, rd=350.0, vol=0.06)


@dataclass(frozen=True)
class CityRating(GlickoRating):
    """Per-capital rating row."""

    country_code: str = ""
    play_count: int = 0

    @classmethod
    def default(cls, country_code: str) -> CityRating:
        return cls(
            rating=DEFAULT_GLICKO_RATING.rating,
            rd=DEFAULT_GLICKO_RATING.rd,
            vol=DEFAULT_GLICKO_RATING.vol,
            country_code=country_code,
            play_count=0,
        )


@dataclass(frozen=True)
class PairRating(GlickoRating):
    """Rating of one unordered city pair (a question)."""

    question_id: int | None = None


class MatchStatus(str, Enum):
    """Resolution state of one match_history row."""

    WIN = "win"
    LOSE = "lose"
    PENDING = "pending"


def rating_group_for_mode(mode: str) -> str:
    """Map a match mode to the rating chain it updates."""
    if mode in _GLOBAL_MODES:
        return GLOBAL_RATING_GROUP
    return mode


@dataclass(frozen=True)
class MatchRecord:
    """One resolved (or pending) play event for one user."""

    id: int
    session_id: str
    mode: str
    status: MatchStatus
    user_rating_before: float
    created_at: datetime
    user_rating_after: float | None = None
    user_rd_before: float | None = None
    user_rd_after: float | None = None
    user_vol_before: float | None = None
    user_vol_after: float | None = None
    rating_change: float | None = None
    opponent_rating: float | None = None
    opponent_rd: float | None = None
    opponent_vol: float | None = None
    question_id: int | None = None
    question_rating_before: float | None = None

    @property
    def score(self) -> int:
        return 1 if self.status == MatchStatus.WIN else 0

    @property
    def rating_group(self) -> str:
        return rating_group_for_mode(self.mode)

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.id)

    def has_after_snapshot(self) -> bool:
        return (
            self.user_rating_after is not None
            and self.user_rd_after is not None
            and self.user_vol_after is not None
        )

    def has_before_snapshot(self) -> bool:
        return self.user_rd_before is not None and self.user_vol_before is not None

    def before_rating(self) -> GlickoRating:
        if self.user_rd_before is None or self.user_vol_before is None:
            raise MissingSnapshotError(f"match id={self.id} has no rd/vol before snapshot")
        return GlickoRating(
            rating=self.user_rating_before,
            rd=self.user_rd_before,
            vol=self.user_vol_before,
        )

    def after_rating(self) -> GlickoRating | None:
        if not self.has_after_snapshot():
            return None
        return GlickoRating(
            rating=self.user_rating_after,  # type: ignore[arg-type]
            rd=self.user_rd_after,  # type: ignore[arg-type]
            vol=self.user_vol_after,  # type: ignore[arg-type]
        )

    def opponent_snapshot(self) -> GlickoRating | None:
        """Return the composite opponent stored at play time.

        ``None`` means the record predates snapshots. A snapshot with only some
        of its fields set is a data problem and raises ``MissingSnapshotError``.
        """
        fields = (self.opponent_rating, self.opponent_rd, self.opponent_vol)
        present = [value is not None for value in fields]
        if not any(present):
            return None
        if not all(present):
            raise MissingSnapshotError(
                f"match id={self.id} has a partial opponent snapshot "
                f"(rating={self.opponent_rating!r}, rd={self.opponent_rd!r}, vol={self.opponent_vol!r})"
            )
        return GlickoRating(
            rating=self.opponent_rating,  # type: ignore[arg-type]
            rd=self.opponent_rd,  # type: ignore[arg-type]
            vol=self.opponent_vol,  # type: ignore[arg-type]
        )


__all__ = [
    "CityRating",
    "DEFAULT_GLICKO_RATING",
    "GLOBAL_RATING_GROUP",
    "GlickoRating",
    "MatchRecord",
    "MatchStatus",
    "PairRating",
    "RD_MAX",
    "RD_MIN",
    "rating_group_for_mode",
]
