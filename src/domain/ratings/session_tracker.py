"""In-session rating chain.

Reads from the backing store right after a write may be stale. Within one
play session the player's rating is therefore read from storage exactly once,
on the first rated answer, and carried forward in memory from then on.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from domain.ratings.common import DEFAULT_GLICKO_RATING, CityRating, GlickoRating
from domain.ratings.rated_answer import RatedAnswerCalculator, RatedAnswerOutcome


class SessionPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    CHAINED = "chained"


class SessionRatingTracker:
    """Two-state rating chain for one play session."""

    def __init__(
        self,
        session_id: str,
        calculator: RatedAnswerCalculator | None = None,
        *,
        default_rating: GlickoRating = DEFAULT_GLICKO_RATING,
    ) -> None:
        self.session_id = session_id
        self.calculator = calculator or RatedAnswerCalculator()
        self.default_rating = default_rating
        self._phase = SessionPhase.UNINITIALIZED
        self._chained: GlickoRating | None = None
        self._answers = 0

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def answers(self) -> int:
        return self._answers

    def current_rating(self, persisted: GlickoRating | None = None) -> GlickoRating:
        """Rating to feed into the next update.

        ``persisted`` is only consulted while the session is uninitialized.
        """
        if self._chained is not None:
            return self._chained
        if persisted is None:
            return self.default_rating
        return persisted.as_glicko()

    def advance(self, player: GlickoRating) -> None:
        self._chained = player.as_glicko()
        self._phase = SessionPhase.CHAINED
        self._answers += 1

    def rate_answer(
        self,
        *,
        city_a: CityRating,
        city_b: CityRating,
        pair: GlickoRating,
        won: bool,
        persisted: GlickoRating | None = None,
        persist: Callable[[RatedAnswerOutcome], None] | None = None,
    ) -> RatedAnswerOutcome:
        """Rate one answer and advance the chain once it has been persisted.

        Errors from the computation or from ``persist`` propagate and leave the
        chain exactly as it was.
        """
        player = self.current_rating(persisted)
        outcome = self.calculator.rate(
            player=player,
            city_a=city_a,
            city_b=city_b,
            pair=pair,
            won=won,
        )
        if persist is not None:
            persist(outcome)
        self.advance(outcome.player)
        return outcome

    def reset(self) -> None:
        self._phase = SessionPhase.UNINITIALIZED
        self._chained = None
        self._answers = 0


__all__ = ["SessionPhase", "SessionRatingTracker"]
