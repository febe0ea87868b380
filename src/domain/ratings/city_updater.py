"""Scaled city rating updates."""

from __future__ import annotations

from domain.ratings.common import CityRating, GlickoRating
from domain.ratings.glicko2.calculator import Glicko2OpponentResult, GlickoEngine


class CityRatingUpdater:
    """Gives a city the (1 - alpha) share of a full Glicko-2 update.

    The city plays the player as its opponent, so callers pass the player's
    rating/RD and the inverted score. Once alpha reaches ``skip_alpha`` the
    pair rating already carries the information and the city is left alone.
    """

    def __init__(self, engine: GlickoEngine | None = None, *, skip_alpha: float = 0.99) -> None:
        self.engine = engine or GlickoEngine()
        self.skip_alpha = skip_alpha

    def update(
        self,
        city: CityRating,
        opponent_rating: float,
        opponent_rd: float,
        score: int,
        alpha: float,
    ) -> GlickoRating | None:
        if alpha >= self.skip_alpha:
            return None

        updated = self.engine.update(
            city.as_glicko(),
            [
                Glicko2OpponentResult(
                    opponent_rating=opponent_rating,
                    opponent_rd=opponent_rd,
                    score=score,
                )
            ],
        )
        factor = 1.0 - alpha
        return GlickoRating(
            rating=city.rating + (updated.rating - city.rating) * factor,
            rd=city.rd + (updated.rd - city.rd) * factor,
            vol=city.vol + (updated.vol - city.vol) * factor,
        )


__all__ = ["CityRatingUpdater"]
