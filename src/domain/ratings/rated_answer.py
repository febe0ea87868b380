"""Rating updates for one rated answer."""

from __future__ import annotations

from dataclasses import dataclass

from domain.ratings.city_updater import CityRatingUpdater
from domain.ratings.common import CityRating, GlickoRating
from domain.ratings.composite import CompositeOpponentBuilder
from domain.ratings.glicko2.calculator import GlickoEngine


@dataclass(frozen=True)
class HeadToHeadOutcome:
    player: GlickoRating
    question: GlickoRating
    rating_change: float


@dataclass(frozen=True)
class RatedAnswerOutcome:
    player_before: GlickoRating
    player: GlickoRating
    pair: GlickoRating
    city_a: GlickoRating | None
    city_b: GlickoRating | None
    opponent: GlickoRating
    alpha: float
    rating_change: float
    won: bool

    @property
    def updates_cities(self) -> bool:
        return self.city_a is not None and self.city_b is not None


def calculate_new_ratings(
    engine: GlickoEngine,
    player: GlickoRating,
    question: GlickoRating,
    score: int,
) -> HeadToHeadOutcome:
    """Update player and question against each other; the question's score is inverted."""
    new_player = engine.update_against(player, question, score)
    new_question = engine.update_against(question, player, 1 - score)
    return HeadToHeadOutcome(
        player=new_player,
        question=new_question,
        rating_change=new_player.rating - player.rating,
    )


class RatedAnswerCalculator:
    """Player, pair and city updates for one answered question."""

    def __init__(
        self,
        engine: GlickoEngine | None = None,
        builder: CompositeOpponentBuilder | None = None,
        city_updater: CityRatingUpdater | None = None,
    ) -> None:
        self.engine = engine or GlickoEngine()
        self.builder = builder or CompositeOpponentBuilder()
        self.city_updater = city_updater or CityRatingUpdater(
            self.engine,
            skip_alpha=self.builder.params.city_skip_alpha,
        )

    def rate(
        self,
        *,
        player: GlickoRating,
        city_a: CityRating,
        city_b: CityRating,
        pair: GlickoRating,
        won: bool,
    ) -> RatedAnswerOutcome:
        score = 1 if won else 0
        inverted = 1 - score
        composite = self.builder.build(city_a, city_b, pair)

        new_player = self.engine.update_against(player, composite.opponent, score)
        # The pair plays the player directly, not the composite.
        new_pair = self.engine.update_against(pair.as_glicko(), player, inverted)
        new_city_a = self.city_updater.update(city_a, player.rating, player.rd, inverted, composite.alpha)
        new_city_b = self.city_updater.update(city_b, player.rating, player.rd, inverted, composite.alpha)

        return RatedAnswerOutcome(
            player_before=player,
            player=new_player,
            pair=new_pair,
            city_a=new_city_a,
            city_b=new_city_b,
            opponent=composite.opponent,
            alpha=composite.alpha,
            rating_change=new_player.rating - player.rating,
            won=won,
        )


__all__ = [
    "HeadToHeadOutcome",
    "RatedAnswerCalculator",
    "RatedAnswerOutcome",
    "calculate_new_ratings",
]
