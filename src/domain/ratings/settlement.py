"""Settle matches left pending by an abandoned session."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from domain.ratings.common import DEFAULT_GLICKO_RATING, GlickoRating, rating_group_for_mode
from domain.ratings.glicko2.calculator import GlickoEngine
from domain.ratings.rated_answer import calculate_new_ratings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingMatch:
    id: int
    mode: str
    question_id: int


@dataclass(frozen=True)
class Settlement:
    match_id: int
    rating_group: str
    player_before: GlickoRating
    player: GlickoRating
    question_before: GlickoRating
    question: GlickoRating
    rating_change: float


def settle_pending_matches(
    pending: Sequence[PendingMatch],
    *,
    mode_ratings: Mapping[str, GlickoRating],
    question_ratings: Mapping[int, GlickoRating],
    engine: GlickoEngine | None = None,
    default_rating: GlickoRating = DEFAULT_GLICKO_RATING,
) -> list[Settlement]:
    """Score every pending match as a loss, in order.

    The player's rating is chained per rating group, and each question's
    rating per question, in memory rather than re-read between matches.
    Matches whose question rating is unknown are skipped.
    """
    engine = engine or GlickoEngine()
    running: dict[str, GlickoRating] = dict(mode_ratings)
    questions: dict[int, GlickoRating] = dict(question_ratings)
    settlements: list[Settlement] = []

    for match in pending:
        group = rating_group_for_mode(match.mode)
        question = questions.get(match.question_id)
        if question is None:
            logger.warning(
                "skipping pending match id=%s: no rating for question_id=%s",
                match.id,
                match.question_id,
            )
            continue

        player = running.get(group, default_rating)
        result = calculate_new_ratings(engine, player, question, 0)
        running[group] = result.player
        questions[match.question_id] = result.question
        settlements.append(
            Settlement(
                match_id=match.id,
                rating_group=group,
                player_before=player,
                player=result.player,
                question_before=question,
                question=result.question,
                rating_change=result.rating_change,
            )
        )

    return settlements


__all__ = ["PendingMatch", "Settlement", "settle_pending_matches"]
