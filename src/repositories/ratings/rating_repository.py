"""Persistence helpers for player, pair and city ratings using SQLAlchemy."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from domain.ratings.common import CityRating, GlickoRating, MatchStatus, PairRating, rating_group_for_mode
from domain.ratings.rated_answer import RatedAnswerOutcome
from domain.ratings.settlement import Settlement
from models.ratings import CityRatingRow, MatchHistory, Question, UserModeRating


def _now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def fetch_city_ratings(session: Session, code_a: str, code_b: str) -> tuple[CityRating, CityRating]:
    """Return both cities' ratings, defaulting cities that have never been rated."""
    rows = session.execute(
        select(CityRatingRow).where(CityRatingRow.country_code.in_((code_a, code_b)))
    ).scalars()
    by_code = {
        row.country_code: CityRating(
            rating=row.rating,
            rd=row.rd,
            vol=row.vol,
            country_code=row.country_code,
            play_count=row.play_count,
        )
        for row in rows
    }
    return (
        by_code.get(code_a, CityRating.default(code_a)),
        by_code.get(code_b, CityRating.default(code_b)),
    )


def fetch_pair_rating(session: Session, question_id: int) -> PairRating | None:
    row = session.get(Question, question_id)
    if row is None:
        return None
    return PairRating(rating=row.rating, rd=row.rd, vol=row.vol, question_id=row.id)


def fetch_question_ratings(session: Session, question_ids: list[int]) -> dict[int, GlickoRating]:
    if not question_ids:
        return {}
    rows = session.execute(select(Question).where(Question.id.in_(question_ids))).scalars()
    return {row.id: GlickoRating(rating=row.rating, rd=row.rd, vol=row.vol) for row in rows}


def fetch_mode_ratings(session: Session, user_id: str) -> dict[str, GlickoRating]:
    rows = session.execute(select(UserModeRating).where(UserModeRating.user_id == user_id)).scalars()
    return {row.mode: GlickoRating(rating=row.rating, rd=row.rd, vol=row.vol) for row in rows}


def upsert_user_mode_ratings(
    session: Session,
    user_id: str,
    ratings: Mapping[str, GlickoRating],
) -> None:
    """Create or overwrite the summary rating of each rating group."""
    for mode, rating in ratings.items():
        row = session.get(UserModeRating, {"user_id": user_id, "mode": mode})
        if row is None:
            row = UserModeRating(user_id=user_id, mode=mode)
            session.add(row)
        row.rating = rating.rating
        row.rd = rating.rd
        row.vol = rating.vol
        row.updated_at = _now()
    session.flush()


def _apply_city_update(session: Session, country_code: str, rating: GlickoRating | None) -> None:
    row = session.get(CityRatingRow, country_code)
    if row is None:
        default = CityRating.default(country_code)
        row = CityRatingRow(
            country_code=country_code,
            rating=default.rating,
            rd=default.rd,
            vol=default.vol,
            play_count=0,
        )
        session.add(row)
    if rating is not None:
        row.rating = rating.rating
        row.rd = rating.rd
        row.vol = rating.vol
    row.play_count = (row.play_count or 0) + 1
    row.updated_at = _now()


def save_rated_answer(
    session: Session,
    *,
    match_history_id: int,
    question_id: int,
    city_a_code: str,
    city_b_code: str,
    outcome: RatedAnswerOutcome,
) -> None:
    """Settle one pending match and write every rating it changed."""
    match = session.get(MatchHistory, match_history_id)
    if match is None:
        raise ValueError(f"match_history id={match_history_id} not found")
    if match.status != MatchStatus.PENDING.value:
        raise ValueError(f"match_history id={match_history_id} is already settled ({match.status})")

    before = outcome.player_before
    match.status = MatchStatus.WIN.value if outcome.won else MatchStatus.LOSE.value
    match.user_rating_before = before.rating
    match.user_rd_before = before.rd
    match.user_vol_before = before.vol
    match.user_rating_after = outcome.player.rating
    match.user_rd_after = outcome.player.rd
    match.user_vol_after = outcome.player.vol
    match.rating_change = outcome.rating_change
    match.opponent_rating = outcome.opponent.rating
    match.opponent_rd = outcome.opponent.rd
    match.opponent_vol = outcome.opponent.vol

    question = session.get(Question, question_id)
    if question is None:
        raise ValueError(f"question id={question_id} not found")
    question.rating = outcome.pair.rating
    question.rd = outcome.pair.rd
    question.vol = outcome.pair.vol
    question.play_count = (question.play_count or 0) + 1
    question.updated_at = _now()

    _apply_city_update(session, city_a_code, outcome.city_a)
    _apply_city_update(session, city_b_code, outcome.city_b)

    upsert_user_mode_ratings(
        session,
        match.user_id,
        {rating_group_for_mode(match.mode): outcome.player},
    )


def save_settlement(session: Session, user_id: str, settlement: Settlement) -> None:
    """Resolve one pending match as a loss against its question."""
    match = session.get(MatchHistory, settlement.match_id)
    if match is None or match.user_id != user_id:
        raise ValueError(f"match_history id={settlement.match_id} not found for user_id={user_id}")
    if match.status != MatchStatus.PENDING.value:
        raise ValueError(f"match_history id={settlement.match_id} is already settled ({match.status})")

    before = settlement.player_before
    match.status = MatchStatus.LOSE.value
    match.user_rating_before = before.rating
    match.user_rd_before = before.rd
    match.user_vol_before = before.vol
    match.user_rating_after = settlement.player.rating
    match.user_rd_after = settlement.player.rd
    match.user_vol_after = settlement.player.vol
    match.rating_change = settlement.rating_change
    match.opponent_rating = settlement.question_before.rating
    match.opponent_rd = settlement.question_before.rd
    match.opponent_vol = settlement.question_before.vol

    if match.question_id is not None:
        question = session.get(Question, match.question_id)
        if question is not None:
            question.rating = settlement.question.rating
            question.rd = settlement.question.rd
            question.vol = settlement.question.vol
            question.play_count = (question.play_count or 0) + 1
            question.updated_at = _now()

    upsert_user_mode_ratings(session, user_id, {settlement.rating_group: settlement.player})


__all__ = [
    "fetch_city_ratings",
    "fetch_mode_ratings",
    "fetch_pair_rating",
    "fetch_question_ratings",
    "save_rated_answer",
    "save_settlement",
    "upsert_user_mode_ratings",
]
