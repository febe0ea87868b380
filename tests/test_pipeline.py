"""Database round-trip tests for the repair and settlement jobs."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from db import create_db_engine, create_session_factory
from domain.pipeline import (
    build_rated_answer_calculator,
    repair_user_rating_chain,
    settle_user_pending_matches,
)
from domain.ratings.chain_repair import RatingChainWalker
from domain.ratings.common import DEFAULT_GLICKO_RATING, GlickoRating, MatchRecord, MatchStatus
from domain.ratings.glicko2.calculator import GlickoEngine
from domain.ratings.glicko2.config import load_rating_engine_config
from domain.ratings.session_tracker import SessionRatingTracker
from models.ratings import CityRatingRow, MatchHistory, Question, UserModeRating
from repositories.ratings.match_history_repository import (
    apply_chain_corrections,
    ensure_rating_schema,
    fetch_match_history,
)
from repositories.ratings.rating_repository import (
    fetch_city_ratings,
    fetch_mode_ratings,
    fetch_pair_rating,
    save_rated_answer,
)

BASE_TIME = datetime(2026, 3, 1, 12, 0, 0)
DEFAULT_CONFIG = Path(__file__).resolve().parents[1] / "configs" / "ratings" / "glicko2" / "default.toml"

OPPONENTS = [
    (GlickoRating(rating=1480.0, rd=180.0, vol=0.06), MatchStatus.WIN),
    (GlickoRating(rating=1620.0, rd=120.0, vol=0.06), MatchStatus.WIN),
    (GlickoRating(rating=1710.0, rd=95.0, vol=0.06), MatchStatus.LOSE),
    (GlickoRating(rating=1390.0, rd=240.0, vol=0.06), MatchStatus.WIN),
]


@pytest.fixture()
def session_factory(tmp_path: Path) -> sessionmaker[Session]:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ratings.db'}")
    ensure_rating_schema(engine)
    return create_session_factory(engine)


def _history(engine: GlickoEngine, *, stale_at: int | None = None, first_id: int = 1) -> list[MatchRecord]:
    """A played history; ``stale_at`` replays that record from the previous before."""
    records: list[MatchRecord] = []
    running = DEFAULT_GLICKO_RATING
    previous_before = running
    for index, (opponent, status) in enumerate(OPPONENTS):
        before = previous_before if index == stale_at else running
        after = engine.update_against(before, opponent, 1 if status == MatchStatus.WIN else 0)
        records.append(
            MatchRecord(
                id=first_id + index,
                session_id="session-1",
                mode="survival_rated",
                status=status,
                user_rating_before=before.rating,
                created_at=BASE_TIME + timedelta(minutes=index),
                user_rating_after=after.rating,
                user_rd_before=before.rd,
                user_rd_after=after.rd,
                user_vol_before=before.vol,
                user_vol_after=after.vol,
                rating_change=after.rating - before.rating,
                opponent_rating=opponent.rating,
                opponent_rd=opponent.rd,
                opponent_vol=opponent.vol,
            )
        )
        previous_before = before
        running = after
    return records


def _insert_history(session: Session, user_id: str, records: list[MatchRecord]) -> None:
    for record in records:
        session.add(
            MatchHistory(
                id=record.id,
                user_id=user_id,
                session_id=record.session_id,
                mode=record.mode,
                status=record.status.value,
                question_id=record.question_id,
                user_rating_before=record.user_rating_before,
                user_rating_after=record.user_rating_after,
                user_rd_before=record.user_rd_before,
                user_rd_after=record.user_rd_after,
                user_vol_before=record.user_vol_before,
                user_vol_after=record.user_vol_after,
                rating_change=record.rating_change,
                opponent_rating=record.opponent_rating,
                opponent_rd=record.opponent_rd,
                opponent_vol=record.opponent_vol,
                created_at=record.created_at,
            )
        )


def _insert_pending(session: Session, *, match_id: int, user_id: str, question_id: int, minute: int) -> None:
    session.add(
        MatchHistory(
            id=match_id,
            user_id=user_id,
            session_id="live-session",
            mode="survival_rated",
            status=MatchStatus.PENDING.value,
            question_id=question_id,
            user_rating_before=DEFAULT_GLICKO_RATING.rating,
            created_at=BASE_TIME + timedelta(minutes=minute),
        )
    )


def _insert_question(session: Session, question_id: int = 1) -> None:
    session.add(
        Question(
            id=question_id,
            city_a_code="DE",
            city_b_code="FR",
            rating=1500.0,
            rd=350.0,
            vol=0.06,
            play_count=0,
        )
    )


def test_repair_rewrites_broken_chain_and_summary_rating(session_factory: sessionmaker[Session]) -> None:
    engine = GlickoEngine()
    correct = _history(engine)
    with session_factory() as session:
        _insert_history(session, "user-1", _history(engine, stale_at=2))
        _insert_history(session, "user-2", _history(engine, first_id=101))
        session.commit()

    messages: list[str] = []
    summary = repair_user_rating_chain(session_factory=session_factory, user_id="user-1", echo=messages.append)

    assert summary.dry_run is False
    assert summary.breaks == 1
    assert summary.corrections == 2
    assert summary.scanned == 4
    assert messages and "breaks=1" in messages[0]

    with session_factory() as session:
        records = fetch_match_history(session, "user-1")
        assert records[-1].user_rating_after == pytest.approx(correct[-1].user_rating_after, abs=1e-5)
        assert records[2].user_rating_before == pytest.approx(correct[2].user_rating_before)

        stored = session.get(UserModeRating, {"user_id": "user-1", "mode": "global"})
        assert stored is not None
        assert stored.rating == pytest.approx(correct[-1].user_rating_after, abs=1e-5)

        untouched = fetch_match_history(session, "user-2")
        assert [record.user_rating_after for record in untouched] == [
            record.user_rating_after for record in _history(engine, first_id=101)
        ]

    second = repair_user_rating_chain(session_factory=session_factory, user_id="user-1")
    assert second.corrections == 0
    assert second.breaks == 0


def test_dry_run_writes_nothing(session_factory: sessionmaker[Session]) -> None:
    engine = GlickoEngine()
    broken = _history(engine, stale_at=2)
    with session_factory() as session:
        _insert_history(session, "user-1", broken)
        session.commit()

    summary = repair_user_rating_chain(session_factory=session_factory, user_id="user-1", dry_run=True)

    assert summary.dry_run is True
    assert summary.corrections == 2
    with session_factory() as session:
        assert fetch_match_history(session, "user-1") == broken
        assert fetch_mode_ratings(session, "user-1") == {}


def test_correction_for_another_user_is_rejected(session_factory: sessionmaker[Session]) -> None:
    engine = GlickoEngine()
    broken = _history(engine, stale_at=2)
    with session_factory() as session:
        _insert_history(session, "user-1", broken)
        session.commit()

    report = RatingChainWalker(engine).walk(broken)
    with session_factory() as session:
        with pytest.raises(ValueError, match="matched 0 rows"):
            apply_chain_corrections(session, "user-2", report.corrections)


def test_live_answers_persist_an_intact_chain(session_factory: sessionmaker[Session]) -> None:
    with session_factory() as session:
        _insert_question(session)
        _insert_pending(session, match_id=1, user_id="user-1", question_id=1, minute=0)
        _insert_pending(session, match_id=2, user_id="user-1", question_id=1, minute=1)
        session.commit()

    tracker = SessionRatingTracker(
        "live-session",
        build_rated_answer_calculator(load_rating_engine_config(DEFAULT_CONFIG)),
    )
    for match_id, won in [(1, True), (2, False)]:
        with session_factory() as session:
            city_a, city_b = fetch_city_ratings(session, "DE", "FR")
            pair = fetch_pair_rating(session, 1)
            assert pair is not None
            tracker.rate_answer(
                city_a=city_a,
                city_b=city_b,
                pair=pair,
                won=won,
                persisted=fetch_mode_ratings(session, "user-1").get("global"),
                persist=lambda outcome, match_id=match_id, session=session: save_rated_answer(
                    session,
                    match_history_id=match_id,
                    question_id=1,
                    city_a_code="DE",
                    city_b_code="FR",
                    outcome=outcome,
                ),
            )
            session.commit()

    with session_factory() as session:
        records = fetch_match_history(session, "user-1")
        assert [record.status for record in records] == [MatchStatus.WIN, MatchStatus.LOSE]
        assert records[1].user_rating_before == pytest.approx(records[0].user_rating_after)

        cities = session.execute(select(CityRatingRow).order_by(CityRatingRow.country_code)).scalars().all()
        assert [city.play_count for city in cities] == [2, 2]
        question = session.get(Question, 1)
        assert question is not None
        assert question.play_count == 2
        assert question.rd < 350.0

        stored = fetch_mode_ratings(session, "user-1")["global"]
        assert stored == tracker.current_rating()

    summary = repair_user_rating_chain(session_factory=session_factory, user_id="user-1")
    assert summary.breaks == 0
    assert summary.corrections == 0


def test_rating_an_already_settled_match_is_rejected(session_factory: sessionmaker[Session]) -> None:
    engine = GlickoEngine()
    with session_factory() as session:
        _insert_question(session)
        _insert_history(session, "user-1", [replace(_history(engine)[0], question_id=1)])
        session.commit()

    tracker = SessionRatingTracker("live-session")
    with session_factory() as session:
        city_a, city_b = fetch_city_ratings(session, "DE", "FR")
        pair = fetch_pair_rating(session, 1)
        assert pair is not None
        with pytest.raises(ValueError, match="already settled"):
            tracker.rate_answer(
                city_a=city_a,
                city_b=city_b,
                pair=pair,
                won=True,
                persist=lambda outcome: save_rated_answer(
                    session,
                    match_history_id=1,
                    question_id=1,
                    city_a_code="DE",
                    city_b_code="FR",
                    outcome=outcome,
                ),
            )

    assert tracker.answers == 0


def test_settle_pending_matches_as_losses(session_factory: sessionmaker[Session]) -> None:
    with session_factory() as session:
        _insert_question(session)
        _insert_pending(session, match_id=1, user_id="user-1", question_id=1, minute=0)
        _insert_pending(session, match_id=2, user_id="user-1", question_id=1, minute=1)
        session.commit()

    messages: list[str] = []
    settled = settle_user_pending_matches(
        session_factory=session_factory,
        user_id="user-1",
        echo=messages.append,
    )

    assert settled == 2
    assert messages == ["user_id=user-1 pending=2 settled=2"]
    with session_factory() as session:
        records = fetch_match_history(session, "user-1")
        assert [record.status for record in records] == [MatchStatus.LOSE, MatchStatus.LOSE]
        assert records[0].before_rating() == DEFAULT_GLICKO_RATING
        assert records[0].opponent_snapshot() == GlickoRating(rating=1500.0, rd=350.0, vol=0.06)
        assert records[1].user_rating_before == pytest.approx(records[0].user_rating_after)
        assert fetch_mode_ratings(session, "user-1")["global"].rating < DEFAULT_GLICKO_RATING.rating

        engine = GlickoEngine()
        question_start = GlickoRating(rating=1500.0, rd=350.0, vol=0.06)
        question_after_first = engine.update_against(question_start, DEFAULT_GLICKO_RATING, 1)
        assert records[1].opponent_snapshot() == question_after_first

        question = session.get(Question, 1)
        assert question is not None
        assert question.play_count == 2
        assert question.rating == pytest.approx(
            engine.update_against(question_after_first, records[0].after_rating(), 1).rating
        )

    assert settle_user_pending_matches(session_factory=session_factory, user_id="user-1") == 0
    summary = repair_user_rating_chain(session_factory=session_factory, user_id="user-1")
    assert summary.corrections == 0
