"""Database-backed jobs built on the rating core."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from db import session_scope
from domain.ratings.chain_repair import ChainRepairReport, RatingChainWalker
from domain.ratings.city_updater import CityRatingUpdater
from domain.ratings.common import GlickoRating
from domain.ratings.composite import CompositeOpponentBuilder
from domain.ratings.glicko2.calculator import GlickoEngine
from domain.ratings.glicko2.config import RatingEngineConfig
from domain.ratings.rated_answer import RatedAnswerCalculator
from domain.ratings.settlement import settle_pending_matches
from repositories.ratings.match_history_repository import (
    apply_chain_corrections,
    fetch_match_history,
    fetch_pending_matches,
)
from repositories.ratings.rating_repository import (
    fetch_mode_ratings,
    fetch_question_ratings,
    save_settlement,
    upsert_user_mode_ratings,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepairSummary:
    """Outcome of one user's chain repair."""

    user_id: str
    scanned: int
    anchors: int
    breaks: int
    anomalies: int
    skipped_pending: int
    corrections: int
    final_ratings: dict[str, GlickoRating]
    dry_run: bool
    report: ChainRepairReport


def build_engine(config: RatingEngineConfig | None = None) -> GlickoEngine:
    return GlickoEngine(None if config is None else config.parameters)


def build_walker(config: RatingEngineConfig | None = None) -> RatingChainWalker:
    if config is None:
        return RatingChainWalker()
    return RatingChainWalker(build_engine(config), tolerance=config.chain_repair.tolerance)


def build_rated_answer_calculator(config: RatingEngineConfig | None = None) -> RatedAnswerCalculator:
    engine = build_engine(config)
    if config is None:
        return RatedAnswerCalculator(engine)
    builder = CompositeOpponentBuilder(config.composite)
    city_updater = CityRatingUpdater(engine, skip_alpha=config.composite.city_skip_alpha)
    return RatedAnswerCalculator(engine, builder, city_updater)


def repair_user_rating_chain(
    *,
    session_factory: sessionmaker[Session],
    user_id: str,
    config: RatingEngineConfig | None = None,
    dry_run: bool = False,
    echo: Callable[[str], None] | None = None,
) -> RepairSummary:
    """Walk one user's history and apply every correction in a single transaction."""
    walker = build_walker(config)

    with session_scope(session_factory) as session:
        records = fetch_match_history(session, user_id)
        report = walker.walk(records)
        final_ratings = report.final_ratings

        if echo is not None:
            echo(
                f"user_id={user_id} "
                f"scanned={report.scanned} "
                f"anchors={report.anchors} "
                f"breaks={report.breaks} "
                f"anomalies={report.anomalies} "
                f"corrections={len(report.corrections)}"
            )

        if dry_run:
            logger.info("dry run for user_id=%s: %d corrections not written", user_id, len(report.corrections))
        else:
            apply_chain_corrections(session, user_id, report.corrections)
            upsert_user_mode_ratings(session, user_id, final_ratings)

    return RepairSummary(
        user_id=user_id,
        scanned=report.scanned,
        anchors=report.anchors,
        breaks=report.breaks,
        anomalies=report.anomalies,
        skipped_pending=report.skipped_pending,
        corrections=len(report.corrections),
        final_ratings=final_ratings,
        dry_run=dry_run,
        report=report,
    )


def settle_user_pending_matches(
    *,
    session_factory: sessionmaker[Session],
    user_id: str,
    config: RatingEngineConfig | None = None,
    echo: Callable[[str], None] | None = None,
) -> int:
    """Resolve every pending match of ``user_id`` as a loss. Returns the settled count."""
    engine = build_engine(config)

    with session_scope(session_factory) as session:
        pending = fetch_pending_matches(session, user_id)
        if not pending:
            return 0

        settlements = settle_pending_matches(
            pending,
            mode_ratings=fetch_mode_ratings(session, user_id),
            question_ratings=fetch_question_ratings(session, [match.question_id for match in pending]),
            engine=engine,
            default_rating=engine.params.initial,
        )
        for settlement in settlements:
            save_settlement(session, user_id, settlement)

    if echo is not None:
        echo(f"user_id={user_id} pending={len(pending)} settled={len(settlements)}")
    return len(settlements)


__all__ = [
    "RepairSummary",
    "build_engine",
    "build_rated_answer_calculator",
    "build_walker",
    "repair_user_rating_chain",
    "settle_user_pending_matches",
]
