"""Persistence helpers for match_history using SQLAlchemy."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from domain.ratings.chain_repair import ChainCorrection
from domain.ratings.common import MatchRecord, MatchStatus
from domain.ratings.settlement import PendingMatch
from models.base import Base
from models.ratings import MatchHistory

RESOLVED_STATUSES: tuple[str, ...] = (MatchStatus.WIN.value, MatchStatus.LOSE.value)


def ensure_rating_schema(engine: Engine) -> None:
    """Create the rating tables and indexes if needed."""
    with engine.begin() as connection:
        Base.metadata.create_all(bind=connection, checkfirst=True)


def _to_record(row: MatchHistory) -> MatchRecord:
    return MatchRecord(
        id=row.id,
        session_id=row.session_id,
        mode=row.mode,
        status=MatchStatus(row.status),
        user_rating_before=row.user_rating_before,
        created_at=row.created_at,
        user_rating_after=row.user_rating_after,
        user_rd_before=row.user_rd_before,
        user_rd_after=row.user_rd_after,
        user_vol_before=row.user_vol_before,
        user_vol_after=row.user_vol_after,
        rating_change=row.rating_change,
        opponent_rating=row.opponent_rating,
        opponent_rd=row.opponent_rd,
        opponent_vol=row.opponent_vol,
        question_id=row.question_id,
        question_rating_before=row.question_rating_before,
    )


def fetch_match_history(
    session: Session,
    user_id: str,
    *,
    statuses: Sequence[str] = RESOLVED_STATUSES,
) -> list[MatchRecord]:
    """Return one user's matches ordered by (created_at, id)."""
    statement = (
        select(MatchHistory)
        .where(MatchHistory.user_id == user_id, MatchHistory.status.in_(statuses))
        .order_by(MatchHistory.created_at.asc(), MatchHistory.id.asc())
    )
    return [_to_record(row) for row in session.execute(statement).scalars()]


def fetch_pending_matches(session: Session, user_id: str) -> list[PendingMatch]:
    statement = (
        select(MatchHistory.id, MatchHistory.mode, MatchHistory.question_id)
        .where(
            MatchHistory.user_id == user_id,
            MatchHistory.status == MatchStatus.PENDING.value,
            MatchHistory.question_id.is_not(None),
        )
        .order_by(MatchHistory.created_at.asc(), MatchHistory.id.asc())
    )
    return [
        PendingMatch(id=int(row.id), mode=str(row.mode), question_id=int(row.question_id))
        for row in session.execute(statement)
    ]


def apply_chain_corrections(
    session: Session,
    user_id: str,
    corrections: Sequence[ChainCorrection],
) -> int:
    """Overwrite before/after snapshots for each corrected record.

    Raises ``ValueError`` if a correction does not match exactly one row of
    ``user_id``; the caller is expected to roll the whole batch back.
    """
    updated = 0
    for correction in corrections:
        new = correction.new
        result = session.execute(
            update(MatchHistory)
            .where(MatchHistory.id == correction.record_id, MatchHistory.user_id == user_id)
            .values(
                user_rating_before=new.user_rating_before,
                user_rating_after=new.user_rating_after,
                user_rd_before=new.user_rd_before,
                user_rd_after=new.user_rd_after,
                user_vol_before=new.user_vol_before,
                user_vol_after=new.user_vol_after,
                rating_change=new.rating_change,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ValueError(
                f"correction for match id={correction.record_id} matched {result.rowcount} rows "
                f"for user_id={user_id}"
            )
        updated += 1
    return updated


__all__ = [
    "RESOLVED_STATUSES",
    "apply_chain_corrections",
    "ensure_rating_schema",
    "fetch_match_history",
    "fetch_pending_matches",
]
