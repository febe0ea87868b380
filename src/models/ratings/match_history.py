"""match_history table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class MatchHistory(Base):
    """One rated question per user, created pending and settled to win/lose."""

    __tablename__ = "match_history"
    __table_args__ = (
        CheckConstraint("status IN ('win', 'lose', 'pending')", name="ck_match_history_status"),
        CheckConstraint("user_rd_before IS NULL OR user_rd_before > 0.0", name="ck_match_history_rd_before"),
        CheckConstraint("user_rd_after IS NULL OR user_rd_after > 0.0", name="ck_match_history_rd_after"),
        CheckConstraint("opponent_rd IS NULL OR opponent_rd > 0.0", name="ck_match_history_opponent_rd"),
        Index("idx_match_history_user_created", "user_id", "created_at", "id"),
        Index("idx_match_history_session", "session_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    mode: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    question_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    question_rating_before: Mapped[float | None] = mapped_column(Float, nullable=True)
    user_rating_before: Mapped[float] = mapped_column(Float, nullable=False)
    user_rating_after: Mapped[float | None] = mapped_column(Float, nullable=True)
    user_rd_before: Mapped[float | None] = mapped_column(Float, nullable=True)
    user_rd_after: Mapped[float | None] = mapped_column(Float, nullable=True)
    user_vol_before: Mapped[float | None] = mapped_column(Float, nullable=True)
    user_vol_after: Mapped[float | None] = mapped_column(Float, nullable=True)
    rating_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    opponent_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    opponent_rd: Mapped[float | None] = mapped_column(Float, nullable=True)
    opponent_vol: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
