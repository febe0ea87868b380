"""questions table model."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.ratings.mixins import GlickoColumnsMixin


class Question(GlickoColumnsMixin, Base):
    """Pair rating for one normalized (alphabetical) city pair."""

    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("city_a_code", "city_b_code", name="uq_questions_pair"),
        CheckConstraint("city_a_code < city_b_code", name="ck_questions_pair_order"),
        CheckConstraint("rd > 0.0", name="ck_questions_rd"),
        CheckConstraint("vol > 0.0", name="ck_questions_vol"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    city_a_code: Mapped[str] = mapped_column(String(8), nullable=False)
    city_b_code: Mapped[str] = mapped_column(String(8), nullable=False)
    play_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
