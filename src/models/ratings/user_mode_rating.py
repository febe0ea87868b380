"""user_mode_ratings table model."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.ratings.mixins import GlickoColumnsMixin


class UserModeRating(GlickoColumnsMixin, Base):
    """Summary rating of one user in one rating group."""

    __tablename__ = "user_mode_ratings"
    __table_args__ = (
        CheckConstraint("rd > 0.0", name="ck_user_mode_ratings_rd"),
        CheckConstraint("vol > 0.0", name="ck_user_mode_ratings_vol"),
    )

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    mode: Mapped[str] = mapped_column(String(32), primary_key=True)
