"""city_ratings table model."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.ratings.mixins import GlickoColumnsMixin


class CityRatingRow(GlickoColumnsMixin, Base):
    """Glicko-2 rating of one capital city, created on first reference."""

    __tablename__ = "city_ratings"
    __table_args__ = (
        CheckConstraint("rd > 0.0", name="ck_city_ratings_rd"),
        CheckConstraint("vol > 0.0", name="ck_city_ratings_vol"),
        CheckConstraint("play_count >= 0", name="ck_city_ratings_play_count"),
    )

    country_code: Mapped[str] = mapped_column(String(8), primary_key=True)
    play_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
