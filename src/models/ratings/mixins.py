"""SQLAlchemy mixins for Glicko-2 rating columns."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, func
from sqlalchemy.orm import Mapped, mapped_column


class GlickoColumnsMixin:
    """Current rating/rd/vol of one rated entity."""

    rating: Mapped[float] = mapped_column(Float, nullable=False, default=1500.0)
    rd: Mapped[float] = mapped_column(Float, nullable=False, default=350.0)
    vol: Mapped[float] = mapped_column(Float, nullable=False, default=0.06)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
