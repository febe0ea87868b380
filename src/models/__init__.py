"""ORM models."""

from models.base import Base
from models.ratings import CityRatingRow, MatchHistory, Question, UserModeRating

__all__ = [
    "Base",
    "CityRatingRow",
    "MatchHistory",
    "Question",
    "UserModeRating",
]
