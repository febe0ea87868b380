"""Rating ORM models."""

from models.ratings.city_rating import CityRatingRow
from models.ratings.match_history import MatchHistory
from models.ratings.question import Question
from models.ratings.user_mode_rating import UserModeRating

__all__ = [
    "CityRatingRow",
    "MatchHistory",
    "Question",
    "UserModeRating",
]
