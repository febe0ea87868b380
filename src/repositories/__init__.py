"""Database repository helpers."""

from repositories.ratings.match_history_repository import (
    apply_chain_corrections,
    ensure_rating_schema,
    fetch_match_history,
    fetch_pending_matches,
)
from repositories.ratings.rating_repository import (
    fetch_city_ratings,
    fetch_mode_ratings,
    fetch_pair_rating,
    fetch_question_ratings,
    save_rated_answer,
    save_settlement,
    upsert_user_mode_ratings,
)

__all__ = [
    "apply_chain_corrections",
    "ensure_rating_schema",
    "fetch_city_ratings",
    "fetch_match_history",
    "fetch_mode_ratings",
    "fetch_pair_rating",
    "fetch_pending_matches",
    "fetch_question_ratings",
    "save_rated_answer",
    "save_settlement",
    "upsert_user_mode_ratings",
]
