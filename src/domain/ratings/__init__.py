"""Composite rating engine and rating-chain repair."""

from domain.ratings.chain_repair import (
    ChainCorrection,
    ChainRepairReport,
    DivergenceWarning,
    RatingChainWalker,
    WalkerState,
    apply_corrections,
)
from domain.ratings.city_updater import CityRatingUpdater
from domain.ratings.common import (
    DEFAULT_GLICKO_RATING,
    CityRating,
    GlickoRating,
    MatchRecord,
    MatchStatus,
    PairRating,
    rating_group_for_mode,
)
from domain.ratings.composite import CompositeOpponentBuilder, calculate_alpha
from domain.ratings.errors import (
    InvalidRatingError,
    MissingSnapshotError,
    RatingError,
    VolatilityConvergenceError,
)
from domain.ratings.glicko2.calculator import GlickoEngine
from domain.ratings.rated_answer import RatedAnswerCalculator, RatedAnswerOutcome
from domain.ratings.session_tracker import SessionPhase, SessionRatingTracker

__all__ = [
    "ChainCorrection",
    "ChainRepairReport",
    "CityRating",
    "CityRatingUpdater",
    "CompositeOpponentBuilder",
    "DEFAULT_GLICKO_RATING",
    "DivergenceWarning",
    "GlickoEngine",
    "GlickoRating",
    "InvalidRatingError",
    "MatchRecord",
    "MatchStatus",
    "MissingSnapshotError",
    "PairRating",
    "RatedAnswerCalculator",
    "RatedAnswerOutcome",
    "RatingChainWalker",
    "RatingError",
    "SessionPhase",
    "SessionRatingTracker",
    "VolatilityConvergenceError",
    "WalkerState",
    "apply_corrections",
    "calculate_alpha",
    "rating_group_for_mode",
]
