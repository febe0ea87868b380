"""Glicko-2 engine and rating-engine configuration."""

from domain.ratings.glicko2.calculator import (
    GLICKO2_SCALE,
    Glicko2OpponentResult,
    Glicko2Parameters,
    GlickoEngine,
    calculate_expected_score,
    solve_volatility,
    update_glicko2_player,
)
from domain.ratings.glicko2.config import (
    ChainRepairParameters,
    RatingEngineConfig,
    load_rating_engine_config,
    load_rating_engine_configs,
)

__all__ = [
    "ChainRepairParameters",
    "GLICKO2_SCALE",
    "Glicko2OpponentResult",
    "Glicko2Parameters",
    "GlickoEngine",
    "RatingEngineConfig",
    "calculate_expected_score",
    "load_rating_engine_config",
    "load_rating_engine_configs",
    "solve_volatility",
    "update_glicko2_player",
]
