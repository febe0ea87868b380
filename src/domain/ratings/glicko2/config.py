"""Load rating-engine definitions from TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from domain.config_base import (
    BaseSystemConfig,
    load_system_configs,
    parse_system_metadata,
    read_table,
    read_toml,
    require_positive,
)
from domain.ratings.composite import CompositeParameters
from domain.ratings.glicko2.calculator import Glicko2Parameters


@dataclass(frozen=True)
class ChainRepairParameters:
    tolerance: float = 0.001


@dataclass(frozen=True)
class RatingEngineConfig(BaseSystemConfig):
    """Configuration for the composite rating engine and its repair walker."""

    parameters: Glicko2Parameters
    composite: CompositeParameters
    chain_repair: ChainRepairParameters

    def as_config_json(self) -> dict[str, Any]:
        return {
            "initial_rating": self.parameters.initial_rating,
            "initial_rd": self.parameters.initial_rd,
            "initial_volatility": self.parameters.initial_volatility,
            "tau": self.parameters.tau,
            "epsilon": self.parameters.epsilon,
            "max_iterations": self.parameters.max_iterations,
            "rd_min": self.composite.rd_min,
            "rd_max": self.composite.rd_max,
            "city_skip_alpha": self.composite.city_skip_alpha,
            "tolerance": self.chain_repair.tolerance,
        }


def load_rating_engine_config(file_path: Path) -> RatingEngineConfig:
    """Load and validate one rating-engine TOML file."""
    return _parse_config(read_toml(file_path), file_path)


def load_rating_engine_configs(config_dir: Path) -> list[RatingEngineConfig]:
    """Load and validate all rating-engine TOML config files in a directory."""
    return load_system_configs(config_dir, _parse_config, duplicate_name_label="rating engine")


def _parse_config(raw: dict[str, Any], file_path: Path) -> RatingEngineConfig:
    name, description = parse_system_metadata(raw, file_path)
    glicko2_raw = read_table(raw, "glicko2", file_path)
    composite_raw = read_table(raw, "composite", file_path)
    repair_raw = read_table(raw, "chain_repair", file_path)

    parameters = Glicko2Parameters(
        initial_rating=float(glicko2_raw.get("initial_rating", 1500.0)),
        initial_rd=float(glicko2_raw.get("initial_rd", 350.0)),
        initial_volatility=float(glicko2_raw.get("initial_volatility", 0.06)),
        tau=float(glicko2_raw.get("tau", 0.5)),
        epsilon=float(glicko2_raw.get("epsilon", 1e-6)),
        max_iterations=int(glicko2_raw.get("max_iterations", 1_000)),
    )
    composite = CompositeParameters(
        rd_min=float(composite_raw.get("rd_min", 50.0)),
        rd_max=float(composite_raw.get("rd_max", 350.0)),
        city_skip_alpha=float(composite_raw.get("city_skip_alpha", 0.99)),
    )
    chain_repair = ChainRepairParameters(
        tolerance=float(repair_raw.get("tolerance", 0.001)),
    )

    for key in ("initial_rating", "initial_rd", "initial_volatility", "tau", "epsilon", "max_iterations"):
        require_positive(file_path, f"[glicko2].{key}", getattr(parameters, key))
    require_positive(file_path, "[composite].rd_min", composite.rd_min)
    if composite.rd_max <= composite.rd_min:
        raise ValueError(f"{file_path}: [composite].rd_max must be > rd_min")
    if composite.city_skip_alpha <= 0.0 or composite.city_skip_alpha > 1.0:
        raise ValueError(f"{file_path}: [composite].city_skip_alpha must be in (0, 1]")
    require_positive(file_path, "[chain_repair].tolerance", chain_repair.tolerance)

    return RatingEngineConfig(
        name=name,
        description=description,
        file_path=file_path,
        parameters=parameters,
        composite=composite,
        chain_repair=chain_repair,
    )


__all__ = [
    "ChainRepairParameters",
    "RatingEngineConfig",
    "load_rating_engine_config",
    "load_rating_engine_configs",
]
