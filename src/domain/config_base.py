"""Shared TOML config-loading utilities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, TypeVar
import tomllib


@dataclass(frozen=True)
class BaseSystemConfig:
    """Metadata every rating-engine config carries."""

    name: str
    description: str | None
    file_path: Path

    def as_config_json(self) -> dict[str, Any]:
        raise NotImplementedError


T = TypeVar("T", bound=BaseSystemConfig)


def read_toml(file_path: Path) -> dict[str, Any]:
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    with file_path.open("rb") as file:
        return tomllib.load(file)


def read_table(raw: dict[str, Any], name: str, file_path: Path) -> dict[str, Any]:
    """Return the ``[name]`` table, empty when the file omits it."""
    table = raw.get(name, {})
    if not isinstance(table, dict):
        raise ValueError(f"{file_path}: [{name}] must be a table")
    return table


def parse_system_metadata(raw: dict[str, Any], file_path: Path) -> tuple[str, str | None]:
    system_raw = read_table(raw, "system", file_path)
    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")
    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)
    return name, description


def require_positive(file_path: Path, key: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{file_path}: {key} must be > 0")


def load_system_configs(
    config_dir: Path,
    parser: Callable[[dict[str, Any], Path], T],
    *,
    duplicate_name_label: str = "rating",
) -> list[T]:
    """Load all TOML files in a directory with duplicate-name validation."""
    if not config_dir.exists():
        raise FileNotFoundError(f"Config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Config path is not a directory: {config_dir}")

    config_files = sorted(config_dir.glob("*.toml"))
    if not config_files:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    systems = [parser(read_toml(file_path), file_path) for file_path in config_files]

    names = [system.name for system in systems]
    if len(names) != len(set(names)):
        raise ValueError(
            f"Duplicate {duplicate_name_label} system names found in {config_dir}: {names}"
        )

    return systems


__all__ = [
    "BaseSystemConfig",
    "load_system_configs",
    "parse_system_metadata",
    "read_table",
    "read_toml",
    "require_positive",
]
