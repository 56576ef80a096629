"""Application configuration management."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zonerank.models.schemas import DISCIPLINES


logger = logging.getLogger(__name__)

DEFAULT_SCORING_CONFIG_PATH = Path(__file__).resolve().parent / "scoring.yaml"


class Settings(BaseSettings):
    """Centralised settings derived from environment variables."""

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))
    log_max_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=3, ge=0)
    scoring_config_path: Path = Field(
        default=DEFAULT_SCORING_CONFIG_PATH,
        description="YAML file with milestone ladders and sport mappings.",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the package."""

    return Settings()


def default_scoring_config() -> dict[str, Any]:
    """Return the built-in scoring configuration."""
    return {
        "milestones": {
            "points": [100, 250, 500, 1000, 2500, 5000, 10000],
            "distance": [10000, 50000, 100000, 250000, 500000, 1000000],  # meters
            "time": [3600, 18000, 36000, 72000, 180000, 360000],  # seconds
            "activities": [5, 10, 25, 50, 100, 250, 500],
        },
        "sport_disciplines": {
            "Swim": "swim",
            "Run": "run",
            "VirtualRun": "run",
            "TrailRun": "run",
            "Ride": "bike",
            "MountainBikeRide": "bike",
            "GravelRide": "bike",
            "EBikeRide": "bike",
            "VirtualRide": "bike_indoor",
            "Peloton": "bike_indoor",
            "Spinning": "bike_indoor",
        },
    }


def _known_disciplines(mapping: dict[str, Any], config_path: Path) -> dict[str, str]:
    known = {}
    for sport_type, discipline in mapping.items():
        if discipline not in DISCIPLINES:
            logger.warning(
                "Unknown discipline %r for %s in %s - dropping entry",
                discipline,
                sport_type,
                config_path,
            )
            continue
        known[sport_type] = discipline
    return known


def load_scoring_config(path: Path | str | None = None) -> dict[str, Any]:
    """
    Load scoring configuration from YAML, filling gaps with defaults.

    Args:
        path: YAML file to read (defaults to ``Settings.scoring_config_path``)

    Returns:
        Dict with ``milestones`` and ``sport_disciplines``
    """
    defaults = default_scoring_config()
    config_path = Path(path) if path is not None else get_settings().scoring_config_path

    if not config_path.exists():
        logger.warning("Scoring config %s not found - using defaults", config_path)
        return defaults

    with config_path.open("r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        logger.warning("Scoring config %s is not a mapping - using defaults", config_path)
        return defaults

    config = dict(defaults)
    for section, default_value in defaults.items():
        value = loaded.get(section)
        if value is None:
            logger.warning("No %s section in %s - using defaults", section, config_path)
            continue
        if not isinstance(value, type(default_value)):
            logger.warning("Invalid %s section in %s - using defaults", section, config_path)
            continue
        if section == "milestones":
            value = {**default_value, **{k: sorted(v) for k, v in value.items()}}
        elif section == "sport_disciplines":
            value = _known_disciplines(value, config_path)
        config[section] = value

    return config


@lru_cache()
def get_scoring_config() -> dict[str, Any]:
    """Return the cached scoring configuration."""

    return load_scoring_config()
