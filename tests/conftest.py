"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

os.environ["LOG_DIR"] = os.environ.get("LOG_DIR") or str(Path(tempfile.gettempdir()) / "zonerank-test-logs")

from zonerank.logging_config import configure_logging

configure_logging()

from zonerank.models.schemas import (
    Activity,
    ActivityRecord,
    HeartRateSampleSeries,
    ScoredActivity,
    ScoringStrategy,
    ZoneTimeBreakdown,
)

BASE_START = datetime(2025, 1, 6, 7, 0, tzinfo=timezone.utc)  # a Monday


@pytest.fixture
def make_activity() -> Callable[..., Activity]:
    """Build an Activity with sensible defaults."""

    counter = iter(range(1, 10_000))

    def _make(**overrides: Any) -> Activity:
        fields: dict[str, Any] = {
            "id": next(counter),
            "name": "Morning Run",
            "sport_type": "Run",
            "start_date": BASE_START,
            "moving_time_s": 3600,
            "distance_m": 10000,
        }
        fields.update(overrides)
        return Activity(**fields)

    return _make


@pytest.fixture
def make_samples() -> Callable[..., HeartRateSampleSeries]:
    """Build a HR series sampled every ``step`` seconds."""

    def _make(heart_rate: list[float], step: float = 1.0) -> HeartRateSampleSeries:
        return HeartRateSampleSeries(
            heart_rate=tuple(heart_rate),
            elapsed_time=tuple(i * step for i in range(len(heart_rate))),
        )

    return _make


@pytest.fixture
def make_scored(make_activity) -> Callable[..., ScoredActivity]:
    """
    Build a ScoredActivity directly, bypassing scoring.

    ``day`` offsets the start from BASE_START; ``zone_seconds`` marks the
    result as zone-scored with that breakdown.
    """

    def _make(
        day: int = 0,
        points: float = 60,
        training_load: float | None = None,
        zone_seconds: list[float] | None = None,
        **activity_fields: Any,
    ) -> ScoredActivity:
        activity_fields.setdefault("start_date", BASE_START + timedelta(days=day))
        activity = make_activity(**activity_fields)
        zones = ZoneTimeBreakdown.from_seconds(zone_seconds) if zone_seconds else ZoneTimeBreakdown()
        return ScoredActivity(
            activity=activity,
            strategy=ScoringStrategy.HEART_RATE_ZONES if zone_seconds else ScoringStrategy.NO_HEART_RATE,
            zones=zones,
            zone_source="stored" if zone_seconds else None,
            points=points,
            training_load=points if training_load is None else training_load,
        )

    return _make


@pytest.fixture
def make_record(make_activity) -> Callable[..., ActivityRecord]:
    """Wrap an activity with optional samples and stored zones."""

    def _make(
        samples: HeartRateSampleSeries | None = None,
        zones: ZoneTimeBreakdown | None = None,
        **activity_fields: Any,
    ) -> ActivityRecord:
        return ActivityRecord(activity=make_activity(**activity_fields), samples=samples, zones=zones)

    return _make
