"""Zone point scoring and per-activity scoring strategy dispatch."""
from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from functools import partial
from typing import Any

from zonerank.models.schemas import (
    ActivityRecord,
    ScoredActivity,
    ScoringStrategy,
    ZoneBand,
    ZoneBoundarySet,
    ZoneResolution,
    ZoneTimeBreakdown,
)
from zonerank.services.hr_zones import (
    accumulate_zone_time,
    parse_custom_zones,
    resolve_zone_boundaries,
)


logger = logging.getLogger(__name__)

# Leaderboard points per zone minute
POINT_WEIGHTS = (1, 2, 3, 4, 5)
# Training stress per zone minute; never shown on the leaderboard
LOAD_WEIGHTS = (1, 1.5, 2, 3, 4)

SWIM_POINTS_PER_MINUTE = 4
FLAT_POINTS_PER_MINUTE = 1

CustomZones = ZoneBoundarySet | Sequence[ZoneBand | dict[str, Any]] | None


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not to the even neighbour)."""
    return math.floor(value + 0.5)


def weighted_zone_score(zones: ZoneTimeBreakdown, weights: Sequence[float]) -> float:
    """Sum of zone minutes times the per-zone weight."""
    return sum(minutes * weight for minutes, weight in zip(zones.minutes(), weights))


def calculate_zone_points(zones: ZoneTimeBreakdown) -> float:
    """
    Leaderboard points for a zone breakdown.

    Example:
        >>> calculate_zone_points(ZoneTimeBreakdown.from_seconds([600, 1200, 1500, 300, 0]))
        145.0
    """
    return weighted_zone_score(zones, POINT_WEIGHTS)


def calculate_training_load(zones: ZoneTimeBreakdown) -> float:
    """Training load ("load minutes") for a zone breakdown."""
    return weighted_zone_score(zones, LOAD_WEIGHTS)


def select_scoring_strategy(record: ActivityRecord, resolution: ZoneResolution) -> ScoringStrategy:
    """
    Pick the single scoring path for an activity.

    Priority: swim (time based), then zone based when zones can be computed
    or were stored, then the flat per-minute fallback, split by whether the
    activity carried any heart rate data at all.
    """
    activity = record.activity
    if activity.is_swim:
        return ScoringStrategy.SWIM

    has_stream = record.samples is not None and len(record.samples) >= 2
    if (has_stream and resolution.is_available) or record.zones is not None:
        return ScoringStrategy.HEART_RATE_ZONES

    if has_stream or activity.has_heart_rate_summary:
        return ScoringStrategy.FLAT_FALLBACK
    return ScoringStrategy.NO_HEART_RATE


def _zone_detail(
    record: ActivityRecord, resolution: ZoneResolution
) -> tuple[ZoneTimeBreakdown, str | None]:
    if record.samples is not None and len(record.samples) >= 2 and resolution.is_available:
        return accumulate_zone_time(record.samples, resolution), "stream"
    if record.zones is not None:
        return record.zones, "stored"
    return ZoneTimeBreakdown(), None


def _score_swim(record: ActivityRecord, resolution: ZoneResolution) -> ScoredActivity:
    # HR zones are still worked out for display but never drive swim points
    zones, source = _zone_detail(record, resolution)
    points = round_half_up(record.activity.moving_minutes * SWIM_POINTS_PER_MINUTE)
    logger.debug(
        "Swim activity %s: %.1f min x %d = %d points",
        record.activity.id,
        record.activity.moving_minutes,
        SWIM_POINTS_PER_MINUTE,
        points,
    )
    return _build(record, ScoringStrategy.SWIM, resolution, zones, source, points)


def _score_zones(record: ActivityRecord, resolution: ZoneResolution) -> ScoredActivity:
    zones, source = _zone_detail(record, resolution)
    points = calculate_zone_points(zones)
    return _build(record, ScoringStrategy.HEART_RATE_ZONES, resolution, zones, source, points)


def _score_flat(
    record: ActivityRecord, resolution: ZoneResolution, strategy: ScoringStrategy
) -> ScoredActivity:
    points = record.activity.moving_minutes * FLAT_POINTS_PER_MINUTE
    if strategy is ScoringStrategy.FLAT_FALLBACK:
        logger.info(
            "Activity %s has HR data but no usable zones - using Zone 1 fallback: %.1f points",
            record.activity.id,
            points,
        )
    return _build(record, strategy, resolution, ZoneTimeBreakdown(), None, points)


def _build(
    record: ActivityRecord,
    strategy: ScoringStrategy,
    resolution: ZoneResolution,
    zones: ZoneTimeBreakdown,
    source: str | None,
    points: float,
) -> ScoredActivity:
    if source is not None:
        training_load = calculate_training_load(zones)
    elif record.activity.zone_points is not None:
        training_load = record.activity.zone_points
    else:
        training_load = points
    return ScoredActivity(
        activity=record.activity,
        strategy=strategy,
        zone_method=resolution.method,
        zones=zones,
        zone_source=source,
        points=points,
        training_load=training_load,
    )


_SCORERS: dict[ScoringStrategy, Callable[[ActivityRecord, ZoneResolution], ScoredActivity]] = {
    ScoringStrategy.SWIM: _score_swim,
    ScoringStrategy.HEART_RATE_ZONES: _score_zones,
    ScoringStrategy.FLAT_FALLBACK: partial(_score_flat, strategy=ScoringStrategy.FLAT_FALLBACK),
    ScoringStrategy.NO_HEART_RATE: partial(_score_flat, strategy=ScoringStrategy.NO_HEART_RATE),
}


def score_activity(record: ActivityRecord, custom_zones: CustomZones = None) -> ScoredActivity:
    """
    Score one activity.

    Args:
        record: Activity with optional HR samples and/or stored zone breakdown
        custom_zones: Athlete's provider zone bands, if any

    Returns:
        ScoredActivity tagged with the strategy that produced it
    """
    resolution = resolve_zone_boundaries(custom_zones, record.activity.max_heartrate)
    strategy = select_scoring_strategy(record, resolution)
    return _SCORERS[strategy](record, resolution)


def score_activities(
    records: Iterable[ActivityRecord],
    custom_zones: CustomZones = None,
) -> list[ScoredActivity]:
    """Score every record, preserving input order."""
    bands = parse_custom_zones(custom_zones)
    scored = [score_activity(record, bands) for record in records]
    logger.info("Scored %d activities", len(scored))
    return scored
