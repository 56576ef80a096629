"""Six-dimension athlete profile for a radar chart."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from zonerank.models.schemas import CompetitionWindow, ScoredActivity
from zonerank.services.periods import filter_activities


logger = logging.getLogger(__name__)

# Raw value that maps to a full score of 100
FULL_SCALE = {
    "volume": 10,       # hours per week
    "intensity": 3,     # points per minute
    "consistency": 100 / 1.5,
    "endurance": 100 / 1.5,
    "power": 100 / 3,
    "variety": 5,       # distinct sport types
}

DIMENSIONS = (
    ("volume", "Volume", "Weekly training hours"),
    ("intensity", "Intensity", "Points per minute"),
    ("consistency", "Consistency", "Training frequency"),
    ("endurance", "Endurance", "Zone 2 focus"),
    ("power", "Power", "High zone work"),
    ("variety", "Variety", "Sport diversity"),
)


def calculate_profile_stats(activities: list[ScoredActivity]) -> dict[str, Any]:
    """
    Raw profile statistics over a non-empty activity list.

    Zone ratios only use activities with zone data. The day span counts
    both the first and last active day.
    """
    total_points = sum(item.points for item in activities)
    total_time_s = sum(item.activity.moving_time_s for item in activities)
    total_distance_m = sum(item.activity.distance_m for item in activities)

    zone_totals = [0.0] * 5
    for item in activities:
        if item.has_zone_data:
            for index, seconds in enumerate(item.zones.seconds):
                zone_totals[index] += seconds
    zone_total = sum(zone_totals)

    active_days = {item.activity.calendar_date for item in activities}
    day_span = max(1, (max(active_days) - min(active_days)).days + 1)
    weeks_active = max(1.0, day_span / 7)

    total_minutes = total_time_s / 60
    return {
        "total_points": total_points,
        "total_time_s": total_time_s,
        "total_distance_m": total_distance_m,
        "active_days": len(active_days),
        "day_span": day_span,
        "volume_per_week_hours": total_time_s / 3600 / weeks_active,
        "points_per_minute": total_points / total_minutes if total_minutes > 0 else 0,
        "consistency_pct": len(active_days) / day_span * 100,
        "endurance_pct": zone_totals[1] / zone_total * 100 if zone_total > 0 else 0,
        "high_zone_pct": (zone_totals[3] + zone_totals[4]) / zone_total * 100 if zone_total > 0 else 0,
        "sport_types": len({item.activity.sport_type for item in activities}),
    }


def normalize_profile(stats: dict[str, Any]) -> dict[str, float]:
    """Scale raw statistics onto 0-100 per dimension."""
    raw = {
        "volume": stats["volume_per_week_hours"],
        "intensity": stats["points_per_minute"],
        "consistency": stats["consistency_pct"],
        "endurance": stats["endurance_pct"],
        "power": stats["high_zone_pct"],
        "variety": stats["sport_types"],
    }
    return {key: min(100.0, value / FULL_SCALE[key] * 100) for key, value in raw.items()}


def get_athlete_profile(
    scored: Iterable[ScoredActivity],
    window: CompetitionWindow | None = None,
    include_hidden: bool = False,
) -> dict[str, Any]:
    """
    Build the athlete profile view.

    Args:
        scored: Scored activities in any order
        window: Optional competition window
        include_hidden: Count activities flagged hidden

    Returns:
        Dict with has_data, dimensions (key, label, description, value 0-100)
        and raw_stats
    """
    activities = filter_activities(scored, window, include_hidden)
    if not activities:
        return {"has_data": False, "message": "No activities found"}

    stats = calculate_profile_stats(activities)
    scores = normalize_profile(stats)
    logger.debug("Profile over %d activities across %d days", len(activities), stats["day_span"])

    return {
        "has_data": True,
        "dimensions": [
            {"key": key, "label": label, "description": description, "value": round(scores[key])}
            for key, label, description in DIMENSIONS
        ],
        "raw_stats": {
            **stats,
            "volume_per_week_hours": round(stats["volume_per_week_hours"], 1),
            "points_per_minute": round(stats["points_per_minute"], 2),
            "consistency_pct": round(stats["consistency_pct"], 1),
            "endurance_pct": round(stats["endurance_pct"], 1),
            "high_zone_pct": round(stats["high_zone_pct"], 1),
        },
    }
