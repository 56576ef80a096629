"""Per-sport pace and speed trends."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import timedelta
from typing import Any

from zonerank.models.schemas import Activity, CompetitionWindow, ScoredActivity
from zonerank.services.periods import filter_activities, week_start
from zonerank.services.readiness import discipline_for


logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.34
SPEED_SPORT_KEYWORDS = ("ride", "cycle", "bike")
SPEED_DISCIPLINES = frozenset({"bike", "bike_indoor"})

MIN_ACTIVITIES = 2
TREND_SAMPLE = 5
MIN_TREND_SAMPLE = 3
TREND_THRESHOLD_PCT = 3
CHART_WEEKS = 12


def is_speed_sport(sport_type: str, mapping: dict[str, str] | None = None) -> bool:
    """Cycling is measured as speed (higher is better), everything else as pace."""
    lowered = sport_type.lower()
    if any(keyword in lowered for keyword in SPEED_SPORT_KEYWORDS):
        return True
    return mapping is not None and discipline_for(sport_type, mapping) in SPEED_DISCIPLINES


def pace_unit(sport_type: str, mapping: dict[str, str] | None = None) -> str:
    if "swim" in sport_type.lower():
        return "min/100m"
    if is_speed_sport(sport_type, mapping):
        return "mph"
    return "min/mi"


def pace_for(activity: Activity, unit: str) -> float:
    """Pace or speed of one activity in ``unit``; needs distance and time."""
    minutes = activity.moving_time_s / 60
    if unit == "min/100m":
        return minutes / (activity.distance_m / 100)
    if unit == "mph":
        return (activity.distance_m / METERS_PER_MILE) / (activity.moving_time_s / 3600)
    return minutes / (activity.distance_m / METERS_PER_MILE)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _change_pct(earlier: float, recent: float, speed: bool) -> float:
    """Improvement in percent; lower pace and higher speed both count as positive."""
    if earlier <= 0:
        return 0.0
    if speed:
        return (recent - earlier) / earlier * 100
    return (earlier - recent) / earlier * 100


def _trend(paces: list[float], speed: bool) -> tuple[str, float]:
    recent = paces[-TREND_SAMPLE:]
    previous = paces[-2 * TREND_SAMPLE:-TREND_SAMPLE]
    if len(recent) < MIN_TREND_SAMPLE or len(previous) < MIN_TREND_SAMPLE:
        return "stable", 0.0

    change = _change_pct(_mean(previous), _mean(recent), speed)
    if change > TREND_THRESHOLD_PCT:
        return "improving", change
    if change < -TREND_THRESHOLD_PCT:
        return "declining", change
    return "stable", change


def _weekly_chart(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    weeks: dict[Any, list[float]] = {}
    for entry in entries:
        weeks.setdefault(week_start(entry["activity"].calendar_date), []).append(entry["pace"])
    return [
        {
            "week_start": key.isoformat(),
            "week_end": (key + timedelta(days=6)).isoformat(),
            "avg_pace": round(_mean(weeks[key]), 2),
            "activity_count": len(weeks[key]),
        }
        for key in sorted(weeks)[-CHART_WEEKS:]
    ]


def _pace_ref(entry: dict[str, Any]) -> dict[str, Any]:
    activity = entry["activity"]
    return {
        "value": round(entry["pace"], 2),
        "date": activity.calendar_date.isoformat(),
        "name": activity.name,
    }


def analyze_sport(
    sport_type: str,
    activities: list[Activity],
    mapping: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Pace statistics for one sport with at least two activities.

    Activities are ordered by start time and split in half; the recent half
    is compared with the earlier half for ``improvement``.
    """
    unit = pace_unit(sport_type, mapping)
    speed = unit == "mph"
    entries = [
        {"activity": activity, "pace": pace_for(activity, unit)}
        for activity in sorted(activities, key=lambda a: a.start_date)
    ]
    paces = [entry["pace"] for entry in entries]

    middle = len(entries) // 2
    earlier_avg = _mean(paces[:middle])
    recent_avg = _mean(paces[middle:])

    best = worst = entries[0]
    for entry in entries[1:]:
        if (entry["pace"] > best["pace"]) if speed else (entry["pace"] < best["pace"]):
            best = entry
        if (entry["pace"] < worst["pace"]) if speed else (entry["pace"] > worst["pace"]):
            worst = entry

    trend, trend_pct = _trend(paces, speed)

    return {
        "activity_count": len(entries),
        "pace_unit": unit,
        "is_speed_sport": speed,
        "current_avg_pace": round(recent_avg, 2),
        "overall_avg_pace": round(_mean(paces), 2),
        "improvement": round(_change_pct(earlier_avg, recent_avg, speed), 1),
        "recent_trend": trend,
        "trend_pct": round(trend_pct, 1),
        "best_pace": _pace_ref(best),
        "worst_pace": _pace_ref(worst),
        "chart_data": _weekly_chart(entries),
        "recent_activities": [
            {**_pace_ref(entry), "distance_m": entry["activity"].distance_m}
            for entry in reversed(entries[-TREND_SAMPLE:])
        ],
    }


def get_pace_analysis(
    scored: Iterable[ScoredActivity],
    window: CompetitionWindow | None = None,
    include_hidden: bool = False,
    sport_mapping: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Pace trends per sport type.

    Only activities with distance and moving time count, and activities
    flagged ``exclude_from_pace_analysis`` are skipped. Sports with fewer
    than two such activities are left out.

    Args:
        scored: Scored activities in any order
        window: Optional competition window
        include_hidden: Count activities flagged hidden
        sport_mapping: Sport type -> discipline map used to spot cycling types

    Returns:
        Dict with has_data and sports (sport type -> statistics)
    """
    by_sport: dict[str, list[Activity]] = {}
    excluded = 0
    for item in filter_activities(scored, window, include_hidden):
        activity = item.activity
        if activity.exclude_from_pace_analysis:
            excluded += 1
            continue
        if activity.distance_m <= 0 or activity.moving_time_s <= 0:
            continue
        by_sport.setdefault(activity.sport_type, []).append(activity)

    if excluded:
        logger.debug("Excluded %d activities from pace analysis", excluded)

    if not by_sport:
        return {"has_data": False, "message": "No activities with pace data found"}

    sports = {
        sport_type: analyze_sport(sport_type, activities, sport_mapping)
        for sport_type, activities in sorted(by_sport.items())
        if len(activities) >= MIN_ACTIVITIES
    }
    return {"has_data": bool(sports), "sports": sports}
