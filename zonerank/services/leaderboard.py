"""Competition leaderboards, weekly history, activity calendar and progress."""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Any

from zonerank.models.schemas import CompetitionWindow, ScoredActivity
from zonerank.services.periods import filter_activities, week_start


logger = logging.getLogger(__name__)

CALENDAR_INTENSITY_LEVELS = 4


def _athlete_totals(athlete_id: str, activities: Sequence[ScoredActivity]) -> dict[str, Any]:
    return {
        "athlete_id": athlete_id,
        "total_points": sum(item.points for item in activities),
        "activity_count": len(activities),
        "total_distance_m": sum(item.activity.distance_m for item in activities),
        "total_time_s": sum(item.activity.moving_time_s for item in activities),
    }


def _rank(entries: list[dict[str, Any]], key: str = "total_points") -> list[dict[str, Any]]:
    entries.sort(key=lambda entry: (-entry[key], str(entry["athlete_id"])))
    for position, entry in enumerate(entries, start=1):
        entry["rank"] = position
    return entries


def build_leaderboard(
    athletes: Mapping[str, Iterable[ScoredActivity]],
    window: CompetitionWindow | None = None,
    include_hidden: bool = False,
) -> list[dict[str, Any]]:
    """
    Rank athletes by total points.

    Args:
        athletes: Athlete id -> scored activities
        window: Competition window (None counts every activity)
        include_hidden: Count activities flagged hidden

    Returns:
        Entries with rank, athlete_id, total_points, activity_count,
        total_distance_m and total_time_s; highest points first, ties by id
    """
    entries = [
        _athlete_totals(athlete_id, filter_activities(scored, window, include_hidden))
        for athlete_id, scored in athletes.items()
    ]
    return _rank(entries)


def weekly_leaderboard(
    athletes: Mapping[str, Iterable[ScoredActivity]],
    week_of: date,
    window: CompetitionWindow | None = None,
    include_hidden: bool = False,
) -> dict[str, Any]:
    """
    Leaderboard for the Monday-anchored week containing ``week_of``.

    Athletes without activity that week are left out.
    """
    start = week_start(week_of)
    end = start + timedelta(days=6)
    week = CompetitionWindow(name=f"Week of {start.isoformat()}", start_date=start, end_date=end)

    entries = []
    all_activities: list[ScoredActivity] = []
    for athlete_id, scored in athletes.items():
        activities = [
            item for item in filter_activities(scored, window, include_hidden)
            if week.contains(item.activity)
        ]
        if activities:
            entries.append(_athlete_totals(athlete_id, activities))
            all_activities.extend(activities)

    return {
        "week_start": start.isoformat(),
        "week_end": end.isoformat(),
        "leaderboard": _rank(entries),
        "stats": {
            "total_activities": len(all_activities),
            "total_points": sum(item.points for item in all_activities),
            "total_distance_m": sum(item.activity.distance_m for item in all_activities),
            "total_time_s": sum(item.activity.moving_time_s for item in all_activities),
        },
    }


def weekly_points_history(
    scored: Iterable[ScoredActivity],
    competition_start: date,
    as_of: date,
    include_hidden: bool = False,
) -> dict[str, Any]:
    """
    Points per week from the competition's first week through ``as_of``.

    Every week is present, including empty ones, with a running total.
    """
    first_week = week_start(competition_start)
    last_week = week_start(as_of)

    points: dict[date, float] = {}
    counts: dict[date, int] = {}
    for item in filter_activities(scored, include_hidden=include_hidden):
        key = week_start(item.activity.calendar_date)
        if first_week <= key <= last_week:
            points[key] = points.get(key, 0.0) + item.points
            counts[key] = counts.get(key, 0) + 1

    weeks = []
    cumulative = 0.0
    key = first_week
    while key <= last_week:
        week_points = points.get(key, 0.0)
        cumulative += week_points
        weeks.append({
            "week_start": key.isoformat(),
            "week_end": (key + timedelta(days=6)).isoformat(),
            "points": round(week_points, 1),
            "activity_count": counts.get(key, 0),
            "cumulative_points": round(cumulative, 1),
        })
        key += timedelta(weeks=1)

    best_week = None
    for week in weeks:
        if week["points"] > 0 and (best_week is None or week["points"] > best_week["points"]):
            best_week = week

    current = weeks[-1] if weeks else None
    previous = weeks[-2] if len(weeks) > 1 else None

    return {
        "weeks": weeks,
        "summary": {
            "total_points": round(cumulative, 1),
            "avg_points_per_week": round(cumulative / len(weeks), 1) if weeks else 0,
            "best_week": {"week_start": best_week["week_start"], "points": best_week["points"]} if best_week else None,
            "current_week": {
                "week_start": current["week_start"] if current else None,
                "points": current["points"] if current else 0,
            },
            "week_over_week_change": round(current["points"] - previous["points"], 1) if previous else None,
            "total_weeks": len(weeks),
        },
    }


def activity_calendar(
    scored: Iterable[ScoredActivity],
    include_hidden: bool = False,
) -> dict[str, Any]:
    """
    Per-day points for a heatmap.

    Intensity is 0-4, relative to the athlete's best day.
    """
    days: dict[date, dict[str, Any]] = {}
    for item in filter_activities(scored, include_hidden=include_hidden):
        key = item.activity.calendar_date
        day = days.setdefault(key, {
            "date": key.isoformat(),
            "points": 0.0,
            "activities": 0,
            "sports": [],
            "total_time": 0.0,
            "total_distance": 0.0,
        })
        day["points"] += item.points
        day["activities"] += 1
        day["total_time"] += item.activity.moving_time_s
        day["total_distance"] += item.activity.distance_m
        if item.activity.sport_type not in day["sports"]:
            day["sports"].append(item.activity.sport_type)

    all_points = [day["points"] for day in days.values()]
    max_points = max([*all_points, 1])

    calendar = []
    for key in sorted(days):
        day = days[key]
        level = math.ceil(day["points"] / max_points * CALENDAR_INTENSITY_LEVELS)
        calendar.append({**day, "intensity": min(CALENDAR_INTENSITY_LEVELS, level)})

    return {
        "calendar": calendar,
        "stats": {
            "total_days": len(days),
            "total_points": sum(all_points),
            "max_daily_points": max_points,
            "avg_daily_points": sum(all_points) / len(all_points) if all_points else 0,
        },
    }


def competition_progress(
    window: CompetitionWindow,
    athletes: Mapping[str, Iterable[ScoredActivity]],
    now: datetime | None = None,
    include_hidden: bool = False,
) -> dict[str, Any]:
    """
    Competition timeline plus projected final standings.

    Projections extend each athlete's points-per-elapsed-day to the end of
    the window.
    """
    now = now or datetime.now(timezone.utc)
    start = datetime.combine(window.start_date, datetime.min.time(), tzinfo=timezone.utc)
    end = datetime.combine(window.end_date, datetime.max.time(), tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    total_duration = (end - start).total_seconds()
    elapsed = (now - start).total_seconds()
    remaining = (end - now).total_seconds()

    has_started = now >= start
    has_ended = now > end
    day_seconds = 24 * 60 * 60

    total_days = math.ceil(total_duration / day_seconds)
    days_elapsed = math.floor(elapsed / day_seconds) if has_started else 0
    if has_ended:
        days_remaining = 0
    elif has_started:
        days_remaining = math.ceil(remaining / day_seconds)
    else:
        days_remaining = total_days
    days_until_start = 0 if has_started else math.ceil(-elapsed / day_seconds)

    if has_ended:
        progress_percent = 100.0
    elif has_started and total_duration > 0:
        progress_percent = min(100.0, max(0.0, elapsed / total_duration * 100))
    else:
        progress_percent = 0.0

    projections = []
    for entry in build_leaderboard(athletes, window, include_hidden):
        total_points = entry["total_points"]
        points_per_day = 0.0
        projected = total_points
        if has_started and days_elapsed > 0 and total_points > 0:
            points_per_day = total_points / days_elapsed
            if not has_ended:
                projected = total_points + points_per_day * days_remaining
        projections.append({
            "athlete_id": entry["athlete_id"],
            "current_points": total_points,
            "points_per_day": points_per_day,
            "projected_final_points": projected,
            "activity_count": entry["activity_count"],
        })

    current_standings = sorted(projections, key=lambda p: (-p["current_points"], str(p["athlete_id"])))
    projections.sort(key=lambda p: (-p["projected_final_points"], str(p["athlete_id"])))

    if has_ended:
        status = "completed"
    elif has_started:
        status = "active"
    else:
        status = "upcoming"

    logger.debug("Competition %s is %s (%.1f%% elapsed)", window.name, status, progress_percent)

    return {
        "competition": {
            "name": window.name,
            "start_date": window.start_date.isoformat(),
            "end_date": window.end_date.isoformat(),
            "status": status,
        },
        "timeline": {
            "total_days": total_days,
            "days_elapsed": days_elapsed,
            "days_remaining": days_remaining,
            "days_until_start": days_until_start,
            "progress_percent": round(progress_percent, 1),
            "has_started": has_started,
            "has_ended": has_ended,
        },
        "projections": projections,
        "current_standings": current_standings,
    }
