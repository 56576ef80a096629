"""Personal bests, weekly bests, streaks and milestone ladders."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date, timedelta
from typing import Any

from zonerank.config import get_scoring_config
from zonerank.models.schemas import CompetitionWindow, ScoredActivity
from zonerank.services.periods import filter_activities, week_start


logger = logging.getLogger(__name__)


def _best(
    activities: Sequence[ScoredActivity],
    metric: Callable[[ScoredActivity], float],
) -> ScoredActivity | None:
    """Activity with the highest metric; ties keep the first one seen."""
    best = None
    for item in activities:
        if best is None or metric(item) > metric(best):
            best = item
    return best


def _record(
    item: ScoredActivity | None,
    key: str,
    value: Callable[[ScoredActivity], float],
    include_sport: bool = True,
) -> dict[str, Any] | None:
    if item is None:
        return None
    return {"activity": item.activity.reference(include_sport), key: value(item)}


def _points(item: ScoredActivity) -> float:
    return item.points


def _moving_time(item: ScoredActivity) -> float:
    return item.activity.moving_time_s


def _distance(item: ScoredActivity) -> float:
    return item.activity.distance_m


def _average_hr(item: ScoredActivity) -> float:
    return item.activity.average_heartrate or 0


class RecordsTracker:
    """Scan an athlete's activity history for records and achievements."""

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize tracker.

        Args:
            config: Optional scoring configuration (defaults to scoring.yaml)
        """
        self.config = config or get_scoring_config()

    def calculate_personal_bests(self, activities: Sequence[ScoredActivity]) -> dict[str, Any]:
        """Single-activity maxima overall, per zone and per sport type."""
        zone_records: dict[str, Any] = {}
        with_zones = [item for item in activities if item.has_zone_data]
        for zone_num in range(1, 6):
            def zone_seconds(item: ScoredActivity, index: int = zone_num - 1) -> float:
                return item.zones.seconds[index]

            best_zone = _best(with_zones, zone_seconds)
            if best_zone is not None:
                zone_records[f"zone{zone_num}"] = _record(best_zone, "time_seconds", zone_seconds)

        sport_bests: dict[str, Any] = {}
        for sport in dict.fromkeys(item.activity.sport_type for item in activities):
            sport_activities = [item for item in activities if item.activity.sport_type == sport]
            sport_bests[sport] = {
                "count": len(sport_activities),
                "best_points": _record(_best(sport_activities, _points), "points", _points, False),
                "longest_time": _record(_best(sport_activities, _moving_time), "time_seconds", _moving_time, False),
                "longest_distance": _record(_best(sport_activities, _distance), "distance_m", _distance, False),
            }

        return {
            "highest_points": _record(_best(activities, _points), "points", _points),
            "longest_duration": _record(_best(activities, _moving_time), "time_seconds", _moving_time),
            "longest_distance": _record(_best(activities, _distance), "distance_m", _distance),
            "highest_avg_hr": _record(_best(activities, _average_hr), "avg_hr", _average_hr),
            "zone_records": zone_records,
            "sport_bests": sport_bests,
        }

    def calculate_weekly_stats(self, activities: Sequence[ScoredActivity]) -> dict[str, Any]:
        """Best week by points and by activity count, Monday-anchored weeks."""
        weekly: dict[date, dict[str, Any]] = {}
        for item in activities:
            key = week_start(item.activity.calendar_date)
            week = weekly.setdefault(key, {"week_start": key.isoformat(), "points": 0.0, "activities": 0})
            week["points"] += item.points
            week["activities"] += 1

        weeks = list(weekly.values())
        best_points = None
        most_active = None
        for week in weeks:
            if best_points is None or week["points"] > best_points["points"]:
                best_points = week
            if most_active is None or week["activities"] > most_active["activities"]:
                most_active = week

        return {
            "best_week_points": dict(best_points) if best_points else None,
            "most_active_week": dict(most_active) if most_active else None,
            "averages": {
                "points_per_week": sum(w["points"] for w in weeks) / len(weeks) if weeks else 0,
                "activities_per_week": sum(w["activities"] for w in weeks) / len(weeks) if weeks else 0,
            },
            "total_weeks": len(weeks),
        }

    @staticmethod
    def calculate_streaks(activities: Iterable[ScoredActivity], today: date) -> dict[str, int]:
        """
        Consecutive-day streaks.

        Returns:
            longest_streak: longest run of consecutive active dates
            current_streak: active days ending on ``today`` (0 if today is inactive)
            total_active_days: distinct active dates
        """
        active_dates = {item.activity.calendar_date for item in activities}

        longest = 0
        run = 0
        previous: date | None = None
        for day in sorted(active_dates):
            run = run + 1 if previous is not None and (day - previous).days == 1 else 1
            longest = max(longest, run)
            previous = day

        current = 0
        check_date = today
        while check_date in active_dates:
            current += 1
            check_date -= timedelta(days=1)

        return {
            "longest_streak": longest,
            "current_streak": current,
            "total_active_days": len(active_dates),
        }

    def calculate_milestones(self, activities: Sequence[ScoredActivity]) -> dict[str, Any]:
        """Achieved thresholds, next goal and progress for each ladder."""
        totals = {
            "points": sum(item.points for item in activities),
            "distance": sum(item.activity.distance_m for item in activities),
            "time": sum(item.activity.moving_time_s for item in activities),
            "activities": len(activities),
        }
        ladders: dict[str, list[float]] = self.config["milestones"]

        achieved: dict[str, list[float]] = {}
        next_goals: dict[str, float | None] = {}
        progress: dict[str, float] = {}
        for metric, total in totals.items():
            ladder = sorted(ladders.get(metric, []))
            achieved[metric] = [m for m in ladder if total >= m]
            next_goal = next((m for m in ladder if total < m), None)
            next_goals[metric] = next_goal
            progress[metric] = total / next_goal * 100 if next_goal else 100.0

        return {
            "totals": {
                "points": totals["points"],
                "distance_m": totals["distance"],
                "time_s": totals["time"],
                "activities": totals["activities"],
            },
            "achieved": achieved,
            "next_goals": next_goals,
            "progress": progress,
        }

    def get_personal_records(
        self,
        scored: Iterable[ScoredActivity],
        today: date | None = None,
        window: CompetitionWindow | None = None,
        include_hidden: bool = False,
    ) -> dict[str, Any]:
        """
        Full records bundle for one athlete.

        Returns:
            Dict with has_data, personal_bests, weekly_stats, streaks,
            milestones and total_activities
        """
        activities = filter_activities(scored, window, include_hidden)
        if not activities:
            return {"has_data": False, "message": "No activities found"}

        today = today or date.today()
        streaks = self.calculate_streaks(activities, today)
        logger.debug(
            "Records for %d activities | longest_streak=%d current_streak=%d",
            len(activities),
            streaks["longest_streak"],
            streaks["current_streak"],
        )

        return {
            "has_data": True,
            "personal_bests": self.calculate_personal_bests(activities),
            "weekly_stats": self.calculate_weekly_stats(activities),
            "streaks": streaks,
            "milestones": self.calculate_milestones(activities),
            "total_activities": len(activities),
        }
