"""Daily training load aggregation, ACWR and load trends."""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import Any

from zonerank.models.schemas import CompetitionWindow, DailyLoad, ScoredActivity
from zonerank.services.periods import filter_activities, week_start


logger = logging.getLogger(__name__)

ACUTE_WINDOW_DAYS = 7
CHRONIC_WINDOW_DAYS = 28
TREND_WEEKS = 4
TREND_CHANGE_PCT = 10
CHART_WEEKS = 12
RECENT_ACTIVITY_COUNT = 10

# Bands tuned for long-course endurance athletes, who sustain higher ratios
# than the usual 0.8-1.3 sports-science range.
UNDERTRAINING_BELOW = 0.8
OPTIMAL_UP_TO = 1.8
OVERREACHING_UP_TO = 2.2

ACWR_STATUS_TEXT = {
    "undertraining": (
        "Training load is lower than usual. Consider increasing intensity.",
        "You have capacity for harder training. Consider a challenging workout.",
    ),
    "optimal": (
        "Training load is in the optimal range for adaptation.",
        "Training load is balanced. Continue with planned workouts.",
    ),
    "overreaching": (
        "High training load. Monitor for signs of fatigue.",
        "Consider an easy workout or active recovery day.",
    ),
    "high_risk": (
        "Very high acute load. Consider reducing training intensity.",
        "Take 1-2 rest days or do only light recovery activities.",
    ),
}


def bucket_daily_loads(scored: Iterable[ScoredActivity]) -> list[DailyLoad]:
    """
    Sum training load per calendar date.

    Returns:
        One DailyLoad per date with at least one activity, oldest first
    """
    totals: dict[date, float] = defaultdict(float)
    counts: dict[date, int] = defaultdict(int)
    for item in scored:
        day = item.activity.calendar_date
        totals[day] += item.training_load
        counts[day] += 1

    return [
        DailyLoad(date=day, load=totals[day], activities=counts[day])
        for day in sorted(totals)
    ]


def rolling_average_load(daily_loads: Sequence[DailyLoad], as_of: date, days: int) -> float:
    """
    Average daily load over the ``days`` calendar days ending on ``as_of``.

    Days without activity count as zero, so the divisor is always ``days``.
    """
    window_start = as_of - timedelta(days=days - 1)
    total = sum(d.load for d in daily_loads if window_start <= d.date <= as_of)
    return total / days


def classify_acwr(acwr: float) -> str:
    """
    Map an acute:chronic ratio to a training status.

    < 0.8 undertraining, 0.8-1.8 optimal, 1.8-2.2 overreaching, > 2.2 high_risk.
    Boundary values belong to the lower-risk status.
    """
    if acwr < UNDERTRAINING_BELOW:
        return "undertraining"
    if acwr <= OPTIMAL_UP_TO:
        return "optimal"
    if acwr <= OVERREACHING_UP_TO:
        return "overreaching"
    return "high_risk"


def calculate_acwr(daily_loads: Sequence[DailyLoad], as_of: date) -> dict[str, Any]:
    """
    Calculate Acute:Chronic Workload Ratio.

    ACWR = 7-day average daily load / 28-day average daily load.
    With no chronic load the ratio is 1 (neutral) instead of undefined.

    Args:
        daily_loads: Output of bucket_daily_loads()
        as_of: Last day of both windows

    Returns:
        Dict with acute_load, chronic_load, acwr, status, status_description,
        recovery_recommendation
    """
    acute_load = rolling_average_load(daily_loads, as_of, ACUTE_WINDOW_DAYS)
    chronic_load = rolling_average_load(daily_loads, as_of, CHRONIC_WINDOW_DAYS)

    if chronic_load > 0:
        acwr = acute_load / chronic_load
    else:
        acwr = 1.0
        logger.debug("No chronic load as of %s - ACWR defaults to 1.0", as_of.isoformat())

    status = classify_acwr(acwr)
    description, recommendation = ACWR_STATUS_TEXT[status]

    return {
        "acute_load": acute_load,
        "chronic_load": chronic_load,
        "acwr": acwr,
        "status": status,
        "status_description": description,
        "recovery_recommendation": recommendation,
    }


def weekly_load_series(
    daily_loads: Sequence[DailyLoad],
    last_day: date,
    weeks: int,
) -> list[dict[str, Any]]:
    """
    Weekly load totals for ``weeks`` consecutive Monday-anchored weeks.

    The final week is the one containing ``last_day``; empty weeks are
    included with zero load.
    """
    last_week = week_start(last_day)
    first_week = last_week - timedelta(weeks=weeks - 1)

    loads: dict[date, float] = defaultdict(float)
    counts: dict[date, int] = defaultdict(int)
    for daily in daily_loads:
        key = week_start(daily.date)
        if first_week <= key <= last_week:
            loads[key] += daily.load
            counts[key] += daily.activities

    series = []
    for offset in range(weeks):
        key = first_week + timedelta(weeks=offset)
        series.append({
            "week_start": key.isoformat(),
            "load": loads[key],
            "activities": counts[key],
            "avg_daily_load": loads[key] / 7,
        })
    return series


def classify_load_trend(weekly_loads: Sequence[float]) -> tuple[str, float | None]:
    """
    Compare the mean of the last four weeks with the four weeks before.

    Args:
        weekly_loads: Weekly totals, oldest first (the last eight are used)

    Returns:
        (trend, change_pct): trend is increasing (> +10%), decreasing
        (< -10%) or stable; change_pct is None when the earlier weeks had no load
    """
    recent = list(weekly_loads[-TREND_WEEKS:])
    previous = list(weekly_loads[-2 * TREND_WEEKS:-TREND_WEEKS])
    if not recent or not previous:
        return "stable", None

    recent_avg = sum(recent) / len(recent)
    previous_avg = sum(previous) / len(previous)

    if previous_avg == 0:
        return ("increasing" if recent_avg > 0 else "stable"), None

    change_pct = (recent_avg - previous_avg) / previous_avg * 100
    if change_pct > TREND_CHANGE_PCT:
        return "increasing", change_pct
    if change_pct < -TREND_CHANGE_PCT:
        return "decreasing", change_pct
    return "stable", change_pct


def get_training_load_summary(
    scored: Iterable[ScoredActivity],
    as_of: date | None = None,
    window: CompetitionWindow | None = None,
    include_hidden: bool = False,
) -> dict[str, Any]:
    """
    Build the training load view for one athlete.

    Args:
        scored: Athlete's scored activities
        as_of: Reference day for the rolling windows (default: today)
        window: Optional competition window filter
        include_hidden: Count activities flagged hidden

    Returns:
        Dict with has_data, summary, current_status, highest_load_week,
        chart_data and recent_activities; ``{"has_data": False, ...}`` when
        there are no activities
    """
    activities = filter_activities(scored, window, include_hidden)
    if not activities:
        return {"has_data": False, "message": "No activities found"}

    as_of = as_of or date.today()
    daily_loads = bucket_daily_loads(activities)
    status = calculate_acwr(daily_loads, as_of)

    trend_series = weekly_load_series(daily_loads, as_of, 2 * TREND_WEEKS)
    load_trend, change_pct = classify_load_trend([week["load"] for week in trend_series])

    # Weeks that actually had training, for history-wide stats
    weekly_totals: dict[date, dict[str, Any]] = {}
    for daily in daily_loads:
        key = week_start(daily.date)
        week = weekly_totals.setdefault(key, {"week_start": key.isoformat(), "load": 0.0, "activities": 0})
        week["load"] += daily.load
        week["activities"] += daily.activities
    weeks = [weekly_totals[key] for key in sorted(weekly_totals)]

    highest_load_week = None
    for week in weeks:
        if highest_load_week is None or week["load"] > highest_load_week["load"]:
            highest_load_week = week

    total_load = sum(item.training_load for item in activities)
    ordered = sorted(activities, key=lambda item: item.activity.start_date)
    recent = [item.summary() for item in reversed(ordered[-RECENT_ACTIVITY_COUNT:])]

    logger.info(
        "Training load as of %s | acute=%.1f chronic=%.1f acwr=%.2f status=%s trend=%s",
        as_of.isoformat(),
        status["acute_load"],
        status["chronic_load"],
        status["acwr"],
        status["status"],
        load_trend,
    )

    return {
        "has_data": True,
        "as_of": as_of.isoformat(),
        "summary": {
            "total_activities": len(activities),
            "total_training_load": total_load,
            "avg_weekly_load": sum(w["load"] for w in weeks) / len(weeks) if weeks else 0,
        },
        "current_status": {
            **status,
            "load_trend": load_trend,
            "load_change_pct": change_pct,
        },
        "highest_load_week": highest_load_week,
        "daily_loads": [
            {"date": d.date.isoformat(), "load": d.load, "activities": d.activities}
            for d in daily_loads
        ],
        "chart_data": weekly_load_series(daily_loads, as_of, CHART_WEEKS),
        "recent_activities": recent,
    }
