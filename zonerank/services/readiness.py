"""Sport balance and composite race-readiness scoring."""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import Any

from zonerank.config import get_scoring_config
from zonerank.models.schemas import DISCIPLINES, CompetitionWindow, ScoredActivity
from zonerank.services.periods import filter_activities
from zonerank.services.training_load import (
    CHRONIC_WINDOW_DAYS,
    bucket_daily_loads,
    calculate_acwr,
)
from zonerank.services.zone_points import round_half_up


logger = logging.getLogger(__name__)

# Typical 70.3 race split by time
IDEAL_DISTRIBUTION = {"swim": 18, "bike": 55, "run": 27}

FACTOR_WEIGHTS = {
    "volume": 30,
    "balance": 20,
    "consistency": 25,
    "recovery": 15,
    "intensity": 10,
}

RACE_READY_DAILY_LOAD = 100

OPTIMAL_ACWR_LOW = 0.8
OPTIMAL_ACWR_HIGH = 1.5
INTENSITY_RATIO_LOW = 10
INTENSITY_RATIO_HIGH = 30

READINESS_LEVELS = (
    (80, "excellent", "Your training is on track for a strong race performance."),
    (60, "good", "Good progress. Stay consistent to reach peak fitness."),
    (40, "building", "Building your base. Focus on consistency and volume."),
    (0, "needs_work", "Time to ramp up training. Increase weekly volume gradually."),
)


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def discipline_for(sport_type: str, mapping: dict[str, str] | None = None) -> str:
    """Triathlon discipline for a provider sport type; unknown targets count as other."""
    mapping = mapping if mapping is not None else get_scoring_config()["sport_disciplines"]
    discipline = mapping.get(sport_type, "other")
    if discipline not in DISCIPLINES:
        logger.debug("Sport %s maps to unknown discipline %r - counting as other", sport_type, discipline)
        return "other"
    return discipline


def calculate_sport_balance(
    activities: Iterable[ScoredActivity],
    mapping: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Time, distance, count and points per discipline plus balance score.

    Percentages are shares of swim + bike + run moving time, with indoor and
    outdoor riding combined for the bike share. Balance is 100 minus the mean
    absolute gap to the ideal split.
    """
    totals = {name: {"time": 0.0, "distance": 0.0, "activities": 0, "points": 0.0} for name in DISCIPLINES}
    for item in activities:
        bucket = totals[discipline_for(item.activity.sport_type, mapping)]
        bucket["time"] += item.activity.moving_time_s
        bucket["distance"] += item.activity.distance_m
        bucket["activities"] += 1
        bucket["points"] += item.points

    bike_time = totals["bike"]["time"] + totals["bike_indoor"]["time"]
    triathlon_time = totals["swim"]["time"] + bike_time + totals["run"]["time"]

    def share(seconds: float) -> float:
        return seconds / triathlon_time * 100 if triathlon_time > 0 else 0.0

    percentages = {
        "swim": share(totals["swim"]["time"]),
        "bike": share(totals["bike"]["time"]),
        "bike_indoor": share(totals["bike_indoor"]["time"]),
        "bike_combined": share(bike_time),
        "run": share(totals["run"]["time"]),
    }

    deviation = (
        abs(percentages["swim"] - IDEAL_DISTRIBUTION["swim"])
        + abs(percentages["bike_combined"] - IDEAL_DISTRIBUTION["bike"])
        + abs(percentages["run"] - IDEAL_DISTRIBUTION["run"])
    ) / 3

    return {
        **totals,
        "percentages": percentages,
        "ideal_distribution": dict(IDEAL_DISTRIBUTION),
        "triathlon_time": triathlon_time,
        "balance_score": _clamp(100 - deviation),
    }


def recovery_score(acwr: float) -> float:
    """100 inside 0.8-1.5, linear ramp below, linear decay above."""
    if acwr < OPTIMAL_ACWR_LOW:
        return _clamp(acwr / OPTIMAL_ACWR_LOW * 100)
    if acwr > OPTIMAL_ACWR_HIGH:
        return _clamp(100 - (acwr - OPTIMAL_ACWR_HIGH) * 100)
    return 100.0


def intensity_score(high_intensity_ratio: float) -> float:
    """100 for 10-30% Zone 4+5 time, scaled down on either side."""
    if high_intensity_ratio < INTENSITY_RATIO_LOW:
        return _clamp(high_intensity_ratio / INTENSITY_RATIO_LOW * 100)
    if high_intensity_ratio > INTENSITY_RATIO_HIGH:
        return _clamp(100 - (high_intensity_ratio - INTENSITY_RATIO_HIGH) * 2)
    return 100.0


def composite_score(scores: dict[str, float]) -> int:
    """
    Weighted readiness score, halves rounded up.

    Example:
        >>> composite_score({name: 100 for name in FACTOR_WEIGHTS})
        100
    """
    total = sum(_clamp(scores.get(name, 0)) * weight for name, weight in FACTOR_WEIGHTS.items())
    return round_half_up(total / sum(FACTOR_WEIGHTS.values()))


def classify_readiness(score: float) -> tuple[str, str]:
    """Return (level, message) for a composite score."""
    for threshold, level, message in READINESS_LEVELS:
        if score >= threshold:
            return level, message
    return READINESS_LEVELS[-1][1], READINESS_LEVELS[-1][2]


def build_recommendations(
    percentages: dict[str, float],
    triathlon_time: float,
    chronic_load: float,
    consistency: float,
    high_intensity_ratio: float,
    acwr: float,
) -> list[str]:
    """Independent threshold checks on the raw metrics; may return none."""
    recommendations = []

    if triathlon_time > 0:
        if percentages["swim"] < 10:
            recommendations.append("Add more swim sessions - currently under 10% of training")
        if percentages["run"] < 20:
            recommendations.append("Consider more run training for race-day endurance")
        if percentages["bike_combined"] < 40:
            recommendations.append("The bike is 56 miles - increase cycling volume")

    if chronic_load < 50:
        recommendations.append("Gradually increase weekly training volume")

    if consistency < 50:
        recommendations.append("Aim for more consistent training - at least 4 days per week")

    if high_intensity_ratio < INTENSITY_RATIO_LOW:
        recommendations.append("Include more threshold and interval work")
    elif high_intensity_ratio > INTENSITY_RATIO_HIGH:
        recommendations.append("Consider more Zone 2 base training")

    if acwr > OPTIMAL_ACWR_HIGH:
        recommendations.append("Recovery week recommended - high acute:chronic ratio")

    return recommendations


def _high_intensity_ratio(activities: Sequence[ScoredActivity]) -> float:
    total_zone_time = 0.0
    high_zone_time = 0.0
    for item in activities:
        if not item.has_zone_data:
            continue
        total_zone_time += item.zones.total_seconds
        high_zone_time += item.zones.high_intensity_seconds
    return high_zone_time / total_zone_time * 100 if total_zone_time > 0 else 0.0


def get_training_insights(
    scored: Iterable[ScoredActivity],
    as_of: date | None = None,
    race_date: date | None = None,
    window: CompetitionWindow | None = None,
    include_hidden: bool = False,
    sport_mapping: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Sport balance and race readiness for one athlete.

    Args:
        scored: Athlete's scored activities
        as_of: Reference day for the 28-day windows (default: today)
        race_date: Optional target race for the countdown
        window: Optional competition window filter
        include_hidden: Count activities flagged hidden
        sport_mapping: Sport type -> discipline override

    Returns:
        Dict with has_data, sport_balance, race_readiness and totals
    """
    activities = filter_activities(scored, window, include_hidden)
    if not activities:
        return {"has_data": False, "message": "No activities found"}

    as_of = as_of or date.today()
    window_start = as_of - timedelta(days=CHRONIC_WINDOW_DAYS - 1)
    last_28_days = [a for a in activities if window_start <= a.activity.calendar_date <= as_of]

    balance = calculate_sport_balance(activities, sport_mapping)
    load = calculate_acwr(bucket_daily_loads(activities), as_of)
    chronic_load = load["chronic_load"]
    acwr = load["acwr"]

    active_days = len({a.activity.calendar_date for a in last_28_days})
    high_intensity_ratio = _high_intensity_ratio(last_28_days)

    scores = {
        "volume": _clamp(chronic_load / RACE_READY_DAILY_LOAD * 100),
        "balance": balance["balance_score"],
        "consistency": _clamp(active_days / CHRONIC_WINDOW_DAYS * 100),
        "recovery": recovery_score(acwr),
        "intensity": intensity_score(high_intensity_ratio),
    }
    score = composite_score(scores)
    level, message = classify_readiness(score)

    recommendations = build_recommendations(
        balance["percentages"],
        balance["triathlon_time"],
        chronic_load,
        scores["consistency"],
        high_intensity_ratio,
        acwr,
    )

    logger.info(
        "Readiness as of %s | score=%d level=%s factors=%s",
        as_of.isoformat(),
        score,
        level,
        {name: round(value) for name, value in scores.items()},
    )

    readiness: dict[str, Any] = {
        "score": score,
        "level": level,
        "message": message,
        "factors": {
            "volume": {"score": round(scores["volume"]), "weight": FACTOR_WEIGHTS["volume"], "chronic_load": round(chronic_load)},
            "balance": {"score": round(scores["balance"]), "weight": FACTOR_WEIGHTS["balance"]},
            "consistency": {"score": round(scores["consistency"]), "weight": FACTOR_WEIGHTS["consistency"], "active_days": active_days},
            "recovery": {"score": round(scores["recovery"]), "weight": FACTOR_WEIGHTS["recovery"], "acwr": round(acwr, 2)},
            "intensity": {"score": round(scores["intensity"]), "weight": FACTOR_WEIGHTS["intensity"], "ratio": round(high_intensity_ratio, 1)},
        },
        "recommendations": recommendations,
    }
    if race_date is not None:
        days_to_race = (race_date - as_of).days
        readiness["race_date"] = race_date.isoformat()
        readiness["days_to_race"] = days_to_race
        readiness["weeks_to_race"] = math.ceil(days_to_race / 7)

    return {
        "has_data": True,
        "as_of": as_of.isoformat(),
        "sport_balance": {
            **{name: balance[name] for name in DISCIPLINES},
            "percentages": balance["percentages"],
            "ideal_distribution": balance["ideal_distribution"],
            "balance_score": round(balance["balance_score"]),
        },
        "race_readiness": readiness,
        "totals": {
            "activities": len(activities),
            "triathlon_activities": sum(
                balance[name]["activities"] for name in ("swim", "bike", "bike_indoor", "run")
            ),
            "total_time": sum(balance[name]["time"] for name in DISCIPLINES),
            "total_distance": sum(
                balance[name]["distance"] for name in ("swim", "bike", "bike_indoor", "run")
            ),
        },
    }
