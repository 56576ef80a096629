"""Map raw activity-provider payloads (Strava-shaped JSON) onto engine models."""
import logging
from typing import Any

from pydantic import ValidationError

from zonerank.models.schemas import (
    Activity,
    ActivityRecord,
    HeartRateSampleSeries,
    ZoneBand,
)


logger = logging.getLogger(__name__)

BIKE_SPORT_TYPES = frozenset({
    "Ride",
    "VirtualRide",
    "EBikeRide",
    "EMountainBikeRide",
    "GravelRide",
    "MountainBikeRide",
    "Velomobile",
    "Handcycle",
})
OUTDOOR_BIKE_TYPE = "Ride"
INDOOR_BIKE_TYPE = "Peloton"


def classify_sport_type(sport_type: str | None, elevation_gain_m: float | None) -> str:
    """
    Collapse bike variants into outdoor ``Ride`` or indoor ``Peloton``.

    Any elevation gain means the ride happened outdoors. Non-bike types pass
    through unchanged.
    """
    if sport_type not in BIKE_SPORT_TYPES:
        return sport_type or "Unknown"

    elevation = elevation_gain_m or 0
    classified = OUTDOOR_BIKE_TYPE if elevation > 0 else INDOOR_BIKE_TYPE
    logger.debug("Bike activity %s with %sm elevation classified as %s", sport_type, elevation, classified)
    return classified


def activity_from_provider(payload: dict[str, Any]) -> Activity:
    """
    Build an Activity from a provider activity summary.

    Args:
        payload: Activity JSON (id, name, sport_type/type, start_date,
            moving_time, distance, average_heartrate, max_heartrate,
            total_elevation_gain, optional hidden,
            exclude_from_pace_analysis and zone_points)

    Returns:
        Activity with bike sport types classified indoor/outdoor
    """
    elevation = payload.get("total_elevation_gain")
    sport_type = payload.get("sport_type") or payload.get("type")

    return Activity(
        id=payload["id"],
        name=payload.get("name"),
        sport_type=classify_sport_type(sport_type, elevation),
        start_date=payload["start_date"],
        moving_time_s=payload.get("moving_time"),
        distance_m=payload.get("distance"),
        average_heartrate=payload.get("average_heartrate"),
        max_heartrate=payload.get("max_heartrate"),
        total_elevation_gain_m=elevation,
        hidden=payload.get("hidden"),
        exclude_from_pace_analysis=payload.get("exclude_from_pace_analysis"),
        zone_points=payload.get("zone_points"),
    )


def _stream_data(streams: dict[str, Any], key: str) -> list[Any] | None:
    stream = streams.get(key)
    if not isinstance(stream, dict):
        return None
    data = stream.get("data")
    return data if isinstance(data, list) else None


def samples_from_streams(streams: dict[str, Any] | None) -> HeartRateSampleSeries | None:
    """
    Extract aligned HR samples from a key-by-type stream payload.

    Streams are truncated to their common length, null heart-rate readings
    become 0 and samples whose time does not advance are dropped.

    Returns:
        HeartRateSampleSeries, or None when either stream is missing or fewer
        than two usable samples remain
    """
    if not streams:
        return None

    heart_rate = _stream_data(streams, "heartrate")
    elapsed = _stream_data(streams, "time")
    if heart_rate is None or elapsed is None:
        logger.debug("Stream payload missing heartrate or time data")
        return None

    if len(heart_rate) != len(elapsed):
        logger.warning(
            "Heart rate stream has %d samples but time stream has %d - truncating",
            len(heart_rate),
            len(elapsed),
        )

    kept_hr: list[float] = []
    kept_time: list[float] = []
    dropped = 0
    for hr, t in zip(heart_rate, elapsed):
        if t is None or (kept_time and t <= kept_time[-1]):
            dropped += 1
            continue
        kept_hr.append(hr if hr is not None else 0)
        kept_time.append(t)

    if dropped:
        logger.warning("Dropped %d samples with non-increasing time", dropped)

    if len(kept_hr) < 2:
        return None
    return HeartRateSampleSeries(heart_rate=tuple(kept_hr), elapsed_time=tuple(kept_time))


def zone_bands_from_provider(payload: dict[str, Any] | None) -> list[ZoneBand] | None:
    """
    Read the athlete's heart-rate bands from an athlete-zones payload.

    Expects ``{"heart_rate": {"zones": [{"min": .., "max": ..}, ...]}}``.
    The bands are not checked for count or ordering here; scoring validates
    them and falls back to max-HR zones when they are malformed.
    """
    if not payload:
        return None

    heart_rate = payload.get("heart_rate") or {}
    zones = heart_rate.get("zones")
    if not zones:
        logger.debug("No heart rate zones in athlete payload")
        return None

    try:
        return [ZoneBand.model_validate(zone) for zone in zones]
    except ValidationError as e:
        logger.warning("Unreadable heart rate zones in athlete payload: %s", e)
        return None


def record_from_provider(
    payload: dict[str, Any],
    streams: dict[str, Any] | None = None,
) -> ActivityRecord:
    """Activity plus its HR samples (if streams were fetched) ready for scoring."""
    return ActivityRecord(
        activity=activity_from_provider(payload),
        samples=samples_from_streams(streams),
    )
