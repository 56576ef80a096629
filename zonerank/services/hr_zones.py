"""Heart rate zone boundaries and time-in-zone accumulation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from zonerank.models.schemas import (
    HeartRateSampleSeries,
    ZoneBand,
    ZoneBoundarySet,
    ZoneMethod,
    ZoneResolution,
    ZoneTimeBreakdown,
)


logger = logging.getLogger(__name__)

# Lower bounds (as % of max HR) of zones 2-5; zone 1 is everything below 60%.
PERCENT_OF_MAX_CUTOFFS = (60, 70, 80, 90)


def percent_of_max_bands(max_hr: float) -> ZoneBoundarySet:
    """
    Build display bands from maximum heart rate.

    Zone definitions:
        - Zone 1: below 60% of max HR
        - Zone 2: 60-70% of max HR
        - Zone 3: 70-80% of max HR
        - Zone 4: 80-90% of max HR
        - Zone 5: 90% of max HR and above (unbounded)

    Args:
        max_hr: Maximum heart rate in bpm

    Returns:
        ZoneBoundarySet with rounded bpm cutoffs

    Example:
        >>> percent_of_max_bands(190).to_list()[1]
        {'min': 114.0, 'max': 133.0}
    """
    cutoffs = [round(max_hr * pct / 100) for pct in PERCENT_OF_MAX_CUTOFFS]
    lows = [0, *cutoffs]
    highs: list[float | None] = [*cutoffs, None]
    return ZoneBoundarySet(
        bands=tuple(ZoneBand(min=low, max=high) for low, high in zip(lows, highs))
    )


def parse_custom_zones(
    custom_zones: ZoneBoundarySet | Sequence[ZoneBand | dict[str, Any]] | None,
) -> ZoneBoundarySet | None:
    """
    Validate provider zone bands.

    Returns:
        ZoneBoundarySet, or None when no bands were given or they are malformed
        (wrong count, decreasing, unbounded below zone 5)
    """
    if custom_zones is None or isinstance(custom_zones, ZoneBoundarySet):
        return custom_zones

    try:
        return ZoneBoundarySet(bands=tuple(custom_zones))
    except ValidationError as exc:
        errors = exc.errors()
        logger.warning(
            "Invalid custom HR zones (%s). Falling back to max HR zones.",
            errors[0]["msg"] if errors else exc,
        )
        return None


def resolve_zone_boundaries(
    custom_zones: ZoneBoundarySet | Sequence[ZoneBand | dict[str, Any]] | None,
    max_hr: float | None,
) -> ZoneResolution:
    """
    Select the zone boundary strategy for one activity.

    Custom provider bands win when they form a valid five-band set. Otherwise
    bands are derived from the activity's max heart rate. With neither, zone
    computation is unavailable and the caller should score with the flat
    fallback.

    Args:
        custom_zones: Athlete's bands from the provider (may be malformed)
        max_hr: Activity maximum heart rate in bpm

    Returns:
        ZoneResolution tagged with the method used
    """
    bands = parse_custom_zones(custom_zones)
    if bands is not None:
        return ZoneResolution(method=ZoneMethod.CUSTOM, bands=bands, max_hr=max_hr)

    if max_hr is not None and max_hr > 0:
        return ZoneResolution(
            method=ZoneMethod.PERCENT_OF_MAX,
            bands=percent_of_max_bands(max_hr),
            max_hr=max_hr,
        )

    if max_hr is not None:
        logger.warning("Invalid max HR value (%s) - must be positive", max_hr)
    logger.debug("No zone config or max HR - zone computation unavailable")
    return ZoneResolution(method=ZoneMethod.UNAVAILABLE)


def zone_for_heart_rate(heart_rate: float, resolution: ZoneResolution) -> int | None:
    """
    Return the zone number (1-5) for a heart rate.

    Custom bands: the lowest zone whose ``max`` is at or above the heart rate,
    so a value equal to a shared boundary lands in the LOWER zone. Readings
    above a bounded zone 5 still count as zone 5.

    Percent-of-max: compared against the unrounded 60/70/80/90% cutoffs, each
    cutoff belonging to the zone above it.

    Returns:
        Zone number, or None when the resolution is unavailable
    """
    if resolution.method is ZoneMethod.CUSTOM and resolution.bands is not None:
        for zone_num, band in enumerate(resolution.bands.bands, start=1):
            if band.max is None or heart_rate <= band.max:
                return zone_num
        return len(resolution.bands.bands)

    if resolution.method is ZoneMethod.PERCENT_OF_MAX and resolution.max_hr:
        percent_max = heart_rate / resolution.max_hr * 100
        zone_num = 1
        for cutoff in PERCENT_OF_MAX_CUTOFFS:
            if percent_max >= cutoff:
                zone_num += 1
        return zone_num

    return None


def accumulate_zone_time(
    samples: HeartRateSampleSeries,
    resolution: ZoneResolution,
) -> ZoneTimeBreakdown:
    """
    Attribute sample durations to heart rate zones.

    The interval between sample ``i`` and ``i + 1`` is credited entirely to
    the zone of ``heart_rate[i]``; the final sample adds no time.

    Args:
        samples: Aligned heart rate and elapsed time streams
        resolution: Boundary strategy from resolve_zone_boundaries()

    Returns:
        ZoneTimeBreakdown whose total never exceeds the sample duration
        (all zeros when the resolution is unavailable)

    Example:
        >>> series = HeartRateSampleSeries(heart_rate=(110, 150, 150), elapsed_time=(0, 30, 60))
        >>> accumulate_zone_time(series, resolve_zone_boundaries(None, 200)).seconds
        (30.0, 0.0, 30.0, 0.0, 0.0)
    """
    if not resolution.is_available:
        return ZoneTimeBreakdown()

    zone_seconds = [0.0] * 5
    hr_data = samples.heart_rate
    time_data = samples.elapsed_time
    for i in range(len(hr_data) - 1):
        duration = time_data[i + 1] - time_data[i]
        if duration <= 0:
            continue
        zone_num = zone_for_heart_rate(hr_data[i], resolution)
        if zone_num is None:
            continue
        zone_seconds[zone_num - 1] += duration

    logger.debug(
        "Accumulated %.0fs over %d samples using %s zones",
        sum(zone_seconds),
        len(hr_data),
        resolution.method.value,
    )
    return ZoneTimeBreakdown.from_seconds(zone_seconds)
