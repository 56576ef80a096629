"""Tests for HR zone boundaries and time-in-zone accumulation."""
import logging

import pytest
from pydantic import ValidationError

from zonerank.models.schemas import HeartRateSampleSeries, ZoneBand, ZoneBoundarySet, ZoneMethod
from zonerank.services.hr_zones import (
    accumulate_zone_time,
    parse_custom_zones,
    percent_of_max_bands,
    resolve_zone_boundaries,
    zone_for_heart_rate,
)


STRAVA_ZONES = [
    {"min": 0, "max": 120},
    {"min": 120, "max": 140},
    {"min": 140, "max": 160},
    {"min": 160, "max": 180},
    {"min": 180, "max": -1},
]


class TestPercentOfMaxBands:
    """Test display bands derived from max HR."""

    def test_bands_for_max_190(self):
        """Cutoffs are rounded 60/70/80/90% of max HR."""
        bands = percent_of_max_bands(190).to_list()

        assert bands[0] == {"min": 0, "max": 114}
        assert bands[1] == {"min": 114, "max": 133}
        assert bands[2] == {"min": 133, "max": 152}
        assert bands[3] == {"min": 152, "max": 171}
        assert bands[4] == {"min": 171, "max": None}

    def test_percent_of_max_cutoff_belongs_to_higher_zone(self):
        """Exactly 60% of max is Zone 2, just below is Zone 1."""
        resolution = resolve_zone_boundaries(None, 200)

        assert zone_for_heart_rate(119, resolution) == 1
        assert zone_for_heart_rate(120, resolution) == 2
        assert zone_for_heart_rate(160, resolution) == 4
        assert zone_for_heart_rate(180, resolution) == 5
        assert zone_for_heart_rate(230, resolution) == 5


class TestCustomZones:
    """Test provider-defined zone bands."""

    def test_negative_max_means_unbounded(self):
        """Strava's -1 top-zone max becomes an open upper bound."""
        bands = parse_custom_zones(STRAVA_ZONES)

        assert bands is not None
        assert bands.bands[4].max is None

    def test_shared_boundary_goes_to_lower_zone(self):
        """A reading equal to a shared boundary lands in the lower zone."""
        resolution = resolve_zone_boundaries(STRAVA_ZONES, 190)
        assert resolution.method is ZoneMethod.CUSTOM

        assert zone_for_heart_rate(120, resolution) == 1
        assert zone_for_heart_rate(121, resolution) == 2
        assert zone_for_heart_rate(160, resolution) == 3
        assert zone_for_heart_rate(181, resolution) == 5

    def test_reading_above_bounded_zone_5_counts_as_zone_5(self):
        """A bounded top zone still catches readings above it."""
        zones = [dict(zone) for zone in STRAVA_ZONES]
        zones[4]["max"] = 200
        resolution = resolve_zone_boundaries(zones, None)

        assert zone_for_heart_rate(215, resolution) == 5

    def test_custom_zones_win_over_max_hr(self):
        """Valid custom bands are used even when max HR is known."""
        resolution = resolve_zone_boundaries(STRAVA_ZONES, 190)

        assert resolution.method is ZoneMethod.CUSTOM
        # 118 bpm is 62% of max (Zone 2) but Zone 1 by the custom bands
        assert zone_for_heart_rate(118, resolution) == 1

    def test_prevalidated_boundary_set_passes_through(self):
        """A ZoneBoundarySet is returned unchanged."""
        bands = percent_of_max_bands(180)
        assert parse_custom_zones(bands) is bands


class TestMalformedZones:
    """Malformed zone sets fall back instead of raising."""

    def test_wrong_band_count_falls_back_to_max_hr(self, caplog):
        """Four bands are rejected with a warning."""
        caplog.set_level(logging.WARNING)

        resolution = resolve_zone_boundaries(STRAVA_ZONES[:4], 190)

        assert resolution.method is ZoneMethod.PERCENT_OF_MAX
        assert "Invalid custom HR zones" in caplog.text
        assert "Falling back to max HR zones" in caplog.text

    def test_decreasing_bands_fall_back(self, caplog):
        """Bands that go backwards are rejected."""
        caplog.set_level(logging.WARNING)
        zones = [dict(zone) for zone in STRAVA_ZONES]
        zones[2] = {"min": 100, "max": 110}

        assert parse_custom_zones(zones) is None
        assert "Invalid custom HR zones" in caplog.text

    def test_unbounded_middle_zone_is_rejected(self):
        """Only zone 5 may be open-ended."""
        bands = [ZoneBand(min=0, max=120), ZoneBand(min=120, max=None)] + [
            ZoneBand(min=140, max=160),
            ZoneBand(min=160, max=180),
            ZoneBand(min=180, max=None),
        ]
        with pytest.raises(ValidationError, match="Only zone 5 may be unbounded"):
            ZoneBoundarySet(bands=tuple(bands))

    def test_no_zones_and_no_max_hr_is_unavailable(self):
        """Without any source zone computation is unavailable."""
        resolution = resolve_zone_boundaries(None, None)

        assert resolution.method is ZoneMethod.UNAVAILABLE
        assert not resolution.is_available
        assert zone_for_heart_rate(150, resolution) is None

    def test_non_positive_max_hr_warns(self, caplog):
        """Zero max HR is reported and treated as missing."""
        caplog.set_level(logging.WARNING)

        resolution = resolve_zone_boundaries(None, 0)

        assert resolution.method is ZoneMethod.UNAVAILABLE
        assert "Invalid max HR value" in caplog.text


class TestAccumulateZoneTime:
    """Test time-in-zone accumulation from sample streams."""

    def test_interval_credited_to_left_sample(self, make_samples):
        """Each interval goes to the zone of the sample that starts it."""
        samples = make_samples([110, 150, 150], step=30)
        zones = accumulate_zone_time(samples, resolve_zone_boundaries(None, 200))

        assert zones.seconds == (30, 0, 30, 0, 0)

    def test_total_never_exceeds_duration(self, make_samples):
        """Zone total equals the stream duration for a valid resolution."""
        samples = make_samples([100, 125, 145, 165, 185, 190, 120], step=5)
        zones = accumulate_zone_time(samples, resolve_zone_boundaries(STRAVA_ZONES, None))

        assert zones.total_seconds == pytest.approx(samples.total_duration)
        assert zones.seconds == (5, 5, 5, 5, 10)

    def test_constant_heart_rate_fills_one_zone(self, make_samples):
        """A steady 75% of max HR stream lands entirely in Zone 3."""
        samples = make_samples([150] * 11, step=6)
        zones = accumulate_zone_time(samples, resolve_zone_boundaries(None, 200))

        assert zones.seconds == (0, 0, 60, 0, 0)
        assert zones.total_seconds == samples.total_duration

    def test_unavailable_resolution_gives_zeros(self, make_samples):
        """No boundaries means no zone time."""
        samples = make_samples([150, 150, 150], step=10)
        zones = accumulate_zone_time(samples, resolve_zone_boundaries(None, None))

        assert zones.total_seconds == 0

    def test_non_increasing_time_is_rejected_by_series(self):
        """The sample series refuses time that goes backwards."""
        with pytest.raises(ValidationError, match="strictly increasing"):
            HeartRateSampleSeries(heart_rate=(120, 130, 140), elapsed_time=(0, 10, 10))
