"""Tests for the combined athlete dashboard."""
from datetime import date, datetime, timedelta, timezone

import pytest

from zonerank.models.schemas import CompetitionWindow, ZoneTimeBreakdown
from zonerank.services.dashboard import AthleteDashboard


AS_OF = date(2025, 2, 2)
FIRST_START = datetime(2025, 1, 6, 7, 0, tzinfo=timezone.utc)


@pytest.fixture
def dashboard():
    return AthleteDashboard()


@pytest.fixture
def history(make_record, make_samples):
    """Four weeks of mixed training."""
    records = []
    for day in range(0, 28, 2):
        start = FIRST_START + timedelta(days=day)
        if day % 6 == 0:
            records.append(make_record(sport_type="Swim", moving_time_s=1800, start_date=start))
        elif day % 4 == 0:
            zones = ZoneTimeBreakdown.from_seconds([600, 1800, 600, 300, 0])
            records.append(make_record(sport_type="Ride", moving_time_s=3300, start_date=start, zones=zones))
        else:
            samples = make_samples([130, 150, 170, 150], step=600)
            records.append(make_record(sport_type="Run", max_heartrate=185, samples=samples, start_date=start))
    return records


class TestAthleteDashboard:
    """Test the one-call athlete summary."""

    def test_no_inputs(self, dashboard):
        assert dashboard.summarize([], as_of=AS_OF) == {"has_data": False, "message": "No activities found"}

    def test_all_views_present(self, dashboard, history):
        result = dashboard.summarize(history, as_of=AS_OF, race_date=AS_OF + timedelta(days=60))

        assert result["has_data"] is True
        assert len(result["activities"]) == len(history)
        for view in ("training_load", "readiness", "records", "calendar", "profile", "pace_analysis"):
            assert view in result
        assert result["training_load"]["has_data"] is True
        assert result["readiness"]["race_readiness"]["days_to_race"] == 60
        assert result["records"]["total_activities"] == len(history)
        assert len(result["calendar"]["calendar"]) == len(history)
        assert result["profile"]["has_data"] is True
        assert set(result["pace_analysis"]["sports"]) == {"Ride", "Run", "Swim"}
        assert result["pace_analysis"]["sports"]["Ride"]["pace_unit"] == "mph"

    def test_strategies_are_tagged(self, dashboard, history):
        result = dashboard.summarize(history, as_of=AS_OF)
        strategies = {item["strategy"] for item in result["activities"]}

        assert strategies == {"swim", "heart_rate_zones"}

    def test_window_restricts_every_view(self, dashboard, history):
        window = CompetitionWindow(start_date=date(2025, 1, 20), end_date=date(2025, 2, 2))
        result = dashboard.summarize(history, window=window, as_of=AS_OF)

        in_window = [r for r in history if window.contains(r.activity)]
        assert len(result["activities"]) == len(in_window)
        assert result["records"]["total_activities"] == len(in_window)

    def test_idempotent(self, dashboard, history):
        first = dashboard.summarize(history, as_of=AS_OF)
        second = dashboard.summarize(history, as_of=AS_OF)

        assert first == second
