"""Tests for daily load aggregation, ACWR and load trends."""
from datetime import date, timedelta

import pytest

from zonerank.models.schemas import DailyLoad
from zonerank.services.training_load import (
    CHART_WEEKS,
    bucket_daily_loads,
    calculate_acwr,
    classify_acwr,
    classify_load_trend,
    get_training_load_summary,
    rolling_average_load,
    weekly_load_series,
)


AS_OF = date(2025, 2, 2)  # a Sunday


def daily_series(load: float, days: int, end: date = AS_OF) -> list[DailyLoad]:
    return [DailyLoad(date=end - timedelta(days=offset), load=load, activities=1) for offset in range(days)][::-1]


class TestDailyLoads:
    """Test bucketing activities into calendar days."""

    def test_same_day_activities_are_summed(self, make_scored):
        """Two workouts on one day become one daily entry."""
        scored = [make_scored(day=0, points=40), make_scored(day=0, points=20), make_scored(day=2, points=10)]
        daily = bucket_daily_loads(scored)

        assert [d.load for d in daily] == [60, 10]
        assert [d.activities for d in daily] == [2, 1]
        assert daily[0].date < daily[1].date

    def test_rolling_average_divides_by_window_length(self):
        """Rest days count as zero load."""
        daily = [DailyLoad(date=AS_OF, load=70, activities=1)]

        assert rolling_average_load(daily, AS_OF, 7) == pytest.approx(10)


class TestACWR:
    """Test acute:chronic workload ratio."""

    def test_no_chronic_load_is_neutral(self):
        """With no history the ratio is 1 instead of undefined."""
        result = calculate_acwr([], AS_OF)

        assert result["acwr"] == 1.0
        assert result["status"] == "optimal"
        assert result["acute_load"] == 0
        assert result["chronic_load"] == 0

    def test_steady_load_ratio_is_one(self):
        """Identical daily load over 28 days gives acute == chronic."""
        result = calculate_acwr(daily_series(100, 28), AS_OF)

        assert result["acute_load"] == pytest.approx(100)
        assert result["chronic_load"] == pytest.approx(100)
        assert result["acwr"] == pytest.approx(1.0)
        assert result["status"] == "optimal"

    def test_spike_after_rest_is_high_risk(self):
        """A first training week after a rest month quadruples the ratio."""
        result = calculate_acwr(daily_series(70, 7), AS_OF)

        assert result["acute_load"] == pytest.approx(70)
        assert result["chronic_load"] == pytest.approx(17.5)
        assert result["acwr"] == pytest.approx(4.0)
        assert result["status"] == "high_risk"
        assert "rest days" in result["recovery_recommendation"]

    def test_loads_after_as_of_are_ignored(self):
        """Future days do not leak into the windows."""
        future = [DailyLoad(date=AS_OF + timedelta(days=1), load=500, activities=1)]
        result = calculate_acwr(daily_series(100, 28) + future, AS_OF)

        assert result["acwr"] == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "acwr, status",
        [
            (0.79, "undertraining"),
            (0.8, "optimal"),
            (1.8, "optimal"),
            (1.81, "overreaching"),
            (2.2, "overreaching"),
            (2.21, "high_risk"),
        ],
    )
    def test_status_boundaries(self, acwr, status):
        """Boundary values belong to the lower-risk status."""
        assert classify_acwr(acwr) == status


class TestLoadTrend:
    """Test recent-vs-previous four week comparison."""

    def test_increasing(self):
        trend, change = classify_load_trend([100] * 4 + [150] * 4)
        assert trend == "increasing"
        assert change == pytest.approx(50)

    def test_decreasing(self):
        trend, change = classify_load_trend([100] * 4 + [50] * 4)
        assert trend == "decreasing"
        assert change == pytest.approx(-50)

    def test_within_ten_percent_is_stable(self):
        trend, change = classify_load_trend([100] * 4 + [108] * 4)
        assert trend == "stable"
        assert change == pytest.approx(8)

    def test_no_previous_load(self):
        """Starting from nothing counts as increasing, without a percentage."""
        assert classify_load_trend([0] * 4 + [10] * 4) == ("increasing", None)
        assert classify_load_trend([0] * 8) == ("stable", None)

    def test_short_history_is_stable(self):
        assert classify_load_trend([50, 60]) == ("stable", None)


class TestWeeklySeries:
    """Test dense Monday-anchored weekly totals."""

    def test_empty_weeks_are_included(self):
        """Every week is present even without training."""
        daily = [DailyLoad(date=AS_OF, load=30, activities=1)]
        series = weekly_load_series(daily, AS_OF, 4)

        assert len(series) == 4
        assert [week["load"] for week in series] == [0, 0, 0, 30]
        assert series[-1]["week_start"] == "2025-01-27"
        assert series[0]["week_start"] == "2025-01-06"


class TestTrainingLoadSummary:
    """Test the assembled training load view."""

    def test_no_activities_returns_sentinel(self):
        assert get_training_load_summary([], as_of=AS_OF) == {
            "has_data": False,
            "message": "No activities found",
        }

    def test_hidden_only_history_has_no_data(self, make_scored):
        """Hidden activities are excluded unless asked for."""
        scored = [make_scored(day=1, hidden=True)]

        assert get_training_load_summary(scored, as_of=AS_OF)["has_data"] is False
        assert get_training_load_summary(scored, as_of=AS_OF, include_hidden=True)["has_data"] is True

    def test_summary_shape(self, make_scored):
        """Chart, status and recent activity lists are populated."""
        scored = [make_scored(day=day, points=50, training_load=40) for day in range(0, 27, 2)]
        result = get_training_load_summary(scored, as_of=AS_OF)

        assert result["has_data"] is True
        assert result["as_of"] == "2025-02-02"
        assert result["summary"]["total_activities"] == 14
        assert result["summary"]["total_training_load"] == pytest.approx(560)
        assert len(result["chart_data"]) == CHART_WEEKS
        assert len(result["recent_activities"]) == 10
        assert result["recent_activities"][0]["start_date"] > result["recent_activities"][-1]["start_date"]
        assert result["current_status"]["status"] in {"undertraining", "optimal", "overreaching", "high_risk"}
        assert result["highest_load_week"]["load"] == pytest.approx(160)

    def test_idempotent(self, make_scored):
        """Same inputs produce the same output."""
        scored = [make_scored(day=day) for day in range(10)]

        assert get_training_load_summary(scored, as_of=AS_OF) == get_training_load_summary(scored, as_of=AS_OF)
