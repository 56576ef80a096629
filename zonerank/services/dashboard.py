"""One-call athlete dashboard combining every per-athlete view."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from zonerank.config import get_scoring_config
from zonerank.models.schemas import ActivityRecord, CompetitionWindow
from zonerank.services.athlete_profile import get_athlete_profile
from zonerank.services.leaderboard import activity_calendar
from zonerank.services.pace_analysis import get_pace_analysis
from zonerank.services.periods import filter_activities
from zonerank.services.readiness import get_training_insights
from zonerank.services.records import RecordsTracker
from zonerank.services.training_load import get_training_load_summary
from zonerank.services.zone_points import CustomZones, score_activities


logger = logging.getLogger(__name__)


class AthleteDashboard:
    """Scores an athlete's history once and builds all derived views from it."""

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize dashboard.

        Args:
            config: Optional scoring configuration (defaults to scoring.yaml)
        """
        self.config = config or get_scoring_config()
        self.records = RecordsTracker(self.config)

    def summarize(
        self,
        inputs: Iterable[ActivityRecord],
        zone_config: CustomZones = None,
        window: CompetitionWindow | None = None,
        as_of: date | None = None,
        race_date: date | None = None,
        include_hidden: bool = False,
    ) -> dict[str, Any]:
        """
        Build the athlete dashboard.

        Args:
            inputs: Activity records with any HR detail available
            zone_config: Athlete's custom zone bands (None uses max-HR zones)
            window: Optional competition window every view is restricted to
            as_of: Reference day (default: today)
            race_date: Optional target race for the readiness countdown
            include_hidden: Count activities flagged hidden

        Returns:
            Dict with has_data, activities, training_load, readiness,
            records, calendar, profile and pace_analysis
        """
        as_of = as_of or date.today()
        scored = score_activities(inputs, zone_config)
        visible = filter_activities(scored, window, include_hidden)

        if not visible:
            logger.info("No activities to summarize as of %s", as_of.isoformat())
            return {"has_data": False, "message": "No activities found"}

        # Views below get the already-filtered list
        return {
            "has_data": True,
            "as_of": as_of.isoformat(),
            "activities": [item.summary() for item in visible],
            "training_load": get_training_load_summary(visible, as_of=as_of, include_hidden=True),
            "readiness": get_training_insights(
                visible,
                as_of=as_of,
                race_date=race_date,
                include_hidden=True,
                sport_mapping=self.config["sport_disciplines"],
            ),
            "records": self.records.get_personal_records(visible, today=as_of, include_hidden=True),
            "calendar": activity_calendar(visible, include_hidden=True),
            "profile": get_athlete_profile(visible, include_hidden=True),
            "pace_analysis": get_pace_analysis(
                visible,
                include_hidden=True,
                sport_mapping=self.config["sport_disciplines"],
            ),
        }
