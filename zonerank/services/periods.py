"""Calendar helpers and the competition-window / hidden-activity filter."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta

from zonerank.models.schemas import CompetitionWindow, ScoredActivity


logger = logging.getLogger(__name__)


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def filter_activities(
    scored: Iterable[ScoredActivity],
    window: CompetitionWindow | None = None,
    include_hidden: bool = False,
) -> list[ScoredActivity]:
    """
    Keep the activities that count for a view.

    Args:
        scored: Scored activities in any order
        window: Competition window to restrict to (None keeps every date)
        include_hidden: Keep activities flagged hidden (duplicates/merged)

    Returns:
        Matching activities in input order
    """
    kept = []
    skipped_hidden = 0
    for item in scored:
        if item.activity.hidden and not include_hidden:
            skipped_hidden += 1
            continue
        if window is not None and not window.contains(item.activity):
            continue
        kept.append(item)

    if skipped_hidden:
        logger.debug("Skipped %d hidden activities", skipped_hidden)
    return kept
