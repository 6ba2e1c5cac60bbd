"""
Post-hoc delay of a completed journey, used to trigger payouts.

The tracking feed reports arrival times after midnight with the calendar date
of the scheduled arrival, so an arrival at 00:10 for a train due at 23:50
comes back almost a full day early. We assume no train arrives more than
four hours ahead of schedule: anything earlier than that is read as a
mis-rolled date and moved to the next day before diffing.
"""

import logging
from datetime import datetime, timedelta

from railcover.journeys.time import next_calendar_day

logger = logging.getLogger(__name__)

EARLY_ARRIVAL_GUARD = timedelta(hours=4)


def correct_midnight_rollover(scheduled: datetime, observed: datetime) -> datetime:
    if observed < scheduled - EARLY_ARRIVAL_GUARD:
        corrected = next_calendar_day(observed)
        logger.info(
            "Detected 0:00 transition with date error, moving observed arrival %s -> %s",
            observed.isoformat(),
            corrected.isoformat(),
        )
        return corrected
    return observed


def calculate_delay_minutes(scheduled: datetime, observed: datetime) -> int:
    """Whole minutes late, never negative (early arrivals report 0)."""
    observed = correct_midnight_rollover(scheduled, observed)
    delay_min = int(round((observed - scheduled).total_seconds() / 60.0))
    return max(0, delay_min)
