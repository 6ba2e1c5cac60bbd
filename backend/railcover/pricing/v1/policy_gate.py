from __future__ import annotations

from datetime import datetime, tzinfo

from railcover.core.errors import MissingDataError
from railcover.journeys.time import departure_instant
from railcover.journeys.types import Journey

SECONDS_PER_DAY = 24 * 60 * 60

# journey needs to depart more than 1 day and less than 10 days from now
TIME_MIN_DAYS = 1.0
TIME_MAX_DAYS = 10.0

RAIL_REPLACEMENT_MARKER = "bus"


def days_until_departure(journey: Journey, *, now: datetime, tz: tzinfo) -> float:
    departure = departure_instant(journey, tz)
    if departure is None:
        raise MissingDataError("journey has no usable departure date/time")
    return (departure - now).total_seconds() / SECONDS_PER_DAY


def is_out_of_timeframe(
    journey: Journey,
    *,
    now: datetime,
    tz: tzinfo,
    min_days: float = TIME_MIN_DAYS,
    max_days: float = TIME_MAX_DAYS,
) -> bool:
    """Both window edges are exclusive: exactly min_days or max_days away is out."""
    diff = days_until_departure(journey, now=now, tz=tz)
    return diff <= min_days or diff >= max_days


def includes_rail_replacement(journey: Journey) -> bool:
    # replacement buses are not covered, their delays are not modelled
    return any(RAIL_REPLACEMENT_MARKER in leg.train.lower() for leg in journey)
