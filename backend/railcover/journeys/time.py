from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

import pytz

from railcover.journeys.types import Journey


def get_timezone(name: str) -> tzinfo:
    return pytz.timezone(name)


def localize(tz: tzinfo, naive: datetime) -> datetime:
    """Attach a pytz zone to a wall-clock datetime, resolving the offset from its rules for that date."""
    return tz.localize(naive)


def combine_date_time(date_str: str, hhmm: str, tz: tzinfo) -> Optional[datetime]:
    """
    Combine "YYYY-MM-DD" and "HH:MM" into an aware datetime.
    Returns None for blank or unparsable values.
    """
    date_str = (date_str or "").strip()
    hhmm = (hhmm or "").strip()
    if not date_str or not hhmm:
        return None

    try:
        d = date.fromisoformat(date_str)
        hh, mm = hhmm.split(":")
        t = time(int(hh), int(mm))
    except ValueError:
        return None

    return localize(tz, datetime.combine(d, t))


def departure_instant(journey: Journey, tz: tzinfo) -> Optional[datetime]:
    leg = journey.first_leg
    if leg is None:
        return None
    return combine_date_time(leg.start_date, leg.start_time, tz)


def arrival_instant(journey: Journey, tz: tzinfo) -> Optional[datetime]:
    leg = journey.last_leg
    if leg is None:
        return None
    return combine_date_time(leg.arrival_date, leg.arrival_time, tz)


def next_calendar_day(instant: datetime) -> datetime:
    """Same wall-clock time one calendar day later, re-resolving the UTC offset."""
    naive = instant.replace(tzinfo=None) + timedelta(days=1)
    return localize(instant.tzinfo, naive)


def to_iso_with_offset(instant: datetime) -> str:
    # e.g. 2026-03-10T15:50:00+01:00
    return instant.isoformat(timespec="seconds")
