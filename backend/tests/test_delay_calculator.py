from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import BERLIN
from railcover.journeys.time import combine_date_time, next_calendar_day, to_iso_with_offset
from railcover.settlement.delay import calculate_delay_minutes, correct_midnight_rollover


def _at(y: int, mo: int, d: int, h: int, mi: int) -> datetime:
    return BERLIN.localize(datetime(y, mo, d, h, mi))


def test_midnight_rollover_is_corrected() -> None:
    scheduled = _at(2026, 5, 10, 23, 50)
    observed = _at(2026, 5, 10, 0, 10)  # feed kept the scheduled date

    assert calculate_delay_minutes(scheduled, observed) == 20


def test_correctly_dated_late_arrival() -> None:
    assert calculate_delay_minutes(_at(2026, 5, 10, 23, 50), _at(2026, 5, 11, 0, 55)) == 65


def test_early_arrival_is_clamped_to_zero() -> None:
    assert calculate_delay_minutes(_at(2026, 5, 10, 14, 0), _at(2026, 5, 10, 13, 55)) == 0


def test_exactly_four_hours_early_is_not_a_date_bug() -> None:
    scheduled = _at(2026, 5, 10, 12, 0)
    observed = _at(2026, 5, 10, 8, 0)

    assert correct_midnight_rollover(scheduled, observed) == observed
    assert calculate_delay_minutes(scheduled, observed) == 0


def test_more_than_four_hours_early_moves_to_next_day() -> None:
    scheduled = _at(2026, 5, 10, 12, 0)
    observed = _at(2026, 5, 10, 7, 59)

    assert correct_midnight_rollover(scheduled, observed) == _at(2026, 5, 11, 7, 59)
    assert calculate_delay_minutes(scheduled, observed) == 19 * 60 + 59


def test_rollover_keeps_wall_clock_across_dst_change() -> None:
    # clocks jump forward in the night of 28/29 March 2026
    scheduled = _at(2026, 3, 28, 23, 50)
    observed = _at(2026, 3, 28, 0, 10)

    corrected = correct_midnight_rollover(scheduled, observed)

    assert corrected.strftime("%Y-%m-%d %H:%M") == "2026-03-29 00:10"
    assert calculate_delay_minutes(scheduled, observed) == 20


@pytest.mark.parametrize("minutes_late", [0, 1, 59, 60, 61, 180])
def test_on_time_and_late_arrivals(minutes_late: int) -> None:
    scheduled = _at(2026, 5, 10, 9, 0)
    observed = BERLIN.normalize(scheduled + timedelta(minutes=minutes_late))
    assert calculate_delay_minutes(scheduled, observed) == minutes_late


def test_next_calendar_day_keeps_wall_clock_across_dst() -> None:
    before = _at(2026, 3, 28, 0, 10)
    after = next_calendar_day(before)

    assert after.strftime("%Y-%m-%d %H:%M") == "2026-03-29 00:10"
    assert to_iso_with_offset(before).endswith("+01:00")
    assert to_iso_with_offset(after).endswith("+01:00")
    assert to_iso_with_offset(next_calendar_day(after)).endswith("+02:00")


@pytest.mark.parametrize(
    ("day", "hhmm"),
    [("", "10:15"), ("2026-05-10", ""), ("10.05.2026", "10:15"), ("2026-05-10", "25:00")],
)
def test_combine_date_time_rejects_bad_values(day: str, hhmm: str) -> None:
    assert combine_date_time(day, hhmm, BERLIN) is None


def test_combine_date_time_localizes() -> None:
    instant = combine_date_time("2026-01-15", "08:15", BERLIN)
    assert to_iso_with_offset(instant) == "2026-01-15T08:15:00+01:00"
