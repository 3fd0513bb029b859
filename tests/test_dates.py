"""Tests for the calendar date value objects."""

import pytest
from datetime import date, datetime, time, timezone

import pytz

from flexcalendar.dates import (
    DateParseError,
    DateWindow,
    Deadline,
    EventTime,
    Timestamp,
    parse_or_now,
)


class TestDeadline:
    """Deadline is a pure calendar day stored at UTC midnight."""

    def test_components_round_trip(self):
        d = Deadline.from_components(2024, 2, 29)
        assert d.get_components() == {"year": 2024, "month": 2, "day": 29}
        assert d.to_datetime() == datetime(2024, 2, 29, tzinfo=timezone.utc)

    def test_invalid_components_raise(self):
        with pytest.raises(DateParseError):
            Deadline.from_components(2023, 2, 29)

    def test_must_be_midnight_utc(self):
        with pytest.raises(ValueError):
            Deadline(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))
        with pytest.raises(ValueError):
            Deadline(datetime(2024, 1, 1))

    @pytest.mark.parametrize(
        "zone",
        ["UTC", "America/Sao_Paulo", "America/Los_Angeles", "Asia/Tokyo", "Pacific/Kiritimati"],
    )
    def test_local_day_survives_any_timezone(self, zone):
        """Late evening in any zone is still that zone's calendar day."""
        local = pytz.timezone(zone).localize(datetime(2024, 3, 10, 23, 30))
        d = Deadline.from_local_datetime(local)
        assert d.get_components() == {"year": 2024, "month": 3, "day": 10}

    def test_viewer_offset_is_cancelled(self):
        # 2024-11-15 00:00 UTC is still the 14th at UTC-3.
        instant = datetime(2024, 11, 15, 0, 0, tzinfo=timezone.utc)
        d = Deadline.from_local_datetime(instant, time_zone="America/Sao_Paulo")
        assert d.get_components() == {"year": 2024, "month": 11, "day": 14}

    def test_add_days_crosses_month_and_year(self):
        assert Deadline.from_components(2024, 1, 31).add_days(1) == Deadline.from_components(2024, 2, 1)
        assert Deadline.from_components(2024, 12, 31).add_days(1) == Deadline.from_components(2025, 1, 1)
        assert Deadline.from_components(2024, 3, 1).add_days(-1) == Deadline.from_components(2024, 2, 29)

    def test_days_until_and_predicates(self):
        today = Deadline.from_components(2024, 1, 8)
        future = Deadline.from_components(2024, 1, 10)
        past = Deadline.from_components(2024, 1, 5)

        assert future.days_until(today) == 2
        assert past.days_until(today) == -3
        assert future.is_future(today)
        assert past.is_past(today)
        assert today.is_today(today)
        assert past.is_before(future)
        assert future.is_after(past)

    def test_parse_inputs(self):
        expected = Deadline.from_components(2024, 1, 15)
        assert Deadline.from_iso("2024-01-15") == expected
        assert Deadline.from_iso("2024-01-15T10:30:00Z") == expected
        assert Deadline.parse(date(2024, 1, 15)) == expected
        assert Deadline.parse(expected) is expected
        assert Deadline.from_epoch_millis(0) == Deadline.from_components(1970, 1, 1)

    def test_malformed_input_raises(self):
        with pytest.raises(DateParseError):
            Deadline.from_iso("not a date")
        with pytest.raises(DateParseError):
            Deadline.parse(True)
        with pytest.raises(DateParseError):
            Deadline.parse(object())

    def test_formatting(self):
        d = Deadline.from_components(2024, 1, 15)
        assert d.isoformat() == "2024-01-15T00:00:00Z"
        assert str(d) == "2024-01-15"

    def test_today_uses_time_zone(self):
        now = datetime(2024, 6, 1, 2, 0, tzinfo=timezone.utc)
        assert Deadline.today(now) == Deadline.from_components(2024, 6, 1)
        assert Deadline.today(now, "America/New_York") == Deadline.from_components(2024, 5, 31)


class TestEventTime:
    """EventTime is a precise UTC instant with linear arithmetic."""

    def test_from_local_converts_to_utc(self):
        et = EventTime.from_local(date(2024, 7, 1), time(9, 0), "America/New_York")
        assert et.to_datetime() == datetime(2024, 7, 1, 13, 0, tzinfo=timezone.utc)

    def test_from_local_accepts_deadline(self):
        day = Deadline.from_components(2024, 7, 1)
        assert EventTime.from_local(day, time(9, 0)) == EventTime.from_components(2024, 7, 1, 9, 0)

    def test_arithmetic_is_linear(self):
        et = EventTime.from_components(2024, 3, 9, 12, 0)
        assert et.add_hours(24) == et.add_days(1)
        assert et.add_minutes(90).minutes_until(et) == -90
        assert et.to_deadline() == Deadline.from_components(2024, 3, 9)

    def test_isoformat_has_millis_and_z(self):
        et = EventTime.from_components(2024, 1, 15, 10, 30)
        assert et.isoformat() == "2024-01-15T10:30:00.000Z"

    def test_invalid_components_raise(self):
        with pytest.raises(DateParseError):
            EventTime.from_components(2024, 13, 1, 0, 0)

    def test_distinct_from_timestamp(self):
        instant = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert EventTime(instant) != Timestamp(instant)
        assert Timestamp.parse(EventTime(instant)).to_datetime() == instant


class TestTimestamp:
    def test_format(self):
        ts = Timestamp.from_iso("2024-01-15T10:30:00Z")
        assert ts.format() == "2024-01-15 10:30"
        assert ts.epoch_millis() == int(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc).timestamp() * 1000)


class TestParseOrNow:
    def test_falls_back_on_garbage(self):
        now = datetime(2024, 5, 5, 8, 0, tzinfo=timezone.utc)
        assert parse_or_now(Deadline, "garbage", now=now) == Deadline.from_components(2024, 5, 5)

    def test_passes_valid_input_through(self):
        now = datetime(2024, 5, 5, 8, 0, tzinfo=timezone.utc)
        assert parse_or_now(Deadline, "2024-01-01", now=now) == Deadline.from_components(2024, 1, 1)


class TestDateWindow:
    def test_horizon(self):
        start = Deadline.from_components(2024, 1, 1)
        window = DateWindow.from_horizon(start, 14)
        assert len(window) == 14
        assert window.contains(start)
        assert not window.contains(window.end)
        assert list(window.days())[-1] == Deadline.from_components(2024, 1, 14)

    def test_end_before_start_raises(self):
        with pytest.raises(ValueError):
            DateWindow(Deadline.from_components(2024, 1, 2), Deadline.from_components(2024, 1, 1))
