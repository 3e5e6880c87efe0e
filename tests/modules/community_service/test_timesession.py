"""
Unit tests for the time session calculator.
"""

from datetime import date, datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from iskolar.core.exceptions import InvalidIntervalError, ValidationError
from iskolar.modules.community_service.timesession import compute_hours, round_hours

MANILA = ZoneInfo("Asia/Manila")
SERVICE_DATE = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 14, 30, 45, tzinfo=MANILA)


class TestRoundHours:
    def test_rounds_half_up_to_two_places(self):
        assert round_hours(1) == Decimal("0.02")
        assert round_hours(10) == Decimal("0.17")
        assert round_hours(90) == Decimal("1.50")


class TestComputeHours:
    """Tests for compute_hours."""

    def test_explicit_time_out(self):
        result = compute_hours(SERVICE_DATE, time(8, 0), time(12, 20), NOW)

        assert result.hours == Decimal("4.33")
        assert result.time_out == time(12, 20)

    def test_explicit_time_out_on_past_date(self):
        result = compute_hours(date(2026, 3, 1), time(9, 0), time(17, 0), NOW)

        assert result.hours == Decimal("8.00")

    def test_time_out_equal_to_time_in(self):
        with pytest.raises(InvalidIntervalError):
            compute_hours(SERVICE_DATE, time(9, 0), time(9, 0), NOW)

    def test_time_out_before_time_in(self):
        with pytest.raises(InvalidIntervalError) as exc_info:
            compute_hours(SERVICE_DATE, time(9, 0), time(8, 0), NOW)

        assert exc_info.value.status_code == 400

    def test_live_close_uses_now(self):
        result = compute_hours(SERVICE_DATE, time(8, 0), None, NOW)

        assert result.hours == Decimal("6.50")
        assert result.time_out == time(14, 30)

    def test_live_close_requires_today(self):
        with pytest.raises(ValidationError):
            compute_hours(date(2026, 3, 9), time(8, 0), None, NOW)

    def test_live_close_before_time_in(self):
        with pytest.raises(InvalidIntervalError):
            compute_hours(SERVICE_DATE, time(15, 0), None, NOW)

    def test_live_close_within_the_start_minute(self):
        with pytest.raises(InvalidIntervalError):
            compute_hours(SERVICE_DATE, time(14, 30), None, NOW)
