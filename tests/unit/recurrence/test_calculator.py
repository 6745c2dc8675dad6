"""Tests for the recurrence calculator.

Covers each frequency, month-end clamping, the roll overflow policy,
malformed patterns, end conditions and labels.
"""

from datetime import date

import pytest

from looops.dates import OVERFLOW_ROLL
from looops.recurrence.calculator import (
    RECURRENCE_PRESETS,
    RecurrenceFrequency,
    RecurrencePattern,
    next_due_date,
    recurrence_label,
    should_stop,
)


# =============================================================================
# next_due_date
# =============================================================================


class TestDaily:
    def test_adds_interval_days(self):
        assert next_due_date("2024-02-27", RecurrencePattern("daily", interval=3)) == date(2024, 3, 1)

    def test_custom_behaves_like_daily(self):
        assert next_due_date(date(2024, 1, 1), RecurrencePattern("custom", interval=10)) == date(2024, 1, 11)

    def test_none_starts_from_today(self):
        today = date(2024, 5, 1)
        assert next_due_date(None, RecurrencePattern("daily"), today=today) == date(2024, 5, 2)


class TestWeekly:
    """Days of week use 0=Sunday."""

    def test_no_days_adds_weeks(self):
        pattern = RecurrencePattern("weekly", interval=2)
        assert next_due_date("2024-07-08", pattern) == date(2024, 7, 22)

    def test_next_listed_day_same_week(self):
        pattern = RecurrencePattern("weekly", days_of_week=(1, 4))
        # Monday -> Thursday
        assert next_due_date("2024-07-08", pattern) == date(2024, 7, 11)

    def test_wraps_to_first_listed_day(self):
        pattern = RecurrencePattern("weekly", days_of_week=(1, 4))
        # Thursday -> following Monday
        assert next_due_date("2024-07-11", pattern) == date(2024, 7, 15)

    def test_wrap_honours_interval(self):
        pattern = RecurrencePattern("weekly", interval=2, days_of_week=(1, 4))
        assert next_due_date("2024-07-11", pattern) == date(2024, 7, 22)

    def test_unsorted_days(self):
        pattern = RecurrencePattern("weekly", days_of_week=[5, 1])
        # Wednesday -> Friday
        assert next_due_date("2024-07-10", pattern) == date(2024, 7, 12)

    def test_out_of_range_days_fall_back_to_interval(self):
        pattern = RecurrencePattern("weekly", days_of_week=(9, -1))
        assert next_due_date("2024-07-10", pattern) == date(2024, 7, 17)


class TestMonthly:
    def test_day_of_month_clamped(self):
        pattern = RecurrencePattern("monthly", day_of_month=31)
        assert next_due_date("2024-01-31", pattern) == date(2024, 2, 29)

    def test_day_of_month_non_leap(self):
        pattern = RecurrencePattern("monthly", day_of_month=31)
        assert next_due_date("2023-01-31", pattern) == date(2023, 2, 28)

    def test_day_of_month_restored_after_short_month(self):
        pattern = RecurrencePattern("monthly", day_of_month=31)
        assert next_due_date("2024-02-29", pattern) == date(2024, 3, 31)

    def test_day_of_month_with_interval(self):
        pattern = RecurrencePattern("monthly", interval=3, day_of_month=30)
        assert next_due_date("2024-11-30", pattern) == date(2025, 2, 28)

    def test_without_day_of_month_clamps(self):
        assert next_due_date("2024-01-31", RecurrencePattern("monthly")) == date(2024, 2, 29)

    def test_without_day_of_month_roll(self):
        pattern = RecurrencePattern("monthly")
        assert next_due_date("2024-01-31", pattern, overflow=OVERFLOW_ROLL) == date(2024, 3, 2)

    def test_year_boundary(self):
        assert next_due_date("2024-12-15", RecurrencePattern("monthly")) == date(2025, 1, 15)

    def test_invalid_day_of_month_ignored(self):
        pattern = RecurrencePattern("monthly", day_of_month=40)
        assert next_due_date("2024-03-10", pattern) == date(2024, 4, 10)


class TestYearly:
    def test_adds_years(self):
        assert next_due_date("2024-06-01", RecurrencePattern("yearly", interval=2)) == date(2026, 6, 1)

    def test_leap_day_clamps(self):
        assert next_due_date("2024-02-29", RecurrencePattern("yearly")) == date(2025, 2, 28)

    def test_leap_day_roll(self):
        pattern = RecurrencePattern("yearly")
        assert next_due_date("2024-02-29", pattern, overflow=OVERFLOW_ROLL) == date(2025, 3, 1)


class TestIdempotence:
    """The same (date, pattern) always gives the same next date."""

    @pytest.mark.parametrize("current,pattern,expected", [
        ("2024-07-11", RecurrencePattern("weekly", interval=2, days_of_week=(1, 4)), date(2024, 7, 22)),
        ("2024-01-31", RecurrencePattern("monthly", day_of_month=31), date(2024, 2, 29)),
        ("2024-02-29", RecurrencePattern("yearly"), date(2025, 2, 28)),
        ("2024-02-27", RecurrencePattern("daily", interval=3), date(2024, 3, 1)),
    ])
    def test_repeat_calls_agree(self, current, pattern, expected):
        first = next_due_date(current, pattern)
        second = next_due_date(current, pattern)
        assert first == second == expected

    def test_missing_date_with_fixed_today(self):
        pattern = RecurrencePattern("weekly", days_of_week=(1, 4))
        today = date(2024, 7, 11)

        first = next_due_date(None, pattern, today=today)
        second = next_due_date(None, pattern, today=today)

        assert first == second == date(2024, 7, 15)


class TestMalformedPatterns:
    @pytest.mark.parametrize("interval", [0, -2, None, "x"])
    def test_interval_below_one_counts_as_one(self, interval):
        pattern = RecurrencePattern("daily", interval=interval)
        assert next_due_date("2024-01-01", pattern) == date(2024, 1, 2)

    def test_unknown_frequency_rejected(self):
        with pytest.raises(ValueError):
            RecurrencePattern("fortnightly")


# =============================================================================
# End conditions
# =============================================================================


class TestShouldStop:
    def test_open_ended(self):
        assert should_stop(RecurrencePattern("daily"), date(2030, 1, 1)) is False

    def test_next_date_after_end(self):
        pattern = RecurrencePattern("weekly", end_date="2024-03-01")
        assert should_stop(pattern, date(2024, 3, 5), today=date(2024, 2, 27)) is True

    def test_next_date_on_end(self):
        pattern = RecurrencePattern("weekly", end_date="2024-03-01")
        assert should_stop(pattern, date(2024, 3, 1), today=date(2024, 2, 23)) is False

    def test_today_after_end(self):
        pattern = RecurrencePattern("daily", end_date=date(2024, 3, 1))
        assert should_stop(pattern, date(2024, 2, 1), today=date(2024, 3, 2)) is True

    def test_count_reached(self):
        pattern = RecurrencePattern("daily", count=3)
        assert should_stop(pattern, date(2024, 1, 4), occurrences=3) is True
        assert should_stop(pattern, date(2024, 1, 4), occurrences=2) is False

    def test_count_ignored_without_tally(self):
        assert should_stop(RecurrencePattern("daily", count=1), date(2024, 1, 4)) is False


# =============================================================================
# Labels and presets
# =============================================================================


class TestLabels:
    @pytest.mark.parametrize("pattern,expected", [
        (RecurrencePattern("daily"), "Daily"),
        (RecurrencePattern("daily", interval=3), "Every 3 days"),
        (RecurrencePattern("weekly", days_of_week=(1, 2, 3, 4, 5)), "Weekdays"),
        (RecurrencePattern("weekly", days_of_week=(1, 4)), "Weekly on Mon, Thu"),
        (RecurrencePattern("weekly", interval=2, days_of_week=(4, 1)), "Every 2 weeks on Mon, Thu"),
        (RecurrencePattern("weekly", interval=2), "Every 2 weeks"),
        (RecurrencePattern("monthly", interval=3), "Every 3 months"),
        (RecurrencePattern("yearly"), "Yearly"),
    ])
    def test_recurrence_label(self, pattern, expected):
        assert recurrence_label(pattern) == expected

    def test_presets_match_labels(self):
        for preset in RECURRENCE_PRESETS.values():
            assert recurrence_label(preset["pattern"]) == preset["label"]

    def test_preset_frequencies(self):
        assert RECURRENCE_PRESETS["quarterly"]["pattern"].frequency == RecurrenceFrequency.MONTHLY
        assert RECURRENCE_PRESETS["biweekly"]["pattern"].interval == 2


class TestPatternSerialization:
    def test_from_dict_camel_case(self):
        pattern = RecurrencePattern.from_dict(
            {"frequency": "monthly", "dayOfMonth": 15, "endDate": "2024-12-31"}
        )
        assert pattern.day_of_month == 15
        assert pattern.end_date == date(2024, 12, 31)
        assert pattern.to_dict() == {
            "frequency": "monthly",
            "interval": 1,
            "day_of_month": 15,
            "end_date": "2024-12-31",
        }
