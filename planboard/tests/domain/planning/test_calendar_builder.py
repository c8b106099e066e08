"""
Unit tests for calendar days and the slot table builder.

Covers working-hour enumeration per density, holiday padding, header labels
and extension of calendar ranges.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from planboard.domain.planning.services.slot_mapper import SlotIndexMapper
from planboard.domain.planning.value_objects.calendar import (
    CalendarDay,
    build_calendar_days,
    default_week_start,
    extend_calendar_days_from,
    extend_calendar_days_to,
)
from planboard.domain.planning.value_objects.enums import Density
from planboard.domain.planning.value_objects.slot_table import (
    DAY_HEADER_LABEL,
    build_calendar_hours,
    build_calendar_slots,
    build_slot_header_labels,
)


class TestCalendarDay:
    """Calendar day value object."""

    def test_working_hours(self):
        """Test a working day spans its window and a holiday spans nothing."""
        workday = CalendarDay(date=date(2024, 6, 3))
        holiday = CalendarDay(date=date(2024, 6, 8), is_holiday=True)

        assert workday.working_hours == 10
        assert holiday.working_hours == 0

    def test_inverted_window_rejected(self):
        """Test the working window cannot end before it starts."""
        with pytest.raises(ValidationError):
            CalendarDay(date=date(2024, 6, 3), work_start_hour=17, work_end_hour=9)

    def test_hour_out_of_range_rejected(self):
        """Test working hours must lie within a day."""
        with pytest.raises(ValidationError):
            CalendarDay(date=date(2024, 6, 3), work_start_hour=8, work_end_hour=25)

    def test_month_day_label_is_unpadded(self):
        """Test labels carry no zero padding."""
        assert CalendarDay(date=date(2024, 6, 3)).month_day_label == "6/3"

    def test_camel_case_payload(self):
        """Test calendar days dump with camelCase keys."""
        data = CalendarDay(date=date(2024, 6, 3)).to_json_dict()

        assert data == {
            "date": "2024-06-03",
            "isHoliday": False,
            "workStartHour": 8,
            "workEndHour": 18,
        }


class TestBuildCalendarDays:
    """Generated calendar ranges."""

    def test_weekends_are_holidays(self):
        """Test Saturday and Sunday are generated as holidays."""
        days = build_calendar_days(date(2025, 6, 2), 7)

        assert [d.is_holiday for d in days] == [False] * 5 + [True] * 2

    def test_custom_window(self):
        """Test an explicit working window is applied to every day."""
        days = build_calendar_days(date(2025, 6, 2), 3, work_start_hour=9, work_end_hour=17)

        assert all(d.work_start_hour == 9 and d.work_end_hour == 17 for d in days)

    def test_default_week_start_is_monday(self):
        """Test the default week starts on the Monday of the given date."""
        assert default_week_start(date(2025, 6, 5)) == date(2025, 6, 2)
        assert default_week_start(date(2025, 6, 2)) == date(2025, 6, 2)

    def test_extend_to_appends_days(self, calendar_days):
        """Test extending to a later date appends the missing days."""
        extended = extend_calendar_days_to(calendar_days, date(2025, 6, 12))

        assert len(extended) == 11
        assert extended[:7] == calendar_days
        assert extended[-1].date == date(2025, 6, 12)

    def test_extend_to_covered_date_is_unchanged(self, calendar_days):
        """Test extending to a date already in range changes nothing."""
        assert extend_calendar_days_to(calendar_days, date(2025, 6, 4)) == calendar_days

    def test_extend_from_prepends_days(self, calendar_days):
        """Test extending back to an earlier date prepends days."""
        extended = extend_calendar_days_from(calendar_days, date(2025, 5, 30))

        assert len(extended) == 10
        assert extended[0].date == date(2025, 5, 30)
        assert extended[3:] == calendar_days

    def test_extend_empty_calendar(self):
        """Test an empty calendar has no anchor to extend from."""
        assert extend_calendar_days_to((), date(2025, 6, 12)) == ()
        assert extend_calendar_days_from((), date(2025, 6, 1)) == ()


class TestBuildCalendarSlots:
    """Slot table derivation."""

    def test_single_day_hourly(self):
        """Test one 8:00-18:00 day at hourly density."""
        days = [CalendarDay(date=date(2024, 6, 3))]

        table = build_calendar_slots(days, Density.HOUR)
        labels = SlotIndexMapper(days, Density.HOUR).labels()

        assert table.slots_per_day == 10
        assert table.slot_count == 10
        assert labels[0] == "6/3 8:00"
        assert labels[-1] == "6/3 17:00"

    @pytest.mark.parametrize(
        ("density", "expected"),
        [
            (Density.HOUR, (8, 9, 10, 11, 12, 13, 14, 15, 16, 17)),
            (Density.TWO_HOUR, (8, 10, 12, 14, 16)),
            (Density.DAY, (8,)),
        ],
    )
    def test_hours_per_density(self, density, expected):
        """Test hour enumeration at every density."""
        day = CalendarDay(date=date(2024, 6, 3))

        assert build_calendar_hours(day, density) == expected

    def test_odd_window_at_two_hour_density(self):
        """Test a two-hour slot may run past the end of an odd-length window."""
        day = CalendarDay(date=date(2024, 6, 3), work_start_hour=9, work_end_hour=14)

        assert build_calendar_hours(day, Density.TWO_HOUR) == (9, 11, 13)

    def test_holidays_are_padded(self, calendar_days):
        """Test holidays keep their width but only as padding."""
        table = build_calendar_slots(calendar_days, Density.HOUR)

        assert table.slot_count == 70
        assert table.raw_hours_by_day[5] == ()
        assert table.hours_by_day[5] == (None,) * 10
        assert table.day_slot_count(5) == 0
        assert table.day_slot_count(99) == 0

    def test_short_days_padded_to_longest(self):
        """Test every day is padded to the longest day's slot count."""
        days = [
            CalendarDay(date=date(2024, 6, 3)),
            CalendarDay(date=date(2024, 6, 4), work_start_hour=8, work_end_hour=12),
        ]

        table = build_calendar_slots(days, Density.HOUR)

        assert table.slots_per_day == 10
        assert table.hours_by_day[1] == (8, 9, 10, 11) + (None,) * 6

    def test_all_holiday_calendar(self):
        """Test a calendar of only holidays still reserves one slot per day."""
        days = build_calendar_days(date(2025, 6, 7), 2)

        table = build_calendar_slots(days, Density.HOUR)

        assert table.slots_per_day == 1
        assert table.slot_count == 2

    def test_empty_calendar(self):
        """Test an empty calendar has no slots."""
        table = build_calendar_slots((), Density.HOUR)

        assert table.slot_count == 0
        assert table.day_count == 0

    def test_split_and_day_start(self, calendar_days):
        """Test absolute indices decompose into day and hour index."""
        table = build_calendar_slots(calendar_days, Density.TWO_HOUR)

        assert table.split(12) == (2, 2)
        assert table.day_start(3) == 15


class TestSlotHeaderLabels:
    """Column header labels."""

    def test_hourly_headers(self, calendar_days):
        """Test hourly headers use the first real hour of each column."""
        table = build_calendar_slots(calendar_days, Density.HOUR)

        headers = build_slot_header_labels(table, Density.HOUR)

        assert headers[0] == "8:00"
        assert headers[-1] == "17:00"

    def test_daily_headers(self, calendar_days):
        """Test daily density uses a fixed day header."""
        table = build_calendar_slots(calendar_days, Density.DAY)

        assert build_slot_header_labels(table, Density.DAY) == (DAY_HEADER_LABEL,)

    def test_short_window_headers(self):
        """Test a short working window yields one header per working hour."""
        days = [CalendarDay(date=date(2024, 6, 3), work_start_hour=8, work_end_hour=10)]
        table = build_calendar_slots(days, Density.HOUR)

        assert build_slot_header_labels(table, Density.HOUR) == ("8:00", "9:00")

    def test_empty_table(self):
        """Test an empty table has no headers."""
        table = build_calendar_slots((), Density.HOUR)

        assert build_slot_header_labels(table, Density.HOUR) == ()
