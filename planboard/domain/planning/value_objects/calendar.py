"""
Calendar Value Objects

Working-day descriptors and the helpers that generate and extend ranges of
them. Calendar ranges are tuples: they are only ever rebuilt by appending or
prepending days, never edited in place.
"""

from collections.abc import Sequence
from datetime import date, datetime, timedelta

from pydantic import Field, model_validator

from ....core.config import settings
from ...shared.base import ValueObject

DAYS_IN_WEEK = 7
_SATURDAY = 5


class CalendarDay(ValueObject):
    """
    A single calendar day with its working window.

    Holidays contribute no slots regardless of their working hours.
    """

    date: date
    is_holiday: bool = False
    work_start_hour: int = Field(default=settings.DEFAULT_WORK_START_HOUR, ge=0, le=24)
    work_end_hour: int = Field(default=settings.DEFAULT_WORK_END_HOUR, ge=0, le=24)

    @model_validator(mode="after")
    def _check_window(self) -> "CalendarDay":
        if self.work_end_hour < self.work_start_hour:
            raise ValueError(
                f"work_end_hour {self.work_end_hour} is before "
                f"work_start_hour {self.work_start_hour} on {self.date}"
            )
        return self

    @property
    def working_hours(self) -> int:
        """Length of the working window in hours (0 for holidays)."""
        if self.is_holiday:
            return 0
        return self.work_end_hour - self.work_start_hour

    @property
    def month_day_label(self) -> str:
        """Unpadded ``M/D`` label."""
        return f"{self.date.month}/{self.date.day}"

    def __str__(self) -> str:
        if self.is_holiday:
            return f"{self.date.isoformat()} (holiday)"
        return f"{self.date.isoformat()} {self.work_start_hour}:00-{self.work_end_hour}:00"


def default_week_start(today: date | None = None) -> date:
    """Monday of the week containing ``today`` (in the configured time zone)."""
    today = today or datetime.now(settings.tzinfo).date()
    return today - timedelta(days=today.weekday())


def build_calendar_days(
    start: date,
    days: int,
    work_start_hour: int | None = None,
    work_end_hour: int | None = None,
) -> tuple[CalendarDay, ...]:
    """
    Build ``days`` consecutive calendar days starting at ``start``.

    Saturdays and Sundays are holidays; every day gets the same working window.

    Args:
        start: First date of the range
        days: Number of days to generate
        work_start_hour: Working window start (defaults to settings)
        work_end_hour: Working window end (defaults to settings)

    Returns:
        Tuple of calendar days
    """
    start_hour = (
        settings.DEFAULT_WORK_START_HOUR if work_start_hour is None else work_start_hour
    )
    end_hour = settings.DEFAULT_WORK_END_HOUR if work_end_hour is None else work_end_hour

    out = []
    for offset in range(max(0, days)):
        current = start + timedelta(days=offset)
        out.append(
            CalendarDay(
                date=current,
                is_holiday=current.weekday() >= _SATURDAY,
                work_start_hour=start_hour,
                work_end_hour=end_hour,
            )
        )
    return tuple(out)


def build_default_calendar_days(start: date) -> tuple[CalendarDay, ...]:
    """One week of default calendar days."""
    return build_calendar_days(start, DAYS_IN_WEEK)


def extend_calendar_days_to(
    calendar_days: Sequence[CalendarDay], target_end: date
) -> tuple[CalendarDay, ...]:
    """
    Append days so the range covers ``target_end``.

    An empty calendar has no anchor and is returned unchanged, as is a
    calendar that already reaches ``target_end``.
    """
    if not calendar_days:
        return tuple(calendar_days)
    last = calendar_days[-1].date
    days_to_append = (target_end - last).days
    if days_to_append <= 0:
        return tuple(calendar_days)
    return (*calendar_days, *build_calendar_days(last + timedelta(days=1), days_to_append))


def extend_calendar_days_from(
    calendar_days: Sequence[CalendarDay], target_start: date
) -> tuple[CalendarDay, ...]:
    """Prepend days so the range starts at ``target_start``."""
    if not calendar_days:
        return tuple(calendar_days)
    first = calendar_days[0].date
    days_to_prepend = (first - target_start).days
    if days_to_prepend <= 0:
        return tuple(calendar_days)
    return (*build_calendar_days(target_start, days_to_prepend), *calendar_days)
