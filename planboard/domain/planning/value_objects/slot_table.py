"""
Slot Table Value Object

The rectangular slot grid derived from a calendar range at one density. Every
day reserves ``slots_per_day`` columns; days with fewer working hours are
right-padded with ``None`` and those padding slots cannot be addressed.
"""

from collections.abc import Sequence

from ...shared.base import ValueObject
from .calendar import CalendarDay
from .enums import Density

DAY_HEADER_LABEL = "Day"


class SlotTable(ValueObject):
    """Derived slot grid for one (calendar range, density) pair."""

    raw_hours_by_day: tuple[tuple[int, ...], ...] = ()
    hours_by_day: tuple[tuple[int | None, ...], ...] = ()
    slots_per_day: int = 1
    slot_count: int = 0

    @property
    def day_count(self) -> int:
        return len(self.raw_hours_by_day)

    def day_slot_count(self, day_index: int) -> int:
        """Number of real (unpadded) slots on a day; 0 when out of range."""
        if 0 <= day_index < len(self.raw_hours_by_day):
            return len(self.raw_hours_by_day[day_index])
        return 0

    def day_start(self, day_index: int) -> int:
        """Absolute index of the first slot of a day."""
        return day_index * self.slots_per_day

    def split(self, slot_index: int) -> tuple[int, int]:
        """Decompose an absolute slot index into (day index, hour index)."""
        return divmod(slot_index, self.slots_per_day)


def build_calendar_hours(day: CalendarDay, density: Density) -> tuple[int, ...]:
    """
    Working hours that start a slot on ``day``.

    For daily density the work-start hour is the single anchor of the day.
    """
    if day.is_holiday:
        return ()
    step = density.hour_step
    if step is None:
        return (day.work_start_hour,)
    return tuple(range(day.work_start_hour, day.work_end_hour, step))


def build_calendar_slots(
    calendar_days: Sequence[CalendarDay], density: Density
) -> SlotTable:
    """
    Build the slot table for a calendar range.

    Args:
        calendar_days: Ordered calendar days
        density: Slot granularity

    Returns:
        SlotTable with padded and raw hour lists
    """
    raw_hours_by_day = tuple(build_calendar_hours(day, density) for day in calendar_days)
    slots_per_day = max([1, *(len(hours) for hours in raw_hours_by_day)])
    hours_by_day = tuple(
        hours + (None,) * (slots_per_day - len(hours)) for hours in raw_hours_by_day
    )
    return SlotTable(
        raw_hours_by_day=raw_hours_by_day,
        hours_by_day=hours_by_day,
        slots_per_day=slots_per_day,
        slot_count=len(calendar_days) * slots_per_day,
    )


def build_slot_header_labels(table: SlotTable, density: Density) -> tuple[str, ...]:
    """Column headers: the first real hour found in each column."""
    if not table.day_count:
        return ()
    if density.is_daily:
        return (DAY_HEADER_LABEL,) * table.slots_per_day
    labels = []
    for column in range(table.slots_per_day):
        hour = next(
            (day[column] for day in table.hours_by_day if day[column] is not None),
            None,
        )
        labels.append("" if hour is None else f"{hour}:00")
    return tuple(labels)
