"""
Slot Index Mapper

Converts between flat slot indices, (day, hour) pairs, wall-clock instants and
human labels for one calendar range at one density. All lookups are O(1)
given the slot table, except the date search in ``datetime_to_slot_index``
which is a dict hit.

Lookups never raise: anything outside the table (including padding slots and
an empty calendar) comes back as ``None`` or ``""``.
"""

import math
from collections.abc import Sequence
from datetime import datetime, time, timedelta, tzinfo

from ....core.config import settings
from ..entities.block import Block
from ..value_objects.calendar import CalendarDay
from ..value_objects.enums import Density
from ..value_objects.geometry import LaneRect
from ..value_objects.plan_snapshot import PlanSnapshot
from ..value_objects.slot_table import SlotTable, build_calendar_slots

_EPSILON = 1e-9


def format_slot_label(day: CalendarDay, hour: int, density: Density) -> str:
    """``M/D`` for daily density, ``M/D H:00`` otherwise."""
    if density.is_daily:
        return day.month_day_label
    return f"{day.month_day_label} {hour}:00"


class SlotIndexMapper:
    """Slot addressing for one calendar range at one density."""

    def __init__(
        self,
        calendar_days: Sequence[CalendarDay],
        density: Density,
        tz: tzinfo | None = None,
        table: SlotTable | None = None,
    ) -> None:
        self._calendar_days = tuple(calendar_days)
        self._density = density
        self._tz = tz or settings.tzinfo
        self._table = table or build_calendar_slots(self._calendar_days, density)
        self._day_index_by_date: dict = {}
        for index, day in enumerate(self._calendar_days):
            self._day_index_by_date.setdefault(day.date, index)

    @classmethod
    def from_snapshot(
        cls, snapshot: PlanSnapshot, tz: tzinfo | None = None
    ) -> "SlotIndexMapper":
        return cls(snapshot.calendar_days, snapshot.density, tz=tz, table=snapshot.slots)

    @property
    def table(self) -> SlotTable:
        return self._table

    @property
    def calendar_days(self) -> tuple[CalendarDay, ...]:
        return self._calendar_days

    @property
    def density(self) -> Density:
        return self._density

    @property
    def slot_count(self) -> int:
        return self._table.slot_count

    @property
    def slots_per_day(self) -> int:
        return self._table.slots_per_day

    def _split(self, slot_index: int) -> tuple[int, int] | None:
        if slot_index < 0 or slot_index >= self._table.slot_count:
            return None
        return self._table.split(slot_index)

    def _at_hour(self, day: CalendarDay, hour: float) -> datetime:
        # work_end_hour may be 24, which time() cannot hold
        midnight = datetime.combine(day.date, time(0), tzinfo=self._tz)
        return midnight + timedelta(hours=hour)

    def _localize(self, instant: datetime | str | None) -> datetime | None:
        if isinstance(instant, str):
            try:
                instant = datetime.fromisoformat(instant.replace("Z", "+00:00"))
            except ValueError:
                return None
        if instant is None:
            return None
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self._tz)
        return instant.astimezone(self._tz)

    def slot_index_to_label(self, slot_index: int) -> str:
        """Human label for a slot; empty for padding or out-of-range slots."""
        position = self._split(slot_index)
        if position is None:
            return ""
        day_index, hour_index = position
        hour = self._table.hours_by_day[day_index][hour_index]
        if hour is None:
            return ""
        return format_slot_label(self._calendar_days[day_index], hour, self._density)

    def labels(self) -> tuple[str, ...]:
        """Labels for every slot in index order."""
        return tuple(self.slot_index_to_label(i) for i in range(self._table.slot_count))

    def slot_to_datetime(self, slot_index: int) -> datetime | None:
        """
        Start instant of a slot.

        Returns:
            Aware datetime, or None when the slot is padding or out of range
        """
        position = self._split(slot_index)
        if position is None:
            return None
        day_index, hour_index = position
        hours = self._table.raw_hours_by_day[day_index]
        if hour_index >= len(hours):
            return None
        return self._at_hour(self._calendar_days[day_index], hours[hour_index])

    def slot_boundary_to_datetime(self, boundary_index: int) -> datetime | None:
        """
        Instant of the boundary after slot ``boundary_index - 1``.

        The boundary after a day's last real slot is that day's
        ``work_end_hour``, so a block ending at the close of a day keeps that
        day's end even when the next day starts at the following index.
        """
        position = self._split(boundary_index - 1)
        if position is None:
            return None
        day_index, hour_index = position
        hours = self._table.raw_hours_by_day[day_index]
        next_index = hour_index + 1
        if next_index > len(hours):
            return None
        day = self._calendar_days[day_index]
        if next_index == len(hours):
            return self._at_hour(day, day.work_end_hour)
        return self._at_hour(day, hours[next_index])

    def datetime_to_slot_index(
        self, instant: datetime | str | None, allow_end_boundary: bool = False
    ) -> int | None:
        """
        Inverse of ``slot_to_datetime``.

        Finds the day by date in the configured time zone, then the real slot
        whose window contains the time. With ``allow_end_boundary`` an instant
        equal to the day's ``work_end_hour`` maps to the boundary index after
        the day's last real slot.

        Args:
            instant: Aware or naive datetime (naive is read in the configured
                time zone), or an ISO 8601 string
            allow_end_boundary: Accept the end of the working window

        Returns:
            Slot (or boundary) index, or None when nothing matches
        """
        local = self._localize(instant)
        if local is None:
            return None
        day_index = self._day_index_by_date.get(local.date())
        if day_index is None:
            return None
        day = self._calendar_days[day_index]
        hours = self._table.raw_hours_by_day[day_index]
        hour = local.hour + local.minute / 60 + local.second / 3600
        base = self._table.day_start(day_index)
        for index, slot_start in enumerate(hours):
            slot_end = hours[index + 1] if index + 1 < len(hours) else day.work_end_hour
            if slot_start <= hour < slot_end:
                return base + index
        if allow_end_boundary and hours and abs(hour - day.work_end_hour) < _EPSILON:
            return base + len(hours)
        return None

    def datetime_to_slot_boundary(self, instant: datetime | str | None) -> int | None:
        """
        Boundary index closing an interval that ends at ``instant``.

        An instant past the start of a slot rounds up to the boundary after
        that slot, so the interval keeps all the time it covers.
        """
        index = self.datetime_to_slot_index(instant, allow_end_boundary=True)
        if index is None:
            return None
        slot_start = self.slot_to_datetime(index)
        if slot_start is not None and slot_start < self._localize(instant):
            return index + 1
        return index

    def anchor(self, block: Block) -> Block:
        """Stamp a block's wall-clock ``start_at``/``end_at`` from its slots."""
        start_at = self.slot_to_datetime(block.start)
        end_at = self.slot_boundary_to_datetime(block.end)
        if start_at == block.start_at and end_at == block.end_at:
            return block
        return block.model_copy(update={"start_at": start_at, "end_at": end_at})

    def locate(self, block: Block) -> tuple[int | None, int | None]:
        """
        Slot interval of a block from its wall-clock anchors.

        Returns:
            (start, len); start is None when ``start_at`` does not resolve in
            this frame, len is None unless both anchors resolve
        """
        start = self.datetime_to_slot_index(block.start_at)
        if start is None:
            return None, None
        end = self.datetime_to_slot_boundary(block.end_at)
        if end is None:
            return start, None
        return start, max(1, end - start)


def build_plan_snapshot(
    calendar_days: Sequence[CalendarDay], density: Density
) -> PlanSnapshot:
    """Freeze the addressing frame for one resolution pass."""
    mapper = SlotIndexMapper(calendar_days, density)
    return PlanSnapshot(
        calendar_days=mapper.calendar_days,
        density=density,
        slots=mapper.table,
        slot_index_to_label=mapper.labels(),
    )


def clamp(n: float, lo: float, hi: float) -> float:
    """Clamp ``n`` into ``[lo, hi]``; ``lo`` wins when the range is empty."""
    return max(lo, min(hi, n))


def x_to_slot(client_x: float, rect: LaneRect, slot_count: int, step: int = 1) -> int:
    """
    Slot under a horizontal pointer position within a lane.

    Args:
        client_x: Pointer x coordinate
        rect: Lane bounding box
        slot_count: Slots drawn across the lane
        step: Snap to multiples of this many slots

    Returns:
        Slot index clamped into the lane
    """
    if rect.width <= 0 or slot_count <= 0:
        return 0
    effective_step = step if step > 0 else 1
    ratio = (client_x - rect.left) / rect.width
    raw = math.floor(ratio * (slot_count / effective_step))
    return int(clamp(raw * effective_step, 0, slot_count - effective_step))


def clamp_to_working_slot(
    day_index: int, slot: int, raw_hours_by_day: Sequence[Sequence[int]]
) -> int | None:
    """Clamp a day-relative slot to that day's real slots; None on a zero-slot day."""
    if not 0 <= day_index < len(raw_hours_by_day):
        return None
    day_hours = raw_hours_by_day[day_index]
    if not day_hours:
        return None
    return int(clamp(slot, 0, len(day_hours) - 1))


def end_day_index(start: int, length: int, slots_per_day: int) -> int:
    """Day index holding a block's last slot."""
    return (start + length - 1) // slots_per_day
