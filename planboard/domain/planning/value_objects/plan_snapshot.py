"""PlanSnapshot value object.

A frozen addressing frame (calendar, slot table, labels) for one resolution
pass. It is decoupled from whatever tables the drag controller renders with,
so an assistant batch resolves labels against the frame it was prompted with.
"""

from ...shared.base import ValueObject
from .calendar import CalendarDay
from .enums import Density
from .slot_table import SlotTable


class PlanSnapshot(ValueObject):
    calendar_days: tuple[CalendarDay, ...]
    density: Density
    slots: SlotTable
    slot_index_to_label: tuple[str, ...]

    @property
    def slot_count(self) -> int:
        return self.slots.slot_count

    def label_index(self, label: str) -> int | None:
        """Index of the first slot carrying exactly ``label``."""
        if not label:
            return None
        try:
            return self.slot_index_to_label.index(label)
        except ValueError:
            return None
