"""Value objects for the planning domain."""

from .calendar import (
    DAYS_IN_WEEK,
    CalendarDay,
    build_calendar_days,
    build_default_calendar_days,
    default_week_start,
    extend_calendar_days_from,
    extend_calendar_days_to,
)
from .enums import ActionType, Density, DragKind, LaneScope, RoundingMode
from .geometry import LaneRect
from .plan_snapshot import PlanSnapshot
from .slot_table import (
    SlotTable,
    build_calendar_hours,
    build_calendar_slots,
    build_slot_header_labels,
)

__all__ = [
    "DAYS_IN_WEEK",
    "CalendarDay",
    "build_calendar_days",
    "build_default_calendar_days",
    "default_week_start",
    "extend_calendar_days_from",
    "extend_calendar_days_to",
    "ActionType",
    "Density",
    "DragKind",
    "LaneScope",
    "RoundingMode",
    "LaneRect",
    "PlanSnapshot",
    "SlotTable",
    "build_calendar_hours",
    "build_calendar_slots",
    "build_slot_header_labels",
]
