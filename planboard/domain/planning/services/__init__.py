"""
Domain Services

Slot addressing, density conversion, overlap resolution, pointer gestures and
assistant action resolution. Services operate on immutable blocks and hand
new block tuples back to the plan board to commit.
"""

from .action_resolver import ActionResolver, ActionResult
from .density_converter import (
    BASE_SLOTS_PER_DAY,
    convert_slot_index,
    convert_slot_length,
    slot_units_per_slot,
    slots_per_day_for_density,
)
from .drag_controller import DragController, DragState, GestureRegister
from .placement_engine import PlacementEngine, resolve_overlap, select_lane
from .slot_mapper import (
    SlotIndexMapper,
    build_plan_snapshot,
    clamp,
    clamp_to_working_slot,
    end_day_index,
    format_slot_label,
    x_to_slot,
)

__all__ = [
    "ActionResolver",
    "ActionResult",
    "BASE_SLOTS_PER_DAY",
    "convert_slot_index",
    "convert_slot_length",
    "slot_units_per_slot",
    "slots_per_day_for_density",
    "DragController",
    "DragState",
    "GestureRegister",
    "PlacementEngine",
    "resolve_overlap",
    "select_lane",
    "SlotIndexMapper",
    "build_plan_snapshot",
    "clamp",
    "clamp_to_working_slot",
    "end_day_index",
    "format_slot_label",
    "x_to_slot",
]
