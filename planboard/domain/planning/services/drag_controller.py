"""
Drag/Resize Controller

Pointer-driven block editing. The timeline may be rendered at a different
density than the plan stores (the view density); pointer positions are read
in view slots and converted to plan slots before anything moves.

One gesture at a time: the gesture lives in a ``GestureRegister`` between
``begin`` and ``end``. Every pointer update is clamped to the working slots
of the day under the pointer, pushed clear of other blocks, and committed to
the board immediately.
"""

import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from ....core.config import settings
from ....core.observability import get_logger
from ...shared.base import DomainService, ValueObject
from ..entities.block import Block, replace_block
from ..value_objects.enums import Density, DragKind, RoundingMode
from ..value_objects.geometry import LaneRect
from ..value_objects.slot_table import SlotTable, build_calendar_slots
from .density_converter import convert_slot_index
from .slot_mapper import clamp, clamp_to_working_slot, x_to_slot

if TYPE_CHECKING:
    from ..entities.plan_board import PlanBoard


class DragState(ValueObject):
    """An in-flight gesture."""

    kind: DragKind
    block_id: str
    origin_start: int
    origin_len: int
    pointer_offset: int = 0
    lane_rect: LaneRect
    day_index: int
    moved: bool = False


class GestureRegister:
    """Holds at most one gesture; acquiring while held fails."""

    def __init__(self) -> None:
        self._state: DragState | None = None

    @property
    def state(self) -> DragState | None:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is not None

    def acquire(self, state: DragState) -> bool:
        """Take the register; False if a gesture is already held."""
        if self._state is not None:
            return False
        self._state = state
        return True

    def replace(self, state: DragState) -> None:
        """Swap the held gesture for its updated version."""
        if self._state is None or self._state.block_id != state.block_id:
            raise RuntimeError("No matching gesture is held")
        self._state = state

    def release(self) -> DragState | None:
        state, self._state = self._state, None
        return state


class _PointerTarget:
    """Where a pointer position lands, in both densities."""

    def __init__(self, plan_slot: int, plan_slot_end: int, day_start: int, day_end: int) -> None:
        self.plan_slot = plan_slot
        self.plan_slot_end = plan_slot_end
        self.day_start = day_start
        self.day_end = day_end


class DragController(DomainService):
    """
    Moves and resizes blocks on a plan board from pointer events.

    Lane indices are view day indices: lane ``i`` shows calendar day
    ``view_start_offset_days + i``.
    """

    def __init__(
        self,
        board: "PlanBoard",
        lanes: Mapping[int, LaneRect] | None = None,
        view_density: Density | None = None,
        view_start_offset_days: int = 0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize the drag controller.

        Args:
            board: Plan the gestures edit
            lanes: Rendered lane rectangles by view day index
            view_density: Density the timeline is drawn at (defaults to the plan's)
            view_start_offset_days: Calendar day shown in lane 0
            clock: Monotonic clock in seconds, for click suppression
        """
        self.board = board
        self.lanes: dict[int, LaneRect] = dict(lanes or {})
        self.view_density = view_density or board.density
        self.view_start_offset_days = view_start_offset_days
        self._clock = clock or time.monotonic
        self._register = GestureRegister()
        self._suppress_until = float("-inf")
        self.logger = get_logger(__name__)

    @property
    def state(self) -> DragState | None:
        return self._register.state

    def set_lanes(self, lanes: Mapping[int, LaneRect]) -> None:
        """Replace lane rectangles after a re-render."""
        self.lanes = dict(lanes)

    def _view_table(self) -> SlotTable:
        return build_calendar_slots(self.board.calendar_days, self.view_density)

    def _resolve_pointer(
        self, day_index: int, rect: LaneRect, client_x: float
    ) -> _PointerTarget | None:
        view = self._view_table()
        calendar_day = self.view_start_offset_days + day_index
        slot = x_to_slot(client_x, rect, view.slots_per_day)
        working_slot = clamp_to_working_slot(calendar_day, slot, view.raw_hours_by_day)
        if working_slot is None:
            return None

        plan_density = self.board.density
        plan_count = self.board.slot_count
        if plan_count == 0:
            return None
        absolute = calendar_day * view.slots_per_day + working_slot
        plan_slot = int(
            clamp(
                convert_slot_index(absolute, self.view_density, plan_density, RoundingMode.FLOOR),
                0,
                plan_count - 1,
            )
        )
        plan_slot_end = int(
            clamp(
                convert_slot_index(absolute + 1, self.view_density, plan_density, RoundingMode.CEIL),
                1,
                plan_count,
            )
        )
        plan_table = self.board.slots
        day_slots = plan_table.day_slot_count(calendar_day)
        if day_slots == 0:
            return None
        day_start = plan_table.day_start(calendar_day)
        return _PointerTarget(plan_slot, plan_slot_end, day_start, day_start + day_slots)

    def begin(
        self, kind: DragKind, block_id: str, day_index: int, client_x: float
    ) -> DragState | None:
        """
        Start a gesture on a block.

        Returns:
            The new gesture, or None when another gesture is active, the lane
            or block is unknown, the block is approved, or the day has no
            working slots
        """
        if self._register.active:
            self.logger.debug("Gesture ignored, another is active", block_id=block_id)
            return None
        rect = self.lanes.get(day_index)
        block = self.board.collection.get(block_id)
        if rect is None or block is None or block.approved:
            return None
        target = self._resolve_pointer(day_index, rect, client_x)
        if target is None:
            return None

        pointer_offset = 0
        if kind is DragKind.MOVE:
            pointer_offset = int(clamp(target.plan_slot - block.start, 0, max(0, block.len - 1)))
        state = DragState(
            kind=kind,
            block_id=block.id,
            origin_start=block.start,
            origin_len=block.len,
            pointer_offset=pointer_offset,
            lane_rect=rect,
            day_index=day_index,
        )
        self._register.acquire(state)
        self.logger.debug("Gesture started", kind=kind.value, block_id=block.id, day_index=day_index)
        return state

    def _lane_at(self, client_y: float) -> tuple[int, LaneRect] | None:
        for day_index in sorted(self.lanes):
            rect = self.lanes[day_index]
            if rect.contains_y(client_y):
                return day_index, rect
        return None

    def _reshape(self, state: DragState, block: Block, target: _PointerTarget) -> Block:
        plan_count = self.board.slot_count
        if state.kind is DragKind.MOVE:
            max_start = max(target.day_start, target.day_end - state.origin_len)
            start = int(clamp(target.plan_slot - state.pointer_offset, target.day_start, max_start))
            length = int(clamp(state.origin_len, 1, plan_count - start))
            return block.placed(start, length)
        if state.kind is DragKind.RESIZE_LEFT:
            end = state.origin_start + state.origin_len
            start = int(clamp(target.plan_slot, target.day_start, end - 1))
            length = int(clamp(end - start, 1, plan_count - start))
            return block.placed(start, length)
        if state.kind is DragKind.RESIZE_RIGHT:
            new_end = int(clamp(target.plan_slot_end, block.start + 1, target.day_end))
            length = int(clamp(new_end - block.start, 1, plan_count - block.start))
            return block.placed(block.start, length)
        raise AssertionError(f"Unhandled drag kind: {state.kind!r}")

    def update(self, client_x: float, client_y: float) -> Block | None:
        """
        Apply a pointer movement to the active gesture.

        Returns:
            The block as committed, or None when nothing changed hands
        """
        state = self._register.state
        if state is None:
            return None
        day_index, rect = state.day_index, state.lane_rect
        if state.kind.can_change_day:
            lane = self._lane_at(client_y)
            if lane is None:
                return None
            day_index, rect = lane

        target = self._resolve_pointer(day_index, rect, client_x)
        if target is None:
            return None
        block = self.board.collection.get(state.block_id)
        if block is None:
            self._register.release()
            return None

        placed = self.board.place(self._reshape(state, block, target))
        self._register.replace(
            state.model_copy(update={"day_index": day_index, "lane_rect": rect, "moved": True})
        )
        self.board.commit(replace_block(self.board.blocks, placed), self.board.version)
        return self.board.collection.get(placed.id)

    def end(self, operator: str | None = None) -> DragState | None:
        """
        Finish the active gesture.

        Stamps the operator on the block if it moved and keeps plain clicks
        suppressed for a short window.
        """
        state = self._register.release()
        if state is None:
            return None
        self._suppress_until = self._clock() + settings.DRAG_CLICK_SUPPRESS_MS / 1000
        block = self.board.collection.get(state.block_id)
        if state.moved and block is not None:
            name = operator or self.board.operator_name
            stamped = block.model_copy(
                update={"created_by": block.created_by or name, "updated_by": name}
            )
            self.board.commit(replace_block(self.board.blocks, stamped), self.board.version)
            self.logger.info(
                "Gesture finished",
                kind=state.kind.value,
                block_id=block.id,
                start=block.start,
                len=block.len,
            )
        return state

    def is_click_suppressed(self) -> bool:
        """Check if a plain click should be ignored."""
        return self._register.active or self._clock() < self._suppress_until

    def click(self, day_index: int, client_x: float, item_id: str | None = None) -> Block | None:
        """
        Create a block where a plain click landed.

        Returns:
            The new block, or None when the click is suppressed or not on a
            working slot
        """
        if self.is_click_suppressed():
            return None
        rect = self.lanes.get(day_index)
        if rect is None:
            return None
        target = self._resolve_pointer(day_index, rect, client_x)
        if target is None:
            return None
        return self.board.create_block_at(target.plan_slot, item_id=item_id)
