"""
Plan editing session.

Coordinates one editor's work on a plan: loading and saving the persisted
payload, preparing assistant requests and applying their replies, and
handing out drag controllers bound to the board.
"""

import json
from collections.abc import Callable, Mapping
from datetime import date, datetime, timedelta
from typing import Any

from ...core.config import settings
from ...core.observability import get_logger, set_correlation_id, set_operator
from ...domain.planning.entities.plan_board import PlanBoard
from ...domain.planning.services.action_resolver import ActionResolver, ActionResult
from ...domain.planning.services.drag_controller import DragController
from ...domain.planning.services.slot_mapper import SlotIndexMapper
from ...domain.planning.value_objects.calendar import (
    build_default_calendar_days,
    default_week_start,
)
from ...domain.planning.value_objects.enums import Density, LaneScope
from ...domain.planning.value_objects.geometry import LaneRect
from ...domain.planning.value_objects.plan_snapshot import PlanSnapshot
from ...domain.planning.value_objects.slot_table import build_slot_header_labels
from ...domain.shared.exceptions import BusinessRuleError, PlanPayloadError
from ..dtos.plan_dtos import (
    AssistantOutcome,
    AssistantRequest,
    BlockSummary,
    ItemSummary,
    PlanContext,
    PlanPayload,
    parse_assistant_response,
    parse_plan_payload,
)

logger = get_logger(__name__)


def _decode(raw: Any) -> Any:
    if isinstance(raw, (str, bytes, bytearray)):
        return json.loads(raw)
    return raw


def load_plan_payload(raw: Any, strict: bool = False) -> PlanBoard | None:
    """
    Build a plan board from a persisted payload.

    Blocks are re-placed from their ``startAt``/``endAt`` instants when those
    resolve in the loaded calendar, so a plan saved at one density or range
    loads onto the same hours.

    Args:
        raw: Payload as decoded JSON or as JSON text
        strict: Raise instead of returning None

    Returns:
        PlanBoard, or None when the payload holds nothing usable

    Raises:
        PlanPayloadError: In strict mode, if the payload is unusable
    """
    try:
        decoded = _decode(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Plan payload is not valid JSON", error=str(exc))
        if strict:
            raise PlanPayloadError(f"Plan payload is not valid JSON: {exc.msg}") from exc
        return None

    payload = parse_plan_payload(decoded)
    if payload is None:
        logger.warning("Plan payload rejected")
        if strict:
            raise PlanPayloadError("Plan payload has no usable version or week start")
        return None

    calendar_days = payload.calendar_days
    if not calendar_days:
        try:
            week_start = date.fromisoformat(payload.week_start_iso[:10])
        except ValueError:
            week_start = default_week_start()
        calendar_days = list(build_default_calendar_days(week_start))

    board = PlanBoard(
        items=tuple(payload.items),
        calendar_days=tuple(calendar_days),
        density=payload.density,
        materials=payload.materials,
    )
    board.restore_blocks(payload.blocks)
    logger.info(
        "Plan loaded",
        days=len(board.calendar_days),
        density=board.density.value,
        items=len(board.items),
        blocks=len(board.blocks),
    )
    return board


def dump_plan_payload(board: PlanBoard) -> dict[str, Any]:
    """Serialize a board, stamping each block's instants from the current grid."""
    week_start = board.week_start or default_week_start()
    payload = PlanPayload(
        week_start_iso=week_start.isoformat(),
        density=board.density,
        calendar_days=list(board.calendar_days),
        materials=list(board.materials),
        items=list(board.items),
        blocks=[board.mapper.anchor(b) for b in board.blocks],
    )
    return payload.to_wire()


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def build_plan_context(
    board: PlanBoard,
    snapshot: PlanSnapshot,
    range_start: date,
    range_end: date,
    executed_at: datetime,
) -> str:
    """
    Render the plan as JSON context for an assistant request.

    Only days up to ``range_end`` are described, and only blocks starting
    between ``range_start`` and ``range_end`` are listed. Items and blocks
    are referenced by public item code.

    Args:
        board: Plan being edited
        snapshot: Frame the reply will be resolved against
        range_start: First date of interest
        range_end: Last date of interest
        executed_at: Request time

    Returns:
        Pretty-printed JSON
    """
    horizon_days = []
    for day in snapshot.calendar_days:
        if day.date > range_end:
            break
        horizon_days.append(day)
    horizon_slot_count = len(horizon_days) * snapshot.slots.slots_per_day

    mapper = SlotIndexMapper.from_snapshot(snapshot)
    item_codes = {item.id: item.code for item in board.items}
    blocks = []
    for block in board.blocks:
        start_at = mapper.slot_to_datetime(block.start)
        if start_at is None or not range_start <= start_at.date() <= range_end:
            continue
        blocks.append(
            BlockSummary(
                id=block.id,
                item_id=item_codes.get(block.item_id, block.item_id),
                start_slot=block.start,
                start_label=mapper.slot_index_to_label(block.start),
                len=block.len,
                amount=block.amount,
                memo=block.memo,
                approved=block.approved,
                start_at=_isoformat(start_at),
                end_at=_isoformat(mapper.slot_boundary_to_datetime(block.end)),
            )
        )

    if horizon_days:
        week_start = horizon_days[0].date
    elif snapshot.calendar_days:
        week_start = snapshot.calendar_days[0].date
    else:
        week_start = board.week_start or default_week_start()

    context = PlanContext(
        executed_at_iso=executed_at.isoformat(),
        range_start_iso=range_start.isoformat(),
        range_end_iso=range_end.isoformat(),
        week_start_iso=week_start.isoformat(),
        density=snapshot.density,
        slots_per_day=snapshot.slots.slots_per_day,
        slot_count=horizon_slot_count,
        slot_index_to_label=list(snapshot.slot_index_to_label[:horizon_slot_count]),
        slot_headers=list(build_slot_header_labels(snapshot.slots, snapshot.density)),
        calendar_days=horizon_days,
        materials=list(board.materials),
        items=[ItemSummary(item_id=item.code, name=item.name) for item in board.items],
        blocks=blocks,
    )
    return context.to_json()


class PlanSession:
    """
    One editor's session on a plan board.

    The session is the only place where assistant replies meet the board:
    each reply is resolved against the snapshot its request was built from
    and committed on top of the version that was current when resolution
    started.
    """

    def __init__(
        self,
        board: PlanBoard,
        operator_name: str | None = None,
        lane_scope: LaneScope | None = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            board: Plan to edit
            operator_name: Name stamped on blocks this session creates or edits
            lane_scope: Overlap lane rule for assistant actions (defaults to the board's)
        """
        self.board = board
        self.operator_name = operator_name or board.operator_name
        self.lane_scope = lane_scope or board.lane_scope
        self.logger = get_logger(__name__)

    @classmethod
    def load(
        cls, raw: Any, operator_name: str | None = None, strict: bool = False
    ) -> "PlanSession | None":
        """Open a session on a persisted payload."""
        board = load_plan_payload(raw, strict=strict)
        if board is None:
            return None
        return cls(board, operator_name=operator_name)

    def save(self) -> dict[str, Any]:
        return dump_plan_payload(self.board)

    def resolver(self) -> ActionResolver:
        return ActionResolver(self.board.items, self.lane_scope, self.operator_name)

    def prepare_assistant_request(self, executed_at: datetime | None = None) -> AssistantRequest:
        """
        Build the context for an assistant call.

        The calendar is extended to cover the assistant horizon first, so
        labels the reply uses for upcoming days resolve.
        """
        executed_at = executed_at or datetime.now(settings.tzinfo)
        if executed_at.tzinfo is not None:
            executed_at = executed_at.astimezone(settings.tzinfo)
        today = executed_at.date()
        horizon_days = max(1, settings.ASSISTANT_HORIZON_DAYS)
        range_start = today - timedelta(days=settings.ASSISTANT_LOOKBACK_DAYS)
        range_end = today + timedelta(days=horizon_days)

        if self.board.extend_calendar_to(range_end):
            self.logger.info("Calendar extended for assistant horizon", range_end=range_end.isoformat())
        snapshot = self.board.snapshot()
        context = build_plan_context(self.board, snapshot, range_start, range_end, executed_at)
        return AssistantRequest(
            executed_at=executed_at,
            range_start=range_start,
            range_end=range_end,
            context=context,
            snapshot=snapshot,
        )

    def _check_frame(self, snapshot: PlanSnapshot) -> None:
        board = self.board
        same_frame = (
            snapshot.density is board.density
            and snapshot.slots.slots_per_day == board.slots.slots_per_day
            and (snapshot.calendar_days[:1] == board.calendar_days[:1])
        )
        if not same_frame:
            raise BusinessRuleError(
                "The plan grid changed since the assistant request was prepared",
                {
                    "snapshot_density": snapshot.density.value,
                    "board_density": board.density.value,
                },
            )

    def apply_actions(
        self, actions: Any, snapshot: PlanSnapshot | None = None
    ) -> ActionResult:
        """
        Resolve a batch of actions and commit the result.

        Raises:
            BusinessRuleError: If the board's grid no longer matches ``snapshot``
            ConcurrencyError: If the board changed while the batch resolved
        """
        snapshot = snapshot or self.board.snapshot()
        self._check_frame(snapshot)
        base_version = self.board.version
        result = self.resolver().apply_actions(list(actions), self.board.blocks, snapshot)
        if result.applied:
            self.board.commit(result.blocks, base_version)
        return result

    def apply_assistant_reply(self, text: str, snapshot: PlanSnapshot) -> AssistantOutcome:
        """
        Parse an assistant reply and apply its actions.

        Args:
            text: Raw model reply
            snapshot: Frame from the matching ``prepare_assistant_request``

        Returns:
            Summary, warnings from parsing and resolution, and the applied count
        """
        correlation_id = set_correlation_id()
        set_operator(self.operator_name)
        response = parse_assistant_response(text)
        result = self.apply_actions(response.actions, snapshot)
        warnings = [*response.warnings, *result.warnings]
        self.logger.info(
            "Assistant reply applied",
            actions=len(response.actions),
            applied=result.applied,
            warnings=len(warnings),
            version=self.board.version,
        )
        return AssistantOutcome(
            summary=response.summary,
            warnings=warnings,
            applied=result.applied,
            version=self.board.version,
            correlation_id=correlation_id,
        )

    def drag_controller(
        self,
        lanes: Mapping[int, LaneRect] | None = None,
        view_density: Density | None = None,
        view_start_offset_days: int = 0,
        clock: Callable[[], float] | None = None,
    ) -> DragController:
        """Drag controller bound to this session's board."""
        return DragController(
            self.board,
            lanes=lanes,
            view_density=view_density,
            view_start_offset_days=view_start_offset_days,
            clock=clock,
        )
