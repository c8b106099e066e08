"""
Action Resolver

Turns loosely-specified block actions into plan mutations. References are
resolved against a frozen ``PlanSnapshot`` so a whole batch is addressed in
the frame it was produced for, even if the live board has changed density.

Every action either applies or is skipped with a warning; approved blocks are
skipped without one. A batch is never aborted by one of its actions.
"""

from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import Field

from ....core.config import settings
from ....core.observability import get_logger
from ...shared.base import DomainService, ValueObject
from ...shared.exceptions import ActionParseError
from ..cqrs.actions import BlockAction, action_type, parse_action
from ..entities.block import Block, remove_block, replace_block
from ..entities.item import Item, build_item_key_map
from ..value_objects.enums import ActionType, LaneScope
from ..value_objects.plan_snapshot import PlanSnapshot
from .placement_engine import PlacementEngine
from .slot_mapper import clamp


class ActionResult(ValueObject):
    """Outcome of one batch."""

    blocks: tuple[Block, ...]
    warnings: tuple[str, ...] = ()
    applied: int = Field(default=0, ge=0)

    @property
    def skipped_any(self) -> bool:
        return bool(self.warnings)


class _BatchState:
    """Working state of one batch: the in-progress block list and warnings."""

    def __init__(self, blocks: Sequence[Block], snapshot: PlanSnapshot) -> None:
        self.blocks: tuple[Block, ...] = tuple(blocks)
        self.snapshot = snapshot
        self.warnings: list[str] = []
        self.applied = 0

    def warn(self, index: int, message: str) -> None:
        self.warnings.append(f"Action #{index + 1}: {message}")


class ActionResolver(DomainService):
    """
    Applies assistant block actions to a plan.

    The resolver never touches the collection it is given; it returns a new
    block tuple for the caller to commit.
    """

    def __init__(
        self,
        items: Iterable[Item],
        lane_scope: LaneScope | None = None,
        operator_name: str | None = None,
    ) -> None:
        """
        Initialize the action resolver.

        Args:
            items: Item master used to resolve item keys
            lane_scope: Overlap lane rule (defaults to settings)
            operator_name: Name stamped on created and updated blocks
        """
        self._item_key_map = build_item_key_map(items)
        self._placement = PlacementEngine(lane_scope or LaneScope(settings.LANE_SCOPE))
        self._operator_name = operator_name or settings.DEFAULT_OPERATOR_NAME
        self.logger = get_logger(__name__)

    def apply_actions(
        self,
        actions: Sequence[BlockAction | dict[str, Any]],
        blocks: Sequence[Block],
        snapshot: PlanSnapshot,
    ) -> ActionResult:
        """
        Apply a batch of actions in order.

        Args:
            actions: Parsed actions or raw descriptors
            blocks: Current plan blocks
            snapshot: Addressing frame the actions refer to

        Returns:
            ActionResult with the new blocks, warnings and applied count
        """
        state = _BatchState(blocks, snapshot)
        for index, raw in enumerate(actions):
            try:
                action = raw if isinstance(raw, BlockAction) else parse_action(raw, index)
            except ActionParseError as exc:
                self.logger.warning("Action descriptor rejected", index=index, reason=exc.message)
                state.warnings.append(exc.message)
                continue
            self._apply_one(index, action, state)

        self.logger.info(
            "Action batch resolved",
            actions=len(actions),
            applied=state.applied,
            warnings=len(state.warnings),
            slot_count=snapshot.slot_count,
            density=snapshot.density.value,
        )
        return ActionResult(
            blocks=state.blocks, warnings=tuple(state.warnings), applied=state.applied
        )

    def _apply_one(self, index: int, action: BlockAction, state: _BatchState) -> None:
        kind = action_type(action)
        if kind is ActionType.CREATE:
            self._create(index, action, state)
        elif kind is ActionType.UPDATE:
            self._update(index, action, state)
        elif kind is ActionType.DELETE:
            self._delete(index, action, state)
        else:
            raise AssertionError(f"Unhandled action type: {kind!r}")

    def _resolve_item(self, index: int, action: BlockAction, state: _BatchState) -> str | None:
        if action.item_id is None:
            return None
        item_id = self._item_key_map.get(action.item_id)
        if item_id is None:
            state.warn(index, f"unknown item {action.item_id!r}")
        return item_id

    def _resolve_slot(self, index: int, action: BlockAction, state: _BatchState) -> int | None:
        slot_count = state.snapshot.slot_count
        if action.start_slot is not None:
            if 0 <= action.start_slot < slot_count:
                return action.start_slot
            state.warn(
                index,
                f"startSlot {action.start_slot} is outside 0..{slot_count - 1}",
            )
        if action.start_label is not None:
            slot = state.snapshot.label_index(action.start_label)
            if slot is None:
                state.warn(index, f"no slot is labelled {action.start_label!r}")
            return slot
        return None

    def _locate_block(
        self,
        action: BlockAction,
        item_id: str | None,
        start: int | None,
        state: _BatchState,
    ) -> Block | None:
        if action.block_id is not None:
            found = next((b for b in state.blocks if b.id == action.block_id), None)
            if found is not None:
                return found
        if item_id is None or start is None:
            return None
        return next(
            (b for b in state.blocks if b.item_id == item_id and b.start == start),
            None,
        )

    def _place(self, candidate: Block, state: _BatchState) -> Block:
        return self._placement.place(
            candidate,
            state.blocks,
            state.snapshot.slot_count,
            state.snapshot.slots.slots_per_day,
        )

    def _create(self, index: int, action: BlockAction, state: _BatchState) -> None:
        warnings_before = len(state.warnings)
        item_id = self._resolve_item(index, action, state)
        start = self._resolve_slot(index, action, state)
        if item_id is None or start is None:
            if len(state.warnings) == warnings_before:
                missing = "itemId" if item_id is None else "startSlot or startLabel"
                state.warn(index, f"create_block needs {missing}")
            return

        slot_count = state.snapshot.slot_count
        candidate = Block(
            item_id=item_id,
            start=start,
            len=int(clamp(action.len if action.len is not None else 1, 1, slot_count - start)),
            amount=max(0.0, action.amount or 0.0),
            memo=action.memo or "",
            created_by=self._operator_name,
            updated_by=self._operator_name,
        )
        placed = self._place(candidate, state)
        state.blocks = (*state.blocks, placed)
        state.applied += 1
        self.logger.debug("Block created", block_id=placed.id, item_id=item_id, start=placed.start)

    def _update(self, index: int, action: BlockAction, state: _BatchState) -> None:
        item_id = self._resolve_item(index, action, state)
        start = self._resolve_slot(index, action, state)
        target = self._locate_block(action, item_id, start, state)
        if target is None:
            state.warn(index, "update_block matched no block")
            return
        if action.item_id is not None and item_id is None:
            # unknown item already warned; changing to it is not possible
            return
        if target.approved:
            self.logger.debug("Approved block left unchanged", block_id=target.id)
            return
        new_start = target.start if start is None else start
        slot_count = state.snapshot.slot_count
        length = action.len if action.len is not None else target.len
        candidate = target.model_copy(
            update={
                "item_id": item_id or target.item_id,
                "start": new_start,
                "len": int(clamp(length, 1, slot_count - new_start)),
                "amount": target.amount if action.amount is None else max(0.0, action.amount),
                "memo": target.memo if action.memo is None else action.memo,
                "approved": False,
                "created_by": target.created_by or self._operator_name,
                "updated_by": self._operator_name,
            }
        )
        state.blocks = replace_block(state.blocks, self._place(candidate, state))
        state.applied += 1

    def _delete(self, index: int, action: BlockAction, state: _BatchState) -> None:
        item_id = self._resolve_item(index, action, state)
        start = self._resolve_slot(index, action, state)
        target = self._locate_block(action, item_id, start, state)
        if target is None:
            state.warn(index, "delete_block matched no block")
            return
        if target.approved:
            self.logger.debug("Approved block left in place", block_id=target.id)
            return
        state.blocks = remove_block(state.blocks, target.id)
        state.applied += 1
