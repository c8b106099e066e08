"""
Plan Board Aggregate

Single owner of one production plan: the item master, the calendar range,
the plan density and the versioned block collection. Every mutation path
(plain click, edit form, drag gesture, assistant batch) ends in ``commit``,
which rejects work based on a stale collection version and re-stamps each
block's wall-clock anchors from the current slot table.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import date
from typing import Any

from pydantic import Field, PrivateAttr

from ....core.config import settings
from ....core.observability import get_logger
from ...shared.base import Entity
from ...shared.exceptions import BlockNotFoundError, ConcurrencyError, ValidationError
from ..services.density_converter import convert_slot_index, convert_slot_length
from ..services.placement_engine import PlacementEngine
from ..services.slot_mapper import SlotIndexMapper, clamp
from ..value_objects.calendar import (
    CalendarDay,
    build_default_calendar_days,
    default_week_start,
    extend_calendar_days_from,
    extend_calendar_days_to,
)
from ..value_objects.enums import Density, LaneScope, RoundingMode
from ..value_objects.plan_snapshot import PlanSnapshot
from ..value_objects.slot_table import SlotTable
from .block import Block, BlockCollection, remove_block, replace_block
from .item import Item

logger = get_logger(__name__)

EDITABLE_BLOCK_FIELDS = frozenset({"item_id", "start", "len", "amount", "memo"})
_GRID_FIELDS = frozenset({"calendar_days", "density"})


class PlanBoard(Entity):
    """
    Production plan aggregate.

    Blocks are stored in plan-density slots. Changing the density or the
    calendar range re-derives every block's slots from its wall-clock anchors,
    so a block stays on the same hours when the grid underneath it changes.
    """

    items: tuple[Item, ...] = ()
    calendar_days: tuple[CalendarDay, ...] = ()
    density: Density = Field(default_factory=lambda: Density(settings.DEFAULT_DENSITY))
    collection: BlockCollection = Field(default_factory=BlockCollection)
    materials: list[dict[str, Any]] = Field(default_factory=list)
    lane_scope: LaneScope = Field(default_factory=lambda: LaneScope(settings.LANE_SCOPE))
    operator_name: str = Field(default_factory=lambda: settings.DEFAULT_OPERATOR_NAME)

    _mapper: SlotIndexMapper | None = PrivateAttr(default=None)

    def __setattr__(self, name: str, value: Any) -> None:
        # direct grid assignment rebuilds addressing but leaves blocks on their slots
        super().__setattr__(name, value)
        if name in _GRID_FIELDS:
            self._mapper = None

    @classmethod
    def new(
        cls,
        week_start: date | None = None,
        items: Iterable[Item] = (),
        density: Density | None = None,
        **data: Any,
    ) -> "PlanBoard":
        """Empty board over the default week."""
        start = week_start or default_week_start()
        return cls(
            items=tuple(items),
            calendar_days=build_default_calendar_days(start),
            density=density or Density(settings.DEFAULT_DENSITY),
            **data,
        )

    # Derived addressing

    @property
    def mapper(self) -> SlotIndexMapper:
        if self._mapper is None:
            self._mapper = SlotIndexMapper(self.calendar_days, self.density)
        return self._mapper

    @property
    def slots(self) -> SlotTable:
        return self.mapper.table

    @property
    def slot_count(self) -> int:
        return self.mapper.slot_count

    @property
    def blocks(self) -> tuple[Block, ...]:
        return self.collection.blocks

    @property
    def version(self) -> int:
        return self.collection.version

    @property
    def week_start(self) -> date | None:
        """First date of the calendar range."""
        return self.calendar_days[0].date if self.calendar_days else None

    def snapshot(self) -> PlanSnapshot:
        """Freeze the current addressing frame."""
        return PlanSnapshot(
            calendar_days=self.calendar_days,
            density=self.density,
            slots=self.slots,
            slot_index_to_label=self.mapper.labels(),
        )

    def is_valid(self) -> bool:
        """Every block fits the plan and block ids are unique."""
        ids = [b.id for b in self.blocks]
        if len(ids) != len(set(ids)):
            return False
        return all(b.end <= self.slot_count for b in self.blocks)

    def get_block(self, block_id: str) -> Block:
        """
        Look up a block.

        Raises:
            BlockNotFoundError: If no block has ``block_id``
        """
        block = self.collection.get(block_id)
        if block is None:
            raise BlockNotFoundError(block_id)
        return block

    def placement(self) -> PlacementEngine:
        return PlacementEngine(self.lane_scope)

    def place(self, candidate: Block, blocks: Sequence[Block] | None = None) -> Block:
        """Resolve a candidate against its lane in the current (or given) blocks."""
        return self.placement().place(
            candidate,
            self.blocks if blocks is None else blocks,
            self.slot_count,
            self.slots.slots_per_day,
        )

    # Commit

    def commit(self, blocks: Sequence[Block], base_version: int) -> BlockCollection:
        """
        Replace the block collection.

        Args:
            blocks: New blocks, in plan-density slots
            base_version: Version the caller computed ``blocks`` from

        Returns:
            The committed collection

        Raises:
            ConcurrencyError: If the collection moved past ``base_version``
        """
        if base_version != self.version:
            raise ConcurrencyError(base_version, self.version)
        mapper = self.mapper
        self.collection = self.collection.with_blocks(mapper.anchor(b) for b in blocks)
        self.mark_updated()
        logger.debug("Block collection committed", version=self.version, blocks=len(blocks))
        return self.collection

    # Editing paths

    def _fallback_item_id(self, item_id: str | None) -> str | None:
        if item_id is None:
            return self.items[0].id if self.items else None
        if not any(item.id == item_id for item in self.items):
            raise ValidationError("item_id", item_id, "unknown item")
        return item_id

    def create_block_at(
        self, plan_slot: int, item_id: str | None = None, operator: str | None = None
    ) -> Block | None:
        """
        Create a one-slot block at a plan slot (the plain-click path).

        Args:
            plan_slot: Plan-density slot; clamped into the plan
            item_id: Item to produce; defaults to the first item
            operator: Name stamped on the block

        Returns:
            The placed block, or None when the plan has no items, no slots,
            or the slot is not a working slot

        Raises:
            ValidationError: If ``item_id`` is not in the item master
        """
        resolved_item = self._fallback_item_id(item_id)
        if resolved_item is None or self.slot_count == 0:
            return None
        start = int(clamp(plan_slot, 0, self.slot_count - 1))
        if self.mapper.slot_to_datetime(start) is None:
            return None

        name = operator or self.operator_name
        block = self.place(
            Block(item_id=resolved_item, start=start, len=1, created_by=name, updated_by=name)
        )
        self.commit((*self.blocks, block), self.version)
        logger.info("Block created", block_id=block.id, item_id=resolved_item, start=block.start)
        return self.collection.get(block.id)

    def edit_block(
        self, block_id: str, operator: str | None = None, **fields: Any
    ) -> Block | None:
        """
        Apply edit-form changes to a block.

        Approved blocks are left untouched. Any other edit clears approval.

        Args:
            block_id: Block to edit
            operator: Name stamped as ``updated_by``
            **fields: Any of ``item_id``, ``start``, ``len``, ``amount``, ``memo``

        Returns:
            The edited block, or None when the block is approved

        Raises:
            BlockNotFoundError: If the block does not exist
            ValidationError: If a field is not editable or the item is unknown
        """
        unknown = set(fields) - EDITABLE_BLOCK_FIELDS
        if unknown:
            name = sorted(unknown)[0]
            raise ValidationError(name, str(fields[name]), "field is not editable")

        target = self.get_block(block_id)
        if target.approved:
            logger.info("Approved block not edited", block_id=block_id)
            return None

        item_id = self._fallback_item_id(fields.get("item_id", target.item_id))
        last_slot = max(0, self.slot_count - 1)
        start = int(clamp(fields.get("start", target.start), 0, last_slot))
        length = int(clamp(fields.get("len", target.len), 1, max(1, self.slot_count - start)))
        candidate = target.model_copy(
            update={
                "item_id": item_id or target.item_id,
                "start": start,
                "len": length,
                "amount": max(0.0, float(fields.get("amount", target.amount))),
                "memo": str(fields.get("memo", target.memo)),
                "approved": False,
                "updated_by": operator or self.operator_name,
            }
        )
        placed = self.place(candidate)
        self.commit(replace_block(self.blocks, placed), self.version)
        return self.collection.get(block_id)

    def set_approved(self, block_id: str, approved: bool, operator: str | None = None) -> Block:
        """Lock or unlock a block."""
        target = self.get_block(block_id)
        if target.approved == approved:
            return target
        updated = target.model_copy(
            update={"approved": approved, "updated_by": operator or self.operator_name}
        )
        self.commit(replace_block(self.blocks, updated), self.version)
        logger.info("Block approval changed", block_id=block_id, approved=approved)
        return self.get_block(block_id)

    def delete_block(self, block_id: str) -> bool:
        """
        Delete a block unless it is approved.

        Returns:
            True if the block was removed

        Raises:
            BlockNotFoundError: If the block does not exist
        """
        target = self.get_block(block_id)
        if target.approved:
            logger.info("Approved block not deleted", block_id=block_id)
            return False
        self.commit(remove_block(self.blocks, block_id), self.version)
        return True

    def remove_item(self, item_id: str) -> int:
        """
        Remove an item and every block that produces it, approved or not.

        Returns:
            Number of blocks removed
        """
        if not any(item.id == item_id for item in self.items):
            return 0
        self.items = tuple(item for item in self.items if item.id != item_id)
        kept = tuple(b for b in self.blocks if b.item_id != item_id)
        removed = len(self.blocks) - len(kept)
        self.commit(kept, self.version)
        logger.info("Item removed", item_id=item_id, blocks_removed=removed)
        return removed

    # Grid changes

    def change_density(self, density: Density) -> None:
        """Switch the plan density, keeping blocks on the same hours."""
        if density is self.density:
            return
        previous = self.density

        def convert(block: Block) -> tuple[int, int]:
            return (
                convert_slot_index(block.start, previous, density, RoundingMode.FLOOR),
                convert_slot_length(block.len, previous, density, RoundingMode.CEIL),
            )

        self._regrid(self.calendar_days, density, convert)

    def extend_calendar_to(self, target_end: date) -> bool:
        """
        Append calendar days through ``target_end``.

        Returns:
            True if the range grew
        """
        days = extend_calendar_days_to(self.calendar_days, target_end)
        if len(days) == len(self.calendar_days):
            return False
        self._regrid(days, self.density, lambda b: (b.start, b.len))
        return True

    def extend_calendar_from(self, target_start: date) -> bool:
        """
        Prepend calendar days back to ``target_start``.

        Returns:
            True if the range grew
        """
        days = extend_calendar_days_from(self.calendar_days, target_start)
        added = len(days) - len(self.calendar_days)
        if added == 0:
            return False
        shift = added * self.slots.slots_per_day
        self._regrid(days, self.density, lambda b: (b.start + shift, b.len))
        return True

    def restore_blocks(self, blocks: Sequence[Block]) -> BlockCollection:
        """
        Replace all blocks with persisted ones.

        Each block is placed by its wall-clock anchors when they resolve in
        the current grid, otherwise by its stored slots.
        """
        resynced = _resync(blocks, self.mapper, lambda b: (b.start, b.len))
        return self.commit(resynced, self.version)

    def _regrid(
        self,
        calendar_days: Sequence[CalendarDay],
        density: Density,
        fallback: Callable[[Block], tuple[int, int]],
    ) -> None:
        mapper = SlotIndexMapper(calendar_days, density)
        slot_count = mapper.slot_count
        resynced = _resync(self.blocks, mapper, fallback)

        base_version = self.version
        self.calendar_days = tuple(calendar_days)
        self.density = density
        self._mapper = mapper
        self.commit(resynced, base_version)
        logger.info(
            "Plan grid rebuilt",
            density=density.value,
            days=len(self.calendar_days),
            slot_count=slot_count,
            blocks=len(resynced),
        )


def _resync(
    blocks: Sequence[Block],
    mapper: SlotIndexMapper,
    fallback: Callable[[Block], tuple[int, int]],
) -> list[Block]:
    slot_count = mapper.slot_count
    resynced = []
    for block in blocks:
        fallback_start, fallback_len = fallback(block)
        start, length = mapper.locate(block)
        start = fallback_start if start is None else start
        length = fallback_len if length is None else length
        if slot_count:
            start = int(clamp(start, 0, slot_count - 1))
            length = int(clamp(length, 1, slot_count - start))
        resynced.append(block.placed(max(0, start), max(1, length)))
    return resynced
