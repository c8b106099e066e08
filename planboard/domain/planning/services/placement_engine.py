"""
Placement Engine

Keeps blocks non-overlapping within a lane. Overlap is only ever resolved by
pushing the candidate to the right, past each conflicting block in start
order, then trimming its length to what still fits in the plan.

Which blocks form the lane is a separate concern (``select_lane``); the
resolution itself does not care how the lane was chosen.
"""

from collections.abc import Iterable, Sequence

from ....core.observability import get_logger
from ...shared.base import DomainService
from ..entities.block import Block
from ..value_objects.enums import LaneScope
from .slot_mapper import clamp, end_day_index


def resolve_overlap(
    candidate: Block, lane_blocks: Iterable[Block], slot_count: int
) -> Block:
    """
    Push ``candidate`` right until it clears every other block in the lane.

    Args:
        candidate: Block being placed
        lane_blocks: Blocks it must not overlap (its own id is ignored)
        slot_count: Plan slot count; the result fits inside it when it is positive

    Returns:
        Copy of the candidate with adjusted start and length
    """
    others = sorted(
        (b for b in lane_blocks if b.id != candidate.id), key=lambda b: b.start
    )
    start = candidate.start
    length = candidate.len
    last_slot = max(0, slot_count - 1)

    for other in others:
        overlap = min(start + length, other.end) - max(start, other.start)
        if overlap > 0:
            start = int(clamp(other.end, 0, last_slot))

    start = int(clamp(start, 0, last_slot))
    length = int(clamp(length, 1, max(1, slot_count - start)))
    if start == candidate.start and length == candidate.len:
        return candidate
    return candidate.placed(start, length)


def select_lane(
    candidate: Block,
    blocks: Sequence[Block],
    scope: LaneScope,
    slots_per_day: int,
) -> tuple[Block, ...]:
    """
    Blocks the candidate is checked against.

    Args:
        candidate: Block being placed
        blocks: Every block in the plan
        scope: Lane rule
        slots_per_day: Plan slots per day, for the per-day rule

    Returns:
        Lane blocks, excluding the candidate itself
    """
    others = tuple(b for b in blocks if b.id != candidate.id)
    if scope is LaneScope.ALL:
        return others
    if scope is LaneScope.ITEM:
        return tuple(b for b in others if b.item_id == candidate.item_id)
    if scope is LaneScope.DAY:
        # blocks running through any of the candidate's days
        per_day = max(1, slots_per_day)
        lo = (candidate.start // per_day) * per_day
        hi = (end_day_index(candidate.start, candidate.len, per_day) + 1) * per_day
        return tuple(b for b in others if b.start < hi and b.end > lo)
    raise AssertionError(f"Unhandled lane scope: {scope!r}")


class PlacementEngine(DomainService):
    """Places candidates into a plan using one lane rule."""

    def __init__(self, scope: LaneScope = LaneScope.ALL) -> None:
        self.scope = scope
        self.logger = get_logger(__name__)

    def place(
        self,
        candidate: Block,
        blocks: Sequence[Block],
        slot_count: int,
        slots_per_day: int,
    ) -> Block:
        """Resolve the candidate against its lane in ``blocks``."""
        lane = select_lane(candidate, blocks, self.scope, slots_per_day)
        placed = resolve_overlap(candidate, lane, slot_count)
        if placed is not candidate:
            self.logger.debug(
                "Block placement adjusted",
                block_id=candidate.id,
                requested_start=candidate.start,
                requested_len=candidate.len,
                start=placed.start,
                len=placed.len,
                lane_scope=self.scope.value,
            )
        return placed
