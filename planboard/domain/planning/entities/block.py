"""
Block Entity

A production block: one item produced over a run of plan-density slots.
Blocks are immutable; every mutation produces a new block and a new
``BlockCollection`` version that the plan board commits.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import uuid4

from pydantic import Field

from ...shared.base import ValueObject


def new_block_id() -> str:
    """Generate a fresh block id."""
    return f"b_{uuid4().hex[:12]}"


class Block(ValueObject):
    """A scheduled production block in plan-density slot units."""

    id: str = Field(default_factory=new_block_id, min_length=1)
    item_id: str = Field(min_length=1)
    start: int = Field(default=0, ge=0)
    len: int = Field(default=1, ge=1)
    amount: float = 0
    memo: str = ""
    approved: bool = False
    created_by: str = ""
    updated_by: str = ""
    start_at: datetime | None = None
    end_at: datetime | None = None

    @property
    def end(self) -> int:
        """Exclusive end slot."""
        return self.start + self.len

    def overlap_with(self, other: "Block") -> int:
        """Number of slots shared with another block."""
        return max(0, min(self.end, other.end) - max(self.start, other.start))

    def placed(self, start: int, length: int) -> "Block":
        """Copy of this block at a new position."""
        return self.model_copy(update={"start": start, "len": length})

    def __str__(self) -> str:
        lock = " approved" if self.approved else ""
        return f"Block({self.id}, item={self.item_id}, [{self.start}, {self.end}){lock})"


class BlockCollection(ValueObject):
    """
    Versioned, immutable set of plan blocks.

    The version only moves forward; ``PlanBoard.commit`` uses it to detect a
    mutation path working from a stale collection.
    """

    blocks: tuple[Block, ...] = ()
    version: int = 0

    def __len__(self) -> int:
        return len(self.blocks)

    def get(self, block_id: str | None) -> Block | None:
        """Find a block by id."""
        if not block_id:
            return None
        return next((b for b in self.blocks if b.id == block_id), None)

    def with_blocks(self, blocks: Sequence[Block]) -> "BlockCollection":
        """Next version holding ``blocks``."""
        return BlockCollection(blocks=tuple(blocks), version=self.version + 1)


def replace_block(blocks: Sequence[Block], updated: Block) -> tuple[Block, ...]:
    """Swap the block with ``updated.id`` for ``updated``, keeping order."""
    return tuple(updated if b.id == updated.id else b for b in blocks)


def remove_block(blocks: Sequence[Block], block_id: str) -> tuple[Block, ...]:
    return tuple(b for b in blocks if b.id != block_id)
