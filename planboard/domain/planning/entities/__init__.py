"""
Planning entities.

``PlanBoard`` is exported from ``planboard.domain.planning``; it depends on
the domain services, which in turn use the entities below.
"""

from .block import Block, BlockCollection, new_block_id, remove_block, replace_block
from .item import Item, build_item_key_map

__all__ = [
    "Block",
    "BlockCollection",
    "new_block_id",
    "remove_block",
    "replace_block",
    "Item",
    "build_item_key_map",
]
