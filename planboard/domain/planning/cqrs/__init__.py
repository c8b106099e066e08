"""
Write-side descriptors for the planning domain.

Block actions are the commands an assistant sends against a plan.
"""

from .actions import (
    BlockAction,
    BlockActionDescriptor,
    CreateBlockAction,
    DeleteBlockAction,
    UpdateBlockAction,
    action_type,
    parse_action,
    parse_actions,
)

__all__ = [
    "BlockAction",
    "BlockActionDescriptor",
    "CreateBlockAction",
    "UpdateBlockAction",
    "DeleteBlockAction",
    "action_type",
    "parse_action",
    "parse_actions",
]
