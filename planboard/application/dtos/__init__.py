"""Data Transfer Objects for plan payloads and assistant exchanges."""

from .plan_dtos import (
    AssistantOutcome,
    AssistantRequest,
    AssistantResponse,
    BlockSummary,
    ItemSummary,
    PlanContext,
    PlanPayload,
    extract_json_payload,
    parse_assistant_response,
    parse_plan_payload,
    sanitize_blocks,
    sanitize_calendar_days,
    sanitize_items,
    sanitize_materials,
)

__all__ = [
    "AssistantOutcome",
    "AssistantRequest",
    "AssistantResponse",
    "BlockSummary",
    "ItemSummary",
    "PlanContext",
    "PlanPayload",
    "extract_json_payload",
    "parse_assistant_response",
    "parse_plan_payload",
    "sanitize_blocks",
    "sanitize_calendar_days",
    "sanitize_items",
    "sanitize_materials",
]
