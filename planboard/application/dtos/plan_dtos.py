"""
Plan Data Transfer Objects.

Persisted plans and assistant replies are untrusted JSON. The sanitizers here
keep whatever is usable and drop the rest, so a partly broken payload still
loads. Field names on the wire are camelCase.
"""

import json
import math
import re
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ...core.config import settings
from ...core.observability import get_logger
from ...domain.planning.cqrs.actions import BlockAction, parse_actions
from ...domain.planning.entities.block import Block
from ...domain.planning.entities.item import Item
from ...domain.planning.value_objects.calendar import CalendarDay
from ...domain.planning.value_objects.enums import Density
from ...domain.planning.value_objects.plan_snapshot import PlanSnapshot

logger = get_logger(__name__)

PLAN_PAYLOAD_VERSION = 1

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class PayloadModel(BaseModel):
    """Base for wire DTOs: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlanPayload(PayloadModel):
    """DTO for a persisted plan."""

    version: Literal[1] = PLAN_PAYLOAD_VERSION
    week_start_iso: str = Field(alias="weekStartISO")
    density: Density = Density.HOUR
    calendar_days: list[CalendarDay] = Field(default_factory=list)
    materials: list[dict[str, Any]] = Field(default_factory=list)
    items: list[Item] = Field(default_factory=list)
    blocks: list[Block] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class AssistantResponse(PayloadModel):
    """DTO for a parsed assistant reply."""

    summary: str = ""
    actions: tuple[BlockAction, ...] = ()
    warnings: list[str] = Field(default_factory=list)


class BlockSummary(PayloadModel):
    """A block as the assistant sees it: public item code, label and instants."""

    id: str
    item_id: str
    start_slot: int
    start_label: str
    len: int
    amount: float
    memo: str
    approved: bool
    start_at: str | None = None
    end_at: str | None = None


class ItemSummary(PayloadModel):
    item_id: str
    name: str = ""


class PlanContext(PayloadModel):
    """DTO for the plan context sent along with an assistant request."""

    executed_at_iso: str = Field(alias="executedAtISO")
    range_start_iso: str = Field(alias="rangeStartISO")
    range_end_iso: str = Field(alias="rangeEndISO")
    week_start_iso: str = Field(alias="weekStartISO")
    density: Density
    slots_per_day: int
    slot_count: int
    slot_index_to_label: list[str]
    slot_headers: list[str] = Field(default_factory=list)
    calendar_days: list[CalendarDay]
    materials: list[dict[str, Any]] = Field(default_factory=list)
    items: list[ItemSummary] = Field(default_factory=list)
    blocks: list[BlockSummary] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


# Lenient field readers


def _as_str(value: Any, fallback: str = "") -> str:
    return value.strip() if isinstance(value, str) else fallback


def _as_number(value: Any, fallback: float = 0) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def _as_datetime(value: Any) -> datetime | None:
    text = _as_str(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _as_bool(value: Any, fallback: bool = False) -> bool:
    return value if isinstance(value, bool) else fallback


def _first(record: dict[str, Any], *keys: str) -> Any:
    """First truthy value among alternative spellings of a field."""
    for key in keys:
        value = record.get(key)
        if value:
            return value
    return None


# Sanitizers


def sanitize_calendar_days(raw: Any) -> list[CalendarDay]:
    """Calendar days with a parseable date and a valid working window."""
    if not isinstance(raw, list):
        return []
    days = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            day_date = date.fromisoformat(_as_str(entry.get("date")))
        except ValueError:
            continue
        try:
            days.append(
                CalendarDay(
                    date=day_date,
                    is_holiday=_as_bool(entry.get("isHoliday")),
                    work_start_hour=int(
                        _as_number(entry.get("workStartHour"), settings.DEFAULT_WORK_START_HOUR)
                    ),
                    work_end_hour=int(
                        _as_number(entry.get("workEndHour"), settings.DEFAULT_WORK_END_HOUR)
                    ),
                )
            )
        except PydanticValidationError:
            logger.warning("Calendar day dropped", date=day_date.isoformat())
    return days


def sanitize_items(raw: Any) -> list[Item]:
    """Items that carry both an id and a name."""
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        item_id = _as_str(entry.get("id"))
        name = _as_str(entry.get("name"))
        if not item_id or not name:
            continue
        public_id = _as_str(_first(entry, "publicId", "public_id", "itemKey", "item_key"))
        items.append(Item(id=item_id, public_id=public_id or None, name=name))
    return items


def sanitize_materials(raw: Any) -> list[dict[str, Any]]:
    """Materials with an id and a name, reduced to ``{id, name, unit}``."""
    if not isinstance(raw, list):
        return []
    materials = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        material_id = _as_str(entry.get("id"))
        name = _as_str(entry.get("name"))
        if not material_id or not name:
            continue
        materials.append({"id": material_id, "name": name, "unit": _as_str(entry.get("unit"))})
    return materials


def sanitize_blocks(raw: Any) -> list[Block]:
    """Blocks with an id and item id; numbers coerced, length at least one."""
    if not isinstance(raw, list):
        return []
    blocks = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        block_id = _as_str(entry.get("id"))
        item_id = _as_str(entry.get("itemId"))
        if not block_id or not item_id:
            continue
        try:
            blocks.append(
                Block(
                    id=block_id,
                    item_id=item_id,
                    start=max(0, int(_as_number(entry.get("start")))),
                    len=max(1, int(_as_number(entry.get("len"), 1))),
                    amount=_as_number(entry.get("amount")),
                    memo=entry.get("memo") if isinstance(entry.get("memo"), str) else "",
                    approved=_as_bool(entry.get("approved")),
                    created_by=_as_str(_first(entry, "createdBy", "created_by")),
                    updated_by=_as_str(_first(entry, "updatedBy", "updated_by")),
                    start_at=_as_datetime(_first(entry, "startAt", "start_at")),
                    end_at=_as_datetime(_first(entry, "endAt", "end_at")),
                )
            )
        except PydanticValidationError:
            logger.warning("Block dropped", block_id=block_id)
    return blocks


def parse_plan_payload(raw: Any) -> PlanPayload | None:
    """
    Sanitize a persisted plan.

    Args:
        raw: Decoded JSON object

    Returns:
        PlanPayload, or None when the payload has the wrong version or no
        usable week start
    """
    if not isinstance(raw, dict):
        return None
    if raw.get("version") != PLAN_PAYLOAD_VERSION:
        return None
    calendar_days = sanitize_calendar_days(raw.get("calendarDays"))
    week_start_iso = _as_str(raw.get("weekStartISO")) or (
        calendar_days[0].date.isoformat() if calendar_days else ""
    )
    if not week_start_iso:
        return None
    return PlanPayload(
        week_start_iso=week_start_iso,
        density=Density.coerce(raw.get("density")),
        calendar_days=calendar_days,
        materials=sanitize_materials(raw.get("materials")),
        items=sanitize_items(raw.get("items")),
        blocks=sanitize_blocks(raw.get("blocks")),
    )


# Assistant replies


def extract_json_payload(text: str) -> str | None:
    """
    Pull the JSON document out of a model reply.

    A fenced code block wins; otherwise the span from the first ``{`` to the
    last ``}``.
    """
    fence = _FENCE_PATTERN.search(text)
    if fence and fence.group(1).strip():
        return fence.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start : end + 1].strip()


def parse_assistant_response(text: str) -> AssistantResponse:
    """
    Parse a model reply into a summary and validated actions.

    A reply without a JSON object is kept as a plain summary with no actions.
    """
    payload = extract_json_payload(text or "")
    if payload is None:
        return AssistantResponse(
            summary=(text or "").strip(), warnings=["The reply contained no JSON object"]
        )
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.warning("Assistant reply is not valid JSON", error=str(exc))
        return AssistantResponse(
            summary=(text or "").strip(), warnings=[f"The reply JSON is invalid: {exc.msg}"]
        )
    if not isinstance(decoded, dict):
        return AssistantResponse(warnings=["The reply JSON is not an object"])

    actions, warnings = parse_actions(decoded.get("actions"))
    summary = decoded.get("summary")
    return AssistantResponse(
        summary=summary.strip() if isinstance(summary, str) else "",
        actions=actions,
        warnings=warnings,
    )


class AssistantRequest(PayloadModel):
    """What an assistant call is prompted with, and the frame its reply refers to."""

    executed_at: datetime
    range_start: date
    range_end: date
    context: str
    snapshot: PlanSnapshot


class AssistantOutcome(PayloadModel):
    """Result of applying one assistant reply to the plan."""

    summary: str = ""
    warnings: list[str] = Field(default_factory=list)
    applied: int = 0
    version: int = 0
    correlation_id: str = ""
