"""
Block action descriptors for the planning domain.

Actions are the write requests an assistant (or any other batch client) sends
against the plan. Raw descriptors are loose JSON; they are validated up front
into one of three closed variants so the resolver never sees an unknown shape.
"""

import math
from collections.abc import Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ....core.observability import get_logger
from ...shared.exceptions import ActionParseError
from ..value_objects.enums import ActionType

logger = get_logger(__name__)


class BlockAction(BaseModel):
    """Fields shared by every block action; all references are optional."""

    model_config = ConfigDict(
        frozen=True,  # Actions are immutable
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    block_id: str | None = None
    item_id: str | None = None
    start_slot: int | None = None
    start_label: str | None = None
    len: int | None = None
    amount: float | None = None
    memo: str | None = None

    @field_validator("block_id", "item_id", "start_label", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("start_slot", "len", mode="before")
    @classmethod
    def _finite_number_or_missing(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            try:
                value = float(value)
            except ValueError:
                return None
        if isinstance(value, float):
            if not math.isfinite(value):
                return None
            return math.trunc(value)
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_or_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CreateBlockAction(BlockAction):
    """Place a new block for an item at a slot."""

    type: Literal["create_block"] = ActionType.CREATE.value


class UpdateBlockAction(BlockAction):
    """Change an existing block's item, position, length or content."""

    type: Literal["update_block"] = ActionType.UPDATE.value


class DeleteBlockAction(BlockAction):
    """Remove an existing block."""

    type: Literal["delete_block"] = ActionType.DELETE.value


BlockActionDescriptor = Annotated[
    Union[CreateBlockAction, UpdateBlockAction, DeleteBlockAction],
    Field(discriminator="type"),
]

_descriptor_adapter: TypeAdapter[BlockActionDescriptor] = TypeAdapter(
    BlockActionDescriptor
)


def action_type(action: BlockAction) -> ActionType:
    """Typed discriminator of a parsed action."""
    return ActionType(action.type)  # type: ignore[attr-defined]


def parse_action(raw: Any, index: int = 0) -> BlockAction:
    """
    Validate one raw descriptor.

    Args:
        raw: Decoded JSON object
        index: Position in the batch, used in error messages

    Returns:
        One of the three action variants

    Raises:
        ActionParseError: If the descriptor is not an object, has an unknown
            type, or carries fields of the wrong type
    """
    if not isinstance(raw, dict):
        raise ActionParseError(index, f"expected an object, got {type(raw).__name__}")
    descriptor = dict(raw)
    descriptor["type"] = ActionType.normalize(descriptor.get("type"))
    if descriptor["type"] not in {t.value for t in ActionType}:
        raise ActionParseError(index, f"unknown action type {raw.get('type')!r}")
    try:
        return _descriptor_adapter.validate_python(descriptor)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'action'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ActionParseError(index, problems) from exc


def parse_actions(raw: Any) -> tuple[tuple[BlockAction, ...], list[str]]:
    """
    Validate a batch of raw descriptors.

    Malformed descriptors are dropped with a warning; the rest of the batch
    is kept in order.

    Returns:
        Parsed actions and warnings
    """
    if raw is None:
        return (), []
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        logger.warning("Action list rejected", received=type(raw).__name__)
        return (), [f"actions must be a list, got {type(raw).__name__}"]

    actions: list[BlockAction] = []
    warnings: list[str] = []
    for index, entry in enumerate(raw):
        try:
            actions.append(parse_action(entry, index))
        except ActionParseError as exc:
            logger.warning("Action descriptor rejected", index=index, reason=exc.message)
            warnings.append(exc.message)
    return tuple(actions), warnings
