"""Item master entry, reduced to what block placement needs."""

from collections.abc import Iterable

from pydantic import Field

from ...shared.base import ValueObject


class Item(ValueObject):
    """A producible item. ``public_id`` is the code planners and the assistant use."""

    id: str = Field(min_length=1)
    public_id: str | None = None
    name: str = ""

    @property
    def code(self) -> str:
        """Public code, falling back to the internal id."""
        return (self.public_id or "").strip() or self.id


def build_item_key_map(items: Iterable[Item]) -> dict[str, str]:
    """Map every accepted item key (internal id and public code) to the internal id."""
    key_map: dict[str, str] = {}
    for item in items:
        key_map[item.id] = item.id
        key_map[item.code] = item.id
    return key_map
