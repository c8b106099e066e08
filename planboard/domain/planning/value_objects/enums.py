"""Domain enums for planning."""

from enum import Enum


class Density(str, Enum):
    """Timeline granularity."""

    HOUR = "hour"
    TWO_HOUR = "2hour"
    DAY = "day"

    @property
    def hour_step(self) -> int | None:
        """Step used when enumerating working hours; None means one slot per day."""
        if self is Density.HOUR:
            return 1
        if self is Density.TWO_HOUR:
            return 2
        if self is Density.DAY:
            return None
        raise AssertionError(f"Unhandled density: {self!r}")

    @property
    def is_daily(self) -> bool:
        """Check if a whole working day is one slot."""
        return self is Density.DAY

    @classmethod
    def coerce(cls, value: object, default: "Density | None" = None) -> "Density":
        """Lenient parse used at the payload boundary; unknown values fall back."""
        try:
            return cls(value)
        except ValueError:
            return default or cls.HOUR


class RoundingMode(str, Enum):
    """Rounding applied when converting between densities."""

    FLOOR = "floor"
    CEIL = "ceil"
    ROUND = "round"


class DragKind(str, Enum):
    """Pointer gesture kinds."""

    MOVE = "move"
    RESIZE_LEFT = "resizeLeft"
    RESIZE_RIGHT = "resizeRight"

    @property
    def can_change_day(self) -> bool:
        """Only moves follow the pointer into another day's lane."""
        return self is DragKind.MOVE


class ActionType(str, Enum):
    """Assistant action types."""

    CREATE = "create_block"
    UPDATE = "update_block"
    DELETE = "delete_block"

    @classmethod
    def normalize(cls, value: object) -> object:
        """Accept the short forms ``create``/``update``/``delete`` as well."""
        if isinstance(value, str):
            text = value.strip().lower()
            if text in {"create", "update", "delete"}:
                return f"{text}_block"
            return text
        return value


class LaneScope(str, Enum):
    """Which blocks a candidate is checked against for overlap."""

    ALL = "all"  # every other block in the plan
    ITEM = "item"  # blocks of the same item
    DAY = "day"  # blocks starting on the same calendar day
