from datetime import date

import pytest

from planboard.domain.planning.entities.item import Item
from planboard.domain.planning.entities.plan_board import PlanBoard
from planboard.domain.planning.services.slot_mapper import SlotIndexMapper
from planboard.domain.planning.value_objects.calendar import build_default_calendar_days
from planboard.domain.planning.value_objects.enums import Density, LaneScope
from planboard.domain.planning.value_objects.geometry import LaneRect
from planboard.domain.planning.value_objects.plan_snapshot import PlanSnapshot

LANE_WIDTH = 100
LANE_HEIGHT = 20


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def week_start() -> date:
    """Monday 2 June 2025; Saturday and Sunday of that week are holidays."""
    return date(2025, 6, 2)


@pytest.fixture
def calendar_days(week_start: date):
    """Default week: five 8:00-18:00 working days and a holiday weekend."""
    return build_default_calendar_days(week_start)


@pytest.fixture
def items() -> tuple[Item, ...]:
    """Two items addressed by public code A and B."""
    return (
        Item(id="item-a", public_id="A", name="Alpha bracket"),
        Item(id="item-b", public_id="B", name="Bravo housing"),
    )


@pytest.fixture
def board(week_start: date, items: tuple[Item, ...]) -> PlanBoard:
    """Empty hourly plan over the default week (70 slots)."""
    return PlanBoard.new(week_start, items, Density.HOUR, lane_scope=LaneScope.ALL)


@pytest.fixture
def snapshot(board: PlanBoard) -> PlanSnapshot:
    return board.snapshot()


@pytest.fixture
def hour_mapper(calendar_days) -> SlotIndexMapper:
    return SlotIndexMapper(calendar_days, Density.HOUR)


@pytest.fixture
def lanes() -> dict[int, LaneRect]:
    """One 100px wide, 20px tall lane per day of the week, stacked vertically."""
    return {
        day: LaneRect(left=0, top=day * LANE_HEIGHT, width=LANE_WIDTH, height=LANE_HEIGHT)
        for day in range(7)
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
