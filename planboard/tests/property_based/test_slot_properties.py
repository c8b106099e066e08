"""
Property-based tests for slot addressing, density conversion, placement and
action resolution.

Uses Hypothesis to check the invariants the board relies on over generated
calendars, densities and block layouts.
"""

from datetime import date, timedelta

import pytest
from hypothesis import assume, given, settings, strategies as st

from planboard.domain.planning.entities.block import Block
from planboard.domain.planning.entities.item import Item
from planboard.domain.planning.services.action_resolver import ActionResolver
from planboard.domain.planning.services.density_converter import (
    convert_slot_index,
    convert_slot_length,
    slot_units_per_slot,
)
from planboard.domain.planning.services.placement_engine import resolve_overlap
from planboard.domain.planning.services.slot_mapper import (
    SlotIndexMapper,
    build_plan_snapshot,
)
from planboard.domain.planning.value_objects.calendar import CalendarDay
from planboard.domain.planning.value_objects.enums import Density, LaneScope, RoundingMode
from planboard.domain.planning.value_objects.slot_table import build_calendar_slots

densities = st.sampled_from(list(Density))


@st.composite
def calendar_day_strategy(draw, day: date):
    """Generate a calendar day with a random working window."""
    start_hour = draw(st.integers(min_value=0, max_value=23))
    end_hour = draw(st.integers(min_value=start_hour + 1, max_value=24))
    return CalendarDay(
        date=day,
        is_holiday=draw(st.booleans()),
        work_start_hour=start_hour,
        work_end_hour=end_hour,
    )


@st.composite
def calendar_strategy(draw, max_days: int = 10):
    """Generate a run of consecutive calendar days."""
    first = draw(st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 31)))
    count = draw(st.integers(min_value=1, max_value=max_days))
    return tuple(draw(calendar_day_strategy(first + timedelta(days=i))) for i in range(count))


@st.composite
def disjoint_lane_strategy(draw):
    """Generate pairwise disjoint blocks inside the first 60 slots."""
    cursor = 0
    blocks = []
    for index in range(draw(st.integers(min_value=0, max_value=8))):
        cursor += draw(st.integers(min_value=0, max_value=5))
        length = draw(st.integers(min_value=1, max_value=6))
        if cursor + length > 60:
            break
        blocks.append(Block(id=f"lane-{index}", item_id="item-a", start=cursor, len=length))
        cursor += length
    return blocks


class TestSlotTableProperties:
    """Slot table shape."""

    @given(calendar=calendar_strategy(), density=densities)
    @settings(max_examples=100, deadline=None)
    def test_uniform_width(self, calendar, density):
        """Property: every day is padded to the same width."""
        table = build_calendar_slots(calendar, density)

        assert table.slots_per_day >= 1
        assert table.slot_count == len(calendar) * table.slots_per_day
        for raw, padded in zip(table.raw_hours_by_day, table.hours_by_day):
            assert len(padded) == table.slots_per_day
            assert padded[: len(raw)] == raw
            assert all(hour is None for hour in padded[len(raw) :])

    @given(calendar=calendar_strategy(), density=densities)
    @settings(max_examples=100, deadline=None)
    def test_slot_round_trip(self, calendar, density):
        """Property: every real slot maps to an instant that maps back to it."""
        mapper = SlotIndexMapper(calendar, density)

        for index in range(mapper.slot_count):
            instant = mapper.slot_to_datetime(index)
            if instant is None:
                assert mapper.slot_index_to_label(index) == ""
                continue
            assert mapper.datetime_to_slot_index(instant) == index

    @given(calendar=calendar_strategy(), density=densities)
    @settings(max_examples=50, deadline=None)
    def test_day_end_boundary(self, calendar, density):
        """Property: the boundary after a day's last slot is the day's work end."""
        mapper = SlotIndexMapper(calendar, density)
        table = mapper.table

        for day_index, day in enumerate(calendar):
            real = table.day_slot_count(day_index)
            if not real or day.work_end_hour == 24:
                continue
            boundary = table.day_start(day_index) + real
            instant = mapper.slot_boundary_to_datetime(boundary)
            assert instant.date() == day.date
            assert mapper.datetime_to_slot_index(instant, allow_end_boundary=True) == boundary


class TestRelocationProperties:
    """Blocks re-located on a coarser grid."""

    @given(
        calendar=calendar_strategy(),
        target=st.sampled_from([Density.TWO_HOUR, Density.DAY]),
        data=st.data(),
    )
    @settings(max_examples=100, deadline=None)
    def test_coarser_grid_covers_block(self, calendar, target, data):
        """Property: a block re-located on a coarser grid still covers its hours."""
        hourly = SlotIndexMapper(calendar, Density.HOUR)
        day_index = data.draw(st.integers(min_value=0, max_value=len(calendar) - 1))
        real = hourly.table.day_slot_count(day_index)
        assume(real > 0 and calendar[day_index].work_end_hour < 24)
        offset = data.draw(st.integers(min_value=0, max_value=real - 1))
        length = data.draw(st.integers(min_value=1, max_value=real - offset))
        start = hourly.table.day_start(day_index) + offset
        block = hourly.anchor(Block(item_id="item-a", start=start, len=length))

        coarse = SlotIndexMapper(calendar, target)
        coarse_start, coarse_len = coarse.locate(block)

        assert coarse_start is not None and coarse_len is not None
        assert coarse.slot_to_datetime(coarse_start) <= block.start_at
        assert coarse.slot_boundary_to_datetime(coarse_start + coarse_len) >= block.end_at


class TestDensityConversionProperties:
    """Lossy conversion between densities."""

    @given(
        index=st.integers(min_value=0, max_value=10_000),
        source=densities,
        target=densities,
    )
    @settings(max_examples=200, deadline=None)
    def test_refining_round_trip_never_under_reports(self, index, source, target):
        """Property: floor then ceil through a finer density returns at least the start."""
        assume(slot_units_per_slot(target) <= slot_units_per_slot(source))

        there = convert_slot_index(index, source, target, RoundingMode.FLOOR)
        back = convert_slot_index(there, target, source, RoundingMode.CEIL)

        assert back >= index

    @given(
        index=st.integers(min_value=0, max_value=10_000),
        source=densities,
        target=densities,
    )
    @settings(max_examples=200, deadline=None)
    def test_floor_and_ceil_cover_the_slot(self, index, source, target):
        """Property: a floored start and ceiled end bracket the original slot."""
        source_units = slot_units_per_slot(source)
        target_units = slot_units_per_slot(target)

        start = convert_slot_index(index, source, target, RoundingMode.FLOOR)
        end = convert_slot_index(index + 1, source, target, RoundingMode.CEIL)

        assert start * target_units <= index * source_units
        assert end * target_units >= (index + 1) * source_units
        assert end > start

    @given(
        index=st.integers(min_value=0, max_value=10_000),
        source=densities,
        target=densities,
    )
    @settings(max_examples=200, deadline=None)
    def test_ceil_round_trip_never_under_reports(self, index, source, target):
        """Property: ceil there and ceil back never lands before the start."""
        there = convert_slot_index(index, source, target, RoundingMode.CEIL)

        assert convert_slot_index(there, target, source, RoundingMode.CEIL) >= index

    @given(
        length=st.integers(min_value=0, max_value=1_000),
        source=densities,
        target=densities,
        mode=st.sampled_from(list(RoundingMode)),
    )
    @settings(max_examples=200, deadline=None)
    def test_length_at_least_one(self, length, source, target, mode):
        """Property: converted lengths are never below one slot."""
        assert convert_slot_length(length, source, target, mode) >= 1


class TestPlacementProperties:
    """Overlap resolution."""

    @given(
        lane=disjoint_lane_strategy(),
        start=st.integers(min_value=0, max_value=70),
        length=st.integers(min_value=1, max_value=10),
    )
    @settings(max_examples=200, deadline=None)
    def test_result_clears_lane(self, lane, start, length):
        """Property: with room to spare the result overlaps no lane block."""
        candidate = Block(id="candidate", item_id="item-a", start=start, len=length)

        placed = resolve_overlap(candidate, lane, 1_000)

        assert placed.start >= candidate.start
        assert placed.len == candidate.len
        assert all(placed.overlap_with(other) == 0 for other in lane)

    @given(
        lane=disjoint_lane_strategy(),
        start=st.integers(min_value=0, max_value=100),
        length=st.integers(min_value=1, max_value=100),
        slot_count=st.integers(min_value=1, max_value=80),
    )
    @settings(max_examples=200, deadline=None)
    def test_result_fits_plan(self, lane, start, length, slot_count):
        """Property: the result always fits inside the plan."""
        candidate = Block(id="candidate", item_id="item-a", start=start, len=length)

        placed = resolve_overlap(candidate, lane, slot_count)

        assert 0 <= placed.start < slot_count
        assert 1 <= placed.len <= slot_count - placed.start


class TestActionResolverProperties:
    """Batch resolution over arbitrary descriptors."""

    descriptor = st.fixed_dictionaries(
        {"type": st.sampled_from(["create", "update", "delete", "create_block", "bogus"])},
        optional={
            "blockId": st.sampled_from(["b1", "b2", "missing", ""]),
            "itemId": st.sampled_from(["A", "B", "item-a", "Z", ""]),
            "startSlot": st.one_of(st.integers(min_value=-20, max_value=200), st.text(max_size=4)),
            "startLabel": st.sampled_from(["6/3 8:00", "6/7 8:00", "", "soon"]),
            "len": st.integers(min_value=-5, max_value=200),
            "amount": st.floats(allow_nan=True, allow_infinity=False),
        },
    )

    @pytest.fixture(scope="class")
    def frame(self):
        items = (Item(id="item-a", public_id="A"), Item(id="item-b", public_id="B"))
        calendar = tuple(
            CalendarDay(date=date(2025, 6, 2) + timedelta(days=i), is_holiday=i >= 5)
            for i in range(7)
        )
        return items, build_plan_snapshot(calendar, Density.HOUR)

    @given(actions=st.lists(descriptor, max_size=8))
    @settings(max_examples=100, deadline=None)
    def test_batch_never_raises_and_stays_in_plan(self, frame, actions):
        """Property: any batch resolves, and every block fits the plan."""
        items, snapshot = frame
        existing = (
            Block(id="b1", item_id="item-a", start=10, len=2),
            Block(id="b2", item_id="item-b", start=20, len=3, approved=True),
        )

        result = ActionResolver(items, LaneScope.ALL, "assistant").apply_actions(
            actions, existing, snapshot
        )

        assert any(b.id == "b2" and b.start == 20 and b.approved for b in result.blocks)
        for block in result.blocks:
            assert 0 <= block.start < snapshot.slot_count
            assert block.end <= snapshot.slot_count
            assert block.amount >= 0
