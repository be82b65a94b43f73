"""
Unit tests for opening hours, the slot grid and conflict detection.
"""

from datetime import time

import pytest

from engine.conflicts import ConflictChecker, find_conflict, overlaps
from engine.opening_hours import OpeningHoursResolver, merge_intervals, select_rules
from engine.slot_grid import generate_start_times
from models.availability import AvailabilityRule, TimeInterval
from models.booking import BookingStatus, ResourceKey
from tests.helpers import (
    MONDAY,
    STAFF_ID,
    SUNDAY,
    TUESDAY,
    VENUE_ID,
    make_booking,
)

VENUE = ResourceKey(venue_id=VENUE_ID)
STAFF = ResourceKey(venue_id=VENUE_ID, staff_member_id=STAFF_ID)


def _rule(day_of_week, start, end, staff_member_id=None):
    return AvailabilityRule(
        venue_id=VENUE_ID,
        staff_member_id=staff_member_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
    )


class TestIntervals:
    def test_overlap_is_half_open(self):
        assert overlaps(600, 630, 615, 645)
        assert not overlaps(600, 630, 630, 660)
        assert not overlaps(630, 660, 600, 630)
        assert overlaps(600, 700, 620, 640)

    def test_merge_overlapping_and_touching(self):
        merged = merge_intervals(
            [
                TimeInterval(start=780, end=1080),
                TimeInterval(start=540, end=720),
                TimeInterval(start=720, end=800),
            ]
        )
        assert merged == [TimeInterval(start=540, end=1080)]

    def test_merge_keeps_gaps(self):
        merged = merge_intervals(
            [TimeInterval(start=840, end=1080), TimeInterval(start=540, end=720)]
        )
        assert [str(i) for i in merged] == ["09:00-12:00", "14:00-18:00"]


class TestRuleSelection:
    def test_staff_rules_take_precedence(self):
        rules = [_rule(2, time(9), time(18)), _rule(2, time(10), time(14), STAFF_ID)]
        selected = select_rules(rules, STAFF_ID, 2)
        assert len(selected) == 1
        assert selected[0].staff_member_id == STAFF_ID

    def test_staff_without_rule_that_day_is_off(self):
        rules = [_rule(1, time(9), time(18)), _rule(2, time(10), time(14), STAFF_ID)]
        assert select_rules(rules, STAFF_ID, 1) == []

    def test_staff_without_any_rules_follows_venue(self):
        rules = [_rule(1, time(9), time(18))]
        assert select_rules(rules, 99, 1) == rules

    def test_venue_ignores_staff_rules(self):
        rules = [_rule(2, time(10), time(14), STAFF_ID)]
        assert select_rules(rules, None, 2) == []


class TestOpeningHoursResolver:
    @pytest.mark.asyncio
    async def test_venue_open_on_weekday(self, repository):
        resolver = OpeningHoursResolver(repository)
        intervals = await resolver.resolve(VENUE, MONDAY)
        assert intervals == [TimeInterval(start=540, end=1080)]

    @pytest.mark.asyncio
    async def test_venue_closed_on_sunday(self, repository):
        resolver = OpeningHoursResolver(repository)
        assert await resolver.resolve(VENUE, SUNDAY) == []

    @pytest.mark.asyncio
    async def test_split_shift_is_merged(self, repository):
        repository.add_availability_rule(_rule(2, time(8), time(9, 30)))
        resolver = OpeningHoursResolver(repository)
        intervals = await resolver.resolve(VENUE, TUESDAY)
        assert intervals == [TimeInterval(start=480, end=1080)]

    @pytest.mark.asyncio
    async def test_staff_hours(self, repository):
        resolver = OpeningHoursResolver(repository)
        assert await resolver.resolve(STAFF, TUESDAY) == [TimeInterval(start=600, end=840)]
        assert await resolver.resolve(STAFF, MONDAY) == []


class TestSlotGrid:
    def test_grid_from_interval_start(self):
        starts = generate_start_times([TimeInterval(start=540, end=660)], 30, 30)
        assert starts == [540, 570, 600, 630]

    def test_candidate_must_end_inside_interval(self):
        starts = generate_start_times([TimeInterval(start=540, end=660)], 90, 30)
        assert starts == [540, 570]

    def test_service_longer_than_interval(self):
        assert generate_start_times([TimeInterval(start=540, end=570)], 60, 15) == []

    def test_multiple_intervals_sorted(self):
        starts = generate_start_times(
            [TimeInterval(start=840, end=900), TimeInterval(start=540, end=600)], 30, 30
        )
        assert starts == [540, 570, 840, 870]

    def test_rejects_non_positive_granularity(self):
        with pytest.raises(ValueError):
            generate_start_times([TimeInterval(start=540, end=600)], 30, 0)


class TestConflictChecker:
    def test_find_conflict_ignores_cancelled_and_excluded(self):
        cancelled = make_booking(
            id=1, status=BookingStatus.CANCELLED, cancellation_reason="ill"
        )
        active = make_booking(id=2)
        interval = TimeInterval(start=600, end=630)

        assert find_conflict(interval, [cancelled]) is None
        assert find_conflict(interval, [cancelled, active]).id == 2
        assert find_conflict(interval, [active], exclude_booking_id=2) is None

    @pytest.mark.asyncio
    async def test_back_to_back_is_available(self, repository):
        repository.add_booking(make_booking())
        checker = ConflictChecker(repository, OpeningHoursResolver(repository))

        assert await checker.is_available(VENUE, TUESDAY, TimeInterval(start=630, end=660))
        assert await checker.is_available(VENUE, TUESDAY, TimeInterval(start=570, end=600))
        assert not await checker.is_available(VENUE, TUESDAY, TimeInterval(start=615, end=645))

    @pytest.mark.asyncio
    async def test_resources_are_independent(self, repository):
        repository.add_booking(make_booking(staff_member_id=STAFF_ID))
        checker = ConflictChecker(repository, OpeningHoursResolver(repository))
        interval = TimeInterval(start=600, end=630)

        assert not await checker.is_available(STAFF, TUESDAY, interval)
        assert await checker.is_available(VENUE, TUESDAY, interval)
        assert await checker.is_available(STAFF, MONDAY, interval)

    @pytest.mark.asyncio
    async def test_slot_listing_around_existing_booking(self, repository):
        """Open 09:00-18:00, 30 min service and grid, booking at 10:00-10:30."""
        repository.add_booking(make_booking())
        checker = ConflictChecker(repository, OpeningHoursResolver(repository))

        slots = await checker.list_available_slots(VENUE, TUESDAY, 30, 30)
        free = {slot.start_time for slot in slots if slot.available}

        assert len(slots) == 18
        assert time(10, 0) not in free
        assert time(9, 30) in free
        assert time(10, 30) in free
        assert slots[-1].start_time == time(17, 30)
        assert slots[-1].end_time == time(18, 0)

    @pytest.mark.asyncio
    async def test_slot_listing_excluding_own_booking(self, repository):
        booking = repository.add_booking(make_booking())
        checker = ConflictChecker(repository, OpeningHoursResolver(repository))

        slots = await checker.list_available_slots(
            VENUE, TUESDAY, 30, 30, exclude_booking_id=booking.id
        )
        assert all(slot.available for slot in slots)

    @pytest.mark.asyncio
    async def test_slot_listing_is_repeatable(self, repository):
        repository.add_booking(make_booking())
        checker = ConflictChecker(repository, OpeningHoursResolver(repository))

        first = await checker.list_available_slots(VENUE, TUESDAY, 30, 15)
        second = await checker.list_available_slots(VENUE, TUESDAY, 30, 15)
        assert first == second

    @pytest.mark.asyncio
    async def test_closed_day_has_no_slots(self, repository):
        checker = ConflictChecker(repository, OpeningHoursResolver(repository))
        assert await checker.list_available_slots(VENUE, SUNDAY, 30, 30) == []
