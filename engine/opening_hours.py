"""
Opening hours resolution.

Turns the recurring availability rules of a venue into the concrete list of
open intervals for one resource on one date.
"""

from datetime import date
from typing import Iterable, List, Optional

from db.base import BookingRepository
from models.availability import AvailabilityRule, TimeInterval
from models.booking import ResourceKey
from utils.datetime_utils import day_of_week
from utils.logging_config import get_logger

logger = get_logger(__name__)


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """
    Union of intervals, sorted by start.

    Touching intervals (``[09:00, 12:00)`` and ``[12:00, 18:00)``) are merged
    into one because together they cover a contiguous range.
    """
    merged: List[TimeInterval] = []
    for interval in sorted(intervals, key=lambda i: (i.start, i.end)):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            if interval.end > last.end:
                merged[-1] = TimeInterval(start=last.start, end=interval.end)
        else:
            merged.append(interval)
    return merged


def select_rules(
    rules: List[AvailabilityRule], staff_member_id: Optional[int], weekday: int
) -> List[AvailabilityRule]:
    """
    Pick the rules that govern one resource on one weekday.

    A staff member with any rule of their own follows only their own rules,
    so a weekday without a staff rule is a day off. Staff without rules and
    venue-level bookings follow the venue-wide rules.
    """
    if staff_member_id is not None:
        own = [r for r in rules if r.staff_member_id == staff_member_id]
        if own:
            return [r for r in own if r.day_of_week == weekday]
    return [r for r in rules if r.staff_member_id is None and r.day_of_week == weekday]


class OpeningHoursResolver:
    """Resolves open intervals from the repository's availability rules."""

    def __init__(self, repository: BookingRepository):
        self.repository = repository

    async def resolve(self, resource: ResourceKey, day: date) -> List[TimeInterval]:
        """
        Open intervals of ``resource`` on ``day``, merged and sorted.

        An empty list means the resource is closed that day.
        """
        weekday = day_of_week(day)
        rules = await self.repository.list_availability_rules(resource.venue_id)
        selected = select_rules(rules, resource.staff_member_id, weekday)
        intervals = merge_intervals(
            TimeInterval.from_times(rule.start_time, rule.end_time) for rule in selected
        )
        if not intervals:
            logger.debug(f"{resource} closed on {day.isoformat()} (weekday {weekday})")
        return intervals
