"""Candidate start times on a fixed granularity grid."""

from typing import Iterable, List

from models.availability import TimeInterval


def generate_start_times(
    intervals: Iterable[TimeInterval], duration_minutes: int, granularity_minutes: int
) -> List[int]:
    """
    Every start minute at which a booking of ``duration_minutes`` fits.

    Each open interval contributes ``start, start + g, start + 2g, ...`` for
    as long as the whole booking ends at or before the interval's end.

    Raises:
        ValueError: If duration or granularity is not positive
    """
    if duration_minutes <= 0:
        raise ValueError(f"Duration must be positive, got {duration_minutes}")
    if granularity_minutes <= 0:
        raise ValueError(f"Granularity must be positive, got {granularity_minutes}")

    starts = set()
    for interval in intervals:
        minute = interval.start
        while minute + duration_minutes <= interval.end:
            starts.add(minute)
            minute += granularity_minutes
    return sorted(starts)
