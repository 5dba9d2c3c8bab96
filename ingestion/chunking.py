"""
Split a date window into week-long chunks.

Each chunk keeps one platform request inside the API's limits. Chunks are
contiguous, never overlap, and together cover the window exactly; the last
one is clamped to the window end.
"""

from datetime import timedelta
from typing import Iterator

from models.date_range import DateLike, DateRange, to_date

DEFAULT_CHUNK_DAYS = 7


class TimeRangeChunks:
    """
    Lazy, restartable sequence of chunks.

    Iterating it twice yields the same chunks; nothing is computed until
    iteration.
    """

    def __init__(self, start: DateLike, end: DateLike, days: int = DEFAULT_CHUNK_DAYS):
        if days < 1:
            raise ValueError("Chunk size must be at least one day")
        self.start = to_date(start)
        self.end = to_date(end)
        self.days = days

    def __iter__(self) -> Iterator[DateRange]:
        step = timedelta(days=self.days)
        span = timedelta(days=self.days - 1)
        cursor = self.start

        while cursor <= self.end:
            yield DateRange(cursor, min(cursor + span, self.end))
            cursor += step

    def __len__(self) -> int:
        if self.start > self.end:
            return 0
        total_days = (self.end - self.start).days + 1
        return -(-total_days // self.days)

    def __repr__(self) -> str:
        return f"TimeRangeChunks({self.start.isoformat()}, {self.end.isoformat()}, days={self.days})"


def chunk(start: DateLike, end: DateLike, days: int = DEFAULT_CHUNK_DAYS) -> TimeRangeChunks:
    """
    Partition [start, end] into chunks of at most `days` days.

    An inverted window (start after end) yields no chunks.
    """
    return TimeRangeChunks(start, end, days)
