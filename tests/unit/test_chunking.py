"""
Unit tests for date window chunking
"""

from datetime import date, timedelta

import pytest

from ingestion.chunking import TimeRangeChunks, chunk
from models.date_range import DateRange


class TestChunkPartition:
    """Chunks cover the window exactly, in order, without overlap"""

    @pytest.mark.parametrize("start,end", [
        (date(2024, 1, 1), date(2024, 1, 1)),
        (date(2024, 1, 1), date(2024, 1, 7)),
        (date(2024, 1, 1), date(2024, 1, 8)),
        (date(2024, 1, 1), date(2024, 1, 20)),
        (date(2023, 12, 25), date(2024, 3, 3)),
        (date(2024, 2, 26), date(2024, 3, 4)),
    ])
    def test_chunks_partition_window(self, start, end):
        chunks = list(chunk(start, end))

        assert chunks[0].start == start
        assert chunks[-1].end == end

        for current, following in zip(chunks, chunks[1:]):
            assert following.start == current.end + timedelta(days=1)

        for c in chunks:
            assert c.start <= c.end
            assert c.days <= 7

        covered = [day for c in chunks for day in c]
        expected = [start + timedelta(days=i) for i in range((end - start).days + 1)]
        assert covered == expected

    def test_twenty_day_window(self):
        """Jan 1-20 splits into two full weeks and a six-day tail"""
        chunks = list(chunk("2024-01-01", "2024-01-20"))

        assert chunks == [
            DateRange(date(2024, 1, 1), date(2024, 1, 7)),
            DateRange(date(2024, 1, 8), date(2024, 1, 14)),
            DateRange(date(2024, 1, 15), date(2024, 1, 20)),
        ]

    def test_single_day_window(self):
        chunks = list(chunk(date(2024, 5, 1), date(2024, 5, 1)))
        assert chunks == [DateRange(date(2024, 5, 1), date(2024, 5, 1))]

    def test_custom_chunk_size(self):
        chunks = list(chunk(date(2024, 1, 1), date(2024, 1, 5), days=2))

        assert [str(c) for c in chunks] == [
            "2024-01-01..2024-01-02",
            "2024-01-03..2024-01-04",
            "2024-01-05..2024-01-05",
        ]


class TestInvertedWindow:
    """A start after the end is empty, not an error"""

    def test_inverted_window_yields_nothing(self):
        assert list(chunk(date(2024, 1, 10), date(2024, 1, 1))) == []

    def test_inverted_window_has_zero_length(self):
        assert len(chunk(date(2024, 1, 10), date(2024, 1, 1))) == 0


class TestTimeRangeChunks:
    """Sequence behaviour"""

    def test_restartable(self):
        chunks = TimeRangeChunks(date(2024, 1, 1), date(2024, 2, 1))
        assert list(chunks) == list(chunks)

    @pytest.mark.parametrize("end,expected", [
        (date(2024, 1, 1), 1),
        (date(2024, 1, 7), 1),
        (date(2024, 1, 8), 2),
        (date(2024, 1, 20), 3),
        (date(2024, 12, 31), 53),
    ])
    def test_len_matches_iteration(self, end, expected):
        chunks = TimeRangeChunks(date(2024, 1, 1), end)

        assert len(chunks) == expected
        assert len(list(chunks)) == expected

    def test_rejects_zero_day_chunks(self):
        with pytest.raises(ValueError):
            TimeRangeChunks(date(2024, 1, 1), date(2024, 1, 2), days=0)

    def test_accepts_iso_strings(self):
        chunks = TimeRangeChunks("2024-03-01", "2024-03-03")

        assert chunks.start == date(2024, 3, 1)
        assert chunks.end == date(2024, 3, 3)


class TestDateRange:
    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            DateRange(date(2024, 1, 2), date(2024, 1, 1))

    def test_contains_and_days(self):
        window = DateRange(date(2024, 1, 1), date(2024, 1, 7))

        assert window.days == 7
        assert date(2024, 1, 7) in window
        assert date(2024, 1, 8) not in window
