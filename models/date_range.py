from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Union

DateLike = Union[date, str]


def to_date(value: DateLike) -> date:
    """Accept a date, a datetime (its calendar day) or an ISO YYYY-MM-DD string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range"""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"DateRange start {self.start} is after end {self.end}")

    @classmethod
    def single_day(cls, day: date) -> "DateRange":
        return cls(day, day)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __iter__(self):
        day = self.start
        while day <= self.end:
            yield day
            day += timedelta(days=1)

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
