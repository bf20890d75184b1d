"""Time-of-day intervals and the overlap predicate shared by slot listing and booking checks.

Times are handled as minutes since midnight. Every interval is half-open,
``[start, end)``, so two intervals that merely touch (10:00-11:00 and
11:00-12:00) do not overlap.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time

from studio.core import config
from studio.scheduling.errors import InvalidDate, InvalidTime

MINUTES_PER_DAY = 24 * 60

_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')


@dataclass(frozen=True)
class TimeInterval:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f'Interval start ({self.start}) must be before its end ({self.end}).')

    @classmethod
    def from_times(cls, start: time, end: time) -> 'TimeInterval':
        return cls(to_minutes(start), to_minutes(end))

    @classmethod
    def from_duration(cls, start: int | time, duration_minutes: int) -> 'TimeInterval':
        start_minutes = to_minutes(start) if isinstance(start, time) else start
        return cls(start_minutes, start_minutes + duration_minutes)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f'{format_minutes(self.start)}-{format_minutes(self.end)}'


def overlaps(first: TimeInterval, second: TimeInterval) -> bool:
    return first.start < second.end and second.start < first.end


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def to_time(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f'{minutes} minutes is outside a single day.')
    return time(minutes // 60, minutes % 60)


def format_minutes(minutes: int) -> str:
    # Ends may run past midnight; keep them readable instead of wrapping.
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def parse_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date.

    Raises:
        InvalidDate: the value is malformed or not a real calendar day.
    """
    normalized = (value or '').strip()
    if not _DATE_PATTERN.match(normalized):
        raise InvalidDate(value)
    try:
        return datetime.strptime(normalized, config.DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidDate(value) from exc


def parse_time(value: str) -> time:
    """Parse an ``HH:MM`` time of day (hours may be a single digit)."""
    normalized = (value or '').strip()
    if not _TIME_PATTERN.match(normalized):
        raise InvalidTime(value)
    hours, minutes = normalized.split(':')
    return time(int(hours), int(minutes))


def weekday_index(target_date: date) -> int:
    """Day of week with Sunday as 0 and Saturday as 6."""
    return target_date.isoweekday() % 7
