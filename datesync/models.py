"""
Entries, event kinds and the title/date rules shared by the sync
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# Reminder offsets in days before the event
REMINDER_DAYS = [1, 7]


class InvalidDateFormat(ValueError):
    """Raised when a source date is not a usable DD/MM value"""


class EventKind(Enum):
    BIRTHDAY = "birthday"
    ANNIVERSARY = "anniversary"

    @property
    def suffix(self) -> str:
        return f"'s {self.value}"


@dataclass
class Entry:
    """One row read from a source"""
    name: str
    raw_date: str


@dataclass
class CalendarEvent:
    """A yearly, private, transparent all-day event ready to be created"""
    title: str
    start: date
    end: date
    kind: EventKind = EventKind.BIRTHDAY
    reminder_days: List[int] = field(default_factory=lambda: list(REMINDER_DAYS))


def derive_title(name: str, kind: EventKind) -> str:
    """Build the event title, which is also the dedup key"""
    return f"{name}{kind.suffix}"


def _parse_day_month(raw_date: str) -> Tuple[int, int]:
    parts = (raw_date or '').strip().split('/')
    if len(parts) < 2:
        raise InvalidDateFormat(f"Invalid date format: {raw_date!r}, expected DD/MM")

    try:
        day = int(parts[0].strip())
        month = int(parts[1].strip())
    except ValueError:
        raise InvalidDateFormat(f"Invalid date format: {raw_date!r}, expected DD/MM") from None

    if not 1 <= day <= 31:
        raise InvalidDateFormat(f"Invalid day in {raw_date!r}")
    if not 1 <= month <= 12:
        raise InvalidDateFormat(f"Invalid month in {raw_date!r}")
    return day, month


def derive_event_dates(raw_date: str, year: Optional[int] = None) -> Tuple[date, date]:
    """Compute the (start, end) dates of the event for a DD/MM value.

    The anchor year defaults to the current year. Days past the end of the
    month roll over into the next month (31/04 becomes 1 May), the end date
    is the day after the start.
    """
    day, month = _parse_day_month(raw_date)
    if year is None:
        year = datetime.now().year

    start = date(year, month, 1) + timedelta(days=day - 1)
    if start.month != month:
        logger.warning(f"Date {raw_date} does not exist in {year}, event starts on {start.isoformat()}")

    return start, start + timedelta(days=1)


def build_event(entry: Entry, kind: EventKind, year: Optional[int] = None) -> CalendarEvent:
    start, end = derive_event_dates(entry.raw_date, year)
    return CalendarEvent(
        title=derive_title(entry.name, kind),
        start=start,
        end=end,
        kind=kind,
    )
