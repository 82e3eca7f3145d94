"""
CalDAV client for listing and creating birthday/anniversary events
"""

import hashlib
import logging
import re
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

import caldav
import vobject

from datesync.models import CalendarEvent

logger = logging.getLogger(__name__)

# Birthdays and anniversaries share one category on the server, the kind
# only survives in the title suffix.
EVENT_CATEGORY = 'Birthday'
UID_PREFIX = 'datesync'


class SyncError(Exception):
    """Raised when the calendar server cannot be used for a sync run"""


def event_uid(title: str) -> str:
    """Stable UID for a title, so a server can refuse a second copy"""
    slug = re.sub(r'[^a-z0-9]+', '-', title.lower()).strip('-')
    digest = hashlib.sha1(title.encode('utf-8')).hexdigest()[:8]  # nosec B324
    return f"{UID_PREFIX}-{slug}-{digest}" if slug else f"{UID_PREFIX}-{digest}"


def _categories(vevent) -> Iterable[str]:
    for line in vevent.contents.get('categories', []):
        value = line.value
        if isinstance(value, str):
            yield value
        else:
            yield from value


class CalDAVClient:
    """Client for the primary calendar of a CalDAV account"""

    def __init__(self, server_url: str, username: str, password: str, fail_open: bool = True):
        self.fail_open = fail_open
        try:
            self.client = caldav.DAVClient(
                url=server_url,
                username=username,
                password=password
            )
            self.principal = self.client.principal()
            calendars = self.principal.calendars()
        except Exception as e:
            logger.error(f"Error connecting to CalDAV server: {e}")
            raise SyncError(f"Could not connect to {server_url}: {e}") from e

        if not calendars:
            raise SyncError("No calendars found")

        # The first calendar of the principal is treated as the primary one
        self.calendar = calendars[0]
        logger.info(f"Using calendar: {self.calendar_name}")

    @property
    def calendar_name(self) -> str:
        return getattr(self.calendar, 'name', None) or str(getattr(self.calendar, 'url', 'unknown'))

    def list_existing(self, year: Optional[int] = None) -> Dict[str, str]:
        """Map title -> UID of the birthday-category events occurring in a year.

        If the server cannot be queried the error is logged and an empty
        mapping is returned, unless the client was built with fail_open=False.
        """
        if year is None:
            year = datetime.now().year

        start = datetime(year, 1, 1, 0, 0, 0)
        end = datetime(year, 12, 31, 23, 59, 59)

        try:
            results = self.calendar.search(start=start, end=end, event=True, expand=True)
        except Exception as e:
            logger.error(f"Error listing existing events for {year}: {e}")
            if not self.fail_open:
                raise SyncError(f"Could not list existing events: {e}") from e
            return {}

        existing = {}
        for result in results:
            try:
                cal = vobject.readOne(result.data)
            except Exception as e:
                logger.debug(f"Error parsing existing event: {e}")
                continue

            for vevent in cal.contents.get('vevent', []):
                if EVENT_CATEGORY not in _categories(vevent):
                    continue
                if not hasattr(vevent, 'summary'):
                    continue
                title = vevent.summary.value
                uid = vevent.uid.value if hasattr(vevent, 'uid') else ''
                if title in existing and existing[title] != uid:
                    logger.debug(f"Duplicate title on server: {title} ({existing[title]} replaced by {uid})")
                existing[title] = uid

        logger.info(f"Found {len(existing)} existing events in {year}")
        return existing

    def _build_ical(self, event: CalendarEvent) -> str:
        cal = vobject.iCalendar()

        vevent = cal.add('vevent')
        vevent.add('uid').value = event_uid(event.title)
        vevent.add('dtstart').value = event.start
        vevent.add('dtend').value = event.end
        vevent.add('summary').value = event.title
        vevent.add('categories').value = [EVENT_CATEGORY]
        vevent.add('transp').value = 'TRANSPARENT'
        vevent.add('class').value = 'PRIVATE'

        # All-day event
        vevent.dtstart.params['VALUE'] = ['DATE']
        vevent.dtend.params['VALUE'] = ['DATE']

        vevent.add('rrule').value = 'FREQ=YEARLY'

        for days_before in event.reminder_days:
            alarm = vevent.add('valarm')
            alarm.add('action').value = 'DISPLAY'
            alarm.add('trigger').value = timedelta(days=-days_before)
            alarm.add('description').value = _reminder_message(event.title, days_before)

        return cal.serialize()

    def create_event(self, event: CalendarEvent) -> bool:
        """Create one event, failures are logged and reported as False"""
        try:
            ical = self._build_ical(event)
            self.calendar.save_event(ical, no_overwrite=True)
        except Exception as e:
            logger.error(f"Error creating event '{event.title}': {e}")
            return False

        logger.info(f"Created event '{event.title}' starting {event.start.isoformat()}")
        logger.debug(f"  Reminders: {event.reminder_days} days before")
        return True


def _reminder_message(title: str, days_before: int) -> str:
    if days_before == 1:
        return f"Tomorrow: {title}"
    return f"In {days_before} days: {title}"
