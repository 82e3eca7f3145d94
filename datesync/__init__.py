"""
Date Sync Package
Birthday and anniversary sheets to CalDAV synchronization service
"""

__version__ = "1.0.0"
__description__ = "Sync birthday and anniversary sheets into yearly CalDAV events"

from datesync.models import Entry, EventKind, CalendarEvent, InvalidDateFormat, derive_title, derive_event_dates
from datesync.sheet_reader import SheetReader
from datesync.caldav_client import CalDAVClient, SyncError
from datesync.reconciler import reconcile
from datesync.scheduler import SchedulerService
from datesync.config import setup_logging, validate_environment, get_source_config, get_scheduler_config

__all__ = [
    'Entry',
    'EventKind',
    'CalendarEvent',
    'InvalidDateFormat',
    'derive_title',
    'derive_event_dates',
    'SheetReader',
    'CalDAVClient',
    'SyncError',
    'reconcile',
    'SchedulerService',
    'setup_logging',
    'validate_environment',
    'get_source_config',
    'get_scheduler_config'
]
