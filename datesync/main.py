#!/usr/bin/env python3
"""
Sheet to CalDAV birthday and anniversary sync
Main entry point with scheduling and argument parsing
"""

import os
import sys
import logging
import argparse
from datetime import datetime

from datesync import __version__
from datesync.caldav_client import CalDAVClient, SyncError
from datesync.config import (get_caldav_config, get_source_config, setup_logging,
                             validate_environment)
from datesync.models import EventKind, InvalidDateFormat
from datesync.reconciler import reconcile
from datesync.scheduler import SchedulerService
from datesync.sheet_reader import SheetReader

BANNER = """
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║                  🎂  Date Sync Service  💍                   ║
║       Birthday and anniversary sheets to CalDAV events       ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
"""


def print_banner():
    """Print the banner"""
    print(BANNER)
    print(f"Version: {__version__}")
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("─" * 62)
    print()


def _connect_calendar():
    config = get_caldav_config()
    return CalDAVClient(
        config['server_url'],
        config['username'],
        config['password'],
        fail_open=config['fail_open']
    )


def main_sync():
    """Create the missing birthday and anniversary events.

    Returns False if the run was aborted (connection problem, bad date in a
    sheet), True otherwise, including runs where single creations failed.
    """
    logger = logging.getLogger(__name__)
    source_config = get_source_config()
    year = datetime.now().year

    try:
        reader = SheetReader(source_config['sheets_dir'], source_config['sort_on_read'])

        logger.info("Connecting to CalDAV server...")
        calendar = _connect_calendar()

        existing = calendar.list_existing(year)

        created_count = 0
        for source_name, kind in (
            (source_config['birthdays_source'], EventKind.BIRTHDAY),
            (source_config['anniversaries_source'], EventKind.ANNIVERSARY),
        ):
            entries = reader.read_entries(source_name)
            created_count += reconcile(entries, kind, existing, calendar, year)

        logger.info(f"Sync finished, {created_count} events created")
        return True

    except InvalidDateFormat as e:
        logger.error(f"Aborting sync, fix the sheet first: {e}")
        return False
    except SyncError as e:
        logger.error(f"Aborting sync: {e}")
        return False
    except Exception as e:
        logger.error(f"Error in main sync execution: {e}")
        if logger.isEnabledFor(logging.DEBUG):
            logger.exception("Traceback")
        return False


def diagnose():
    """Show the sheets found and the events already on the calendar"""
    source_config = get_source_config()
    reader = SheetReader(source_config['sheets_dir'], sort_on_read=False)

    print(f"Sheets directory: {source_config['sheets_dir']}")
    sources = reader.available_sources()
    if not sources:
        print("✗ No sheets found")
    for source_name in sources:
        print(f"  - {source_name}: {len(reader.read_entries(source_name))} entries")
    print("-" * 60)

    try:
        calendar = _connect_calendar()
        print(f"✓ Connected, using calendar '{calendar.calendar_name}'")
        existing = calendar.list_existing()
        print(f"✓ {len(existing)} birthday/anniversary events this year")
        for title in sorted(existing):
            print(f"  - {title}")
        return True
    except SyncError as e:
        print(f"✗ Error: {e}")
        return False


def health_check():
    """Health check function"""
    logger = logging.getLogger(__name__)
    logger.info("Performing health check...")

    try:
        import caldav  # noqa: F401
        import croniter  # noqa: F401
        import vobject  # noqa: F401
    except ImportError as e:
        logger.error(f"Health check failed: {e}")
        return False

    if not validate_environment():
        return False

    if os.getenv('HEALTH_CHECK_CONNECTIVITY', 'false').lower() == 'true':
        logger.info("Testing connectivity as part of health check...")
        return diagnose()

    logger.info("Health check passed")
    return True


def main():
    """Main function with argument parsing"""
    parser = argparse.ArgumentParser(description='Birthday and anniversary sync service')
    parser.add_argument('--diagnose', action='store_true', help='Run diagnostics')
    parser.add_argument('--health-check', action='store_true', help='Run health check')
    parser.add_argument('--once', action='store_true', help='Run sync once and exit')
    parser.add_argument('--no-banner', action='store_true', help='Skip banner')

    args = parser.parse_args()

    setup_logging()
    logger = logging.getLogger(__name__)

    if not args.no_banner:
        print_banner()

    if args.health_check:
        sys.exit(0 if health_check() else 1)

    if not validate_environment():
        sys.exit(1)

    if args.diagnose:
        sys.exit(0 if diagnose() else 1)

    run_mode = os.getenv('RUN_MODE', 'daemon').lower()

    if args.once or run_mode == 'once':
        logger.info("Running single sync operation...")
        sys.exit(0 if main_sync() else 1)

    scheduler = SchedulerService(main_sync, diagnose)
    scheduler.run_daemon()
    sys.exit(0)


if __name__ == "__main__":
    main()
