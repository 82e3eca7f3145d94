"""
Create the calendar events missing for a list of entries
"""

import logging
from typing import Dict, Optional, Sequence

from datesync.models import Entry, EventKind, build_event, derive_title

logger = logging.getLogger(__name__)


def reconcile(entries: Sequence[Entry], kind: EventKind, existing: Dict[str, str],
              gateway, year: Optional[int] = None) -> int:
    """Create an event for every entry whose title is not in ``existing``.

    Events are never updated: a title already present is skipped even if its
    date changed. Titles created here are added to ``existing`` so a title
    listed twice is only created once. A bad date raises InvalidDateFormat
    and stops the batch, a failed creation does not.

    Returns the number of events created.
    """
    created_count = 0

    for entry in entries:
        title = derive_title(entry.name, kind)
        if title in existing:
            logger.debug(f"Event '{title}' already exists, skipping")
            continue

        event = build_event(entry, kind, year)
        logger.info(f"Creating event '{title}' ({entry.raw_date})")
        if gateway.create_event(event):
            created_count += 1
            existing[title] = ''

    logger.info(f"Created {created_count} {kind.value} events from {len(entries)} entries")
    return created_count
