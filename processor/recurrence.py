"""Expansion of recurring events into per-occurrence records."""
import logging
from typing import List

from processor.models import Event

logger = logging.getLogger(__name__)


def expand_occurrences(events: List[Event]) -> List[Event]:
    """
    Build one synthetic record per occurrence of each recurring event.

    A schedule entry whose dates equal the event's own dates is the
    canonical instance already represented by the base record and is
    skipped.

    Args:
        events: Base event records

    Returns:
        Occurrence records only; the caller merges them with ``events``
    """
    occurrences = []

    for event in events:
        if not event.repeats:
            continue

        for index, entry in enumerate(event.repeat_schedule):
            same_start = entry.start_date == event.start_date
            same_end = entry.end_date == event.end_date
            if same_start and same_end:
                continue
            occurrences.append(event.with_dates(entry, index))

    if occurrences:
        logger.debug(f"Expanded {len(occurrences)} recurring occurrences")
    return occurrences


def expand(events: List[Event]) -> List[Event]:
    """Return ``events`` followed by all of their expanded occurrences."""
    return list(events) + expand_occurrences(events)
