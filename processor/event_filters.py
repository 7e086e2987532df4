"""Filter and sort stages for event listings.

Each stage is a pure function over a list of events. A stage whose
selector is empty returns its input unchanged.
"""
import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from processor.models import Event

logger = logging.getLogger(__name__)

ANY = 'all'
ONLINE = 'online'

_ESCAPED_CHAR = re.compile(r'\\(.?)', re.DOTALL)


def _id_set(ids: Iterable[Any]) -> Set[str]:
    return {str(i) for i in ids}


def _occurrence_pairs(pairs: Iterable[Any]) -> Set[Tuple[str, str]]:
    result = set()
    for pair in pairs:
        if isinstance(pair, dict):
            result.add((str(pair.get('id', '')), str(pair.get('occurrence', 0))))
        elif isinstance(pair, (list, tuple)) and len(pair) == 2:
            result.add((str(pair[0]), str(pair[1])))
        else:
            logger.debug(f"Ignoring malformed occurrence selector: {pair!r}")
    return result


def _occurrence_key(event: Event) -> Tuple[str, str]:
    return (event.id, str(event.occurrence_index))


def filter_included(events: List[Event], include: List[Any]) -> List[Event]:
    """Keep only events whose id is in ``include``."""
    if not include:
        return events
    wanted = _id_set(include)
    return [e for e in events if e.id in wanted]


def filter_excluded(events: List[Event], exclude: List[Any]) -> List[Event]:
    """Drop events whose id is in ``exclude``."""
    if not exclude:
        return events
    unwanted = _id_set(exclude)
    return [e for e in events if e.id not in unwanted]


def matches_venue(event: Event, venue_id: Any) -> bool:
    """
    Check an event against a venue id.

    Events without a venue are online events and only match ``"online"``.
    """
    if event.venue is not None:
        return event.venue.id == str(venue_id)
    return venue_id == ONLINE


def filter_venue(events: List[Event], venue: str) -> List[Event]:
    if not venue or venue == ANY:
        return events
    return [e for e in events if matches_venue(e, venue)]


def filter_organizer(events: List[Event], organizer: str) -> List[Event]:
    if not organizer or organizer == ANY:
        return events
    return [
        e for e in events
        if e.organizer is not None and e.organizer.id == str(organizer)
    ]


def sort_by_created(events: List[Event], order: str = 'asc') -> List[Event]:
    """Stable sort by creation date; any ``order`` but "asc" is descending."""
    return sorted(events, key=lambda e: e.created, reverse=(order != 'asc'))


def sort_by_start_date(events: List[Event]) -> List[Event]:
    # Stable: equal start dates keep insertion order
    return sorted(events, key=lambda e: e.start_date)


def filter_included_occurrences(
    events: List[Event],
    include_occurrences: List[Dict[str, Any]]
) -> List[Event]:
    """Keep only events whose ``(id, occurrence)`` pair is listed."""
    if not include_occurrences:
        return events
    wanted = _occurrence_pairs(include_occurrences)
    return [e for e in events if _occurrence_key(e) in wanted]


def filter_excluded_occurrences(
    events: List[Event],
    exclude_occurrences: List[Dict[str, Any]]
) -> List[Event]:
    """Drop events whose ``(id, occurrence)`` pair is listed."""
    if not exclude_occurrences:
        return events
    unwanted = _occurrence_pairs(exclude_occurrences)
    return [e for e in events if _occurrence_key(e) not in unwanted]


def parse_datetime(value: str) -> Optional[datetime]:
    """
    Parse an API date-time string.

    Args:
        value: Date or date-time such as ``2024-01-10 19:00:00``

    Returns:
        datetime or None if the value cannot be parsed
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def filter_ends_after(events: List[Event], now: datetime) -> List[Event]:
    """
    Drop events that ended before ``now``.

    The API keeps returning past occurrences of a series that still has
    future dates. Events ending exactly at ``now`` are kept; unparseable
    end dates are dropped.

    Args:
        events: Events to filter
        now: Current time in the API's timezone

    Returns:
        Events with ``end_date >= now``
    """
    kept = []
    for event in events:
        end = parse_datetime(event.end_date)
        if end is None:
            logger.debug(f"Dropping event {event.id} with unparseable end date {event.end_date!r}")
            continue
        if (end.tzinfo is None) != (now.tzinfo is None):
            end, reference = end.replace(tzinfo=None), now.replace(tzinfo=None)
        else:
            reference = now
        if end >= reference:
            kept.append(event)
    return kept


def strip_slashes(value: str) -> str:
    """Remove backslash escaping added by form/query transport."""
    return _ESCAPED_CHAR.sub(lambda m: m.group(1), value)


def search_titles(events: List[Event], search: str) -> List[Event]:
    """Case-insensitive title substring search."""
    if not search:
        return events
    needle = strip_slashes(search).lower()
    return [e for e in events if e.title and needle in e.title.lower()]


def paginate(events: List[Event], page: int, per_page: int, count: int) -> List[Event]:
    """
    Slice the final result set.

    Args:
        events: Fully filtered and sorted events
        page: 1-based page number; pagination is off unless positive
        per_page: Page size
        count: Maximum number of results when not paginating; -1 for all

    Returns:
        The requested slice, possibly empty
    """
    if page > 0:
        start = (page - 1) * per_page
        return events[start:start + per_page]
    if count > 0:
        return events[:count]
    return events
