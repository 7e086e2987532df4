"""Event processor that applies the listing pipeline to raw API events."""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from processor import event_filters
from processor.models import Event, QuerySpec
from processor.recurrence import expand_occurrences

logger = logging.getLogger(__name__)


class EventProcessor:
    """Turns a raw event list and a QuerySpec into the final listing."""

    ORDERBY_CREATED = 'created'

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        """
        Initialize the processor.

        Args:
            now: Clock returning the current time in the API's timezone
                (default: ``datetime.now``)
        """
        self.now = now or datetime.now

    def parse_events(self, raw_events: List[Dict[str, Any]]) -> List[Event]:
        """
        Convert API list items into Event objects.

        Args:
            raw_events: Items of the ``events`` field of an API response

        Returns:
            List of Event objects; malformed items are skipped
        """
        events = []
        for item in raw_events:
            if not isinstance(item, dict) or not isinstance(item.get('event', item), dict):
                logger.warning(f"Skipping malformed event item: {item!r}")
                continue
            events.append(Event.from_api(item))
        return events

    def process_events(self, events: List[Event], spec: QuerySpec) -> List[Event]:
        """
        Filter, order, search and paginate events.

        Id, venue and organizer filters always run first. Ordering by
        creation date then sorts and stops; the default date ordering
        expands recurring events, re-sorts by start date and applies the
        occurrence filters and the future cutoff. Title search and
        pagination run last in both cases.

        Args:
            events: Base event records
            spec: Query parameters

        Returns:
            Final list of events
        """
        events = event_filters.filter_included(events, spec.include)
        events = event_filters.filter_excluded(events, spec.exclude)
        events = event_filters.filter_venue(events, spec.venue)
        events = event_filters.filter_organizer(events, spec.organizer)

        if spec.orderby == self.ORDERBY_CREATED:
            events = event_filters.sort_by_created(events, spec.order)
        else:
            events = events + expand_occurrences(events)
            events = event_filters.sort_by_start_date(events)
            events = event_filters.filter_included_occurrences(
                events, spec.include_occurrences
            )
            events = event_filters.filter_excluded_occurrences(
                events, spec.exclude_occurrences
            )
            events = event_filters.filter_ends_after(events, self.now())

        events = event_filters.search_titles(events, spec.search)

        result = event_filters.paginate(events, spec.page, spec.per_page, spec.count)
        logger.debug(f"Listing produced {len(result)} of {len(events)} matching events")
        return result
