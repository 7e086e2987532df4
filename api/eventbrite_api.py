"""Cached, filtered access to the connected Eventbrite account."""
import json
import logging
from typing import Any, Dict, List, Optional

import requests

from cache.request_cache import RequestCache
from cache.request_key import build_key
from client.exceptions import AuthUnavailable
from processor.event_filters import matches_venue
from processor.event_processor import EventProcessor
from processor.models import Event, QuerySpec
from storage.settings_store import DictSettingsStore

logger = logging.getLogger(__name__)

TICKET_WIDGET_URL = 'http://www.eventbrite.com/tickets-external'


class EventbriteAPI:
    """
    Query layer over the Eventbrite API.

    Every API call goes through the request cache. Read methods never
    raise: fetch failures are logged and produce empty results so that
    page rendering degrades instead of breaking.
    """

    SERVICE_NAME = 'eventbrite'
    SETTINGS_GROUP = 'eventbrite'
    EVENT_STATUSES = 'live,started'

    # Keys evicted when the account is disconnected
    FLUSH_METHODS = ('user_list_events', 'user_list_venues')

    def __init__(
        self,
        auth,
        cache: Optional[RequestCache] = None,
        settings=None,
        schedule=None,
        processor: Optional[EventProcessor] = None,
        service_name: str = SERVICE_NAME
    ):
        """
        Initialize the API.

        Args:
            auth: Provider exposing ``get_auth_service()``
            cache: Request cache (default: in-memory RequestCache)
            settings: Settings store with ``get_setting(key, group, default)``
            schedule: Periodic refresh job with ``cancel()``, if any
            processor: Event pipeline (default: EventProcessor())
            service_name: Service name matched by ``flush_api_caches``
        """
        self.auth = auth
        self.cache = cache or RequestCache()
        self.settings = settings or DictSettingsStore()
        self.schedule = schedule
        self.processor = processor or EventProcessor()
        self.service_name = service_name

    def _get_auth_request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        force: bool = False
    ) -> Dict[str, Any]:
        params = params or {}

        def compute():
            service = self.auth.get_auth_service()
            if service is None:
                raise AuthUnavailable("Eventbrite API: failed to get auth service")
            return service.get(method, params)

        return self.cache.get_or_compute(
            build_key(method, params), compute, force_refresh=force
        )

    def _fetch(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        force: bool = False
    ) -> Optional[Dict[str, Any]]:
        try:
            response = self._get_auth_request(method, params, force)
        except Exception as e:
            logger.warning(
                f"Fetching {method} failed, returning no data: {e}",
                extra={'error_type': type(e).__name__}
            )
            return None
        return response if isinstance(response, dict) else None

    def get_user_events(
        self,
        params: Optional[Dict[str, Any]] = None,
        force: bool = False
    ) -> List[Event]:
        """
        Get the connected user's events.

        Args:
            params: Query parameters, see QuerySpec for names and defaults
            force: Bypass cache freshness and refetch

        Returns:
            List of Event objects, empty on any fetch failure
        """
        spec = QuerySpec.from_params(params)
        request_args = {
            'event_statuses': self.EVENT_STATUSES,
            'display': spec.display,
        }

        response = self._fetch('user_list_events', request_args, force)
        if not response or not response.get('events'):
            return []

        events = self.processor.parse_events(response['events'])
        return self.processor.process_events(events, spec)

    def get_venue_events(
        self,
        venue_id: Any,
        params: Optional[Dict[str, Any]] = None,
        force: bool = False
    ) -> List[Event]:
        """
        Get the user's events at a venue.

        The venue filter is applied to the already paginated listing, so
        a page may hold fewer than ``per_page`` venue events even when
        later pages have more.

        Args:
            venue_id: Venue id, or ``"online"`` for events without a venue
            params: Query parameters as for ``get_user_events``
            force: Bypass cache freshness and refetch

        Returns:
            List of Event objects
        """
        events = self.get_user_events(params, force)
        return [e for e in events if matches_venue(e, venue_id)]

    def get_user_venues(self, force: bool = False) -> List[Dict[str, Any]]:
        response = self._fetch('user_list_venues', force=force)
        if response and response.get('venues'):
            return response['venues']
        return []

    def get_venue(self, venue_id: Any) -> Optional[Dict[str, Any]]:
        """
        Find one of the user's venues by id.

        Args:
            venue_id: Venue id

        Returns:
            Venue object or None when the user has no such venue
        """
        for item in self.get_user_venues():
            venue = item.get('venue', item) if isinstance(item, dict) else None
            if venue and str(venue.get('id')) == str(venue_id):
                return venue
        return None

    def get_user_organizers(self, force: bool = False) -> List[Dict[str, Any]]:
        response = self._fetch('user_list_organizers', force=force)
        if response and response.get('organizers'):
            return response['organizers']
        return []

    def get_user(self, force: bool = False) -> Optional[Dict[str, Any]]:
        response = self._fetch('user_get', force=force)
        if response and response.get('user'):
            return response['user']
        return None

    def flush_cache(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        """Evict the cached response of ``method`` called with ``params``."""
        self.cache.evict(build_key(method, params))

    def flush_api_caches(self, service: str) -> bool:
        """
        Handle an account disconnection.

        Cancels the periodic refresh job and evicts the unparameterised
        cache keys of FLUSH_METHODS.

        Args:
            service: Name of the disconnected service

        Returns:
            True if ``service`` is this integration and caches were flushed
        """
        if service != self.service_name:
            return False

        logger.info(f"Service {service} disconnected, flushing API caches")
        if self.schedule is not None:
            self.schedule.cancel()

        for method in self.FLUSH_METHODS:
            self.flush_cache(method)
        return True

    def refresh_caches(self) -> Dict[str, int]:
        """
        Refetch every cached API method.

        Returns:
            Number of items now available per method
        """
        return {
            'events': len(self.get_user_events(force=True)),
            'venues': len(self.get_user_venues(force=True)),
            'organizers': len(self.get_user_organizers(force=True)),
            'user': 1 if self.get_user(force=True) else 0,
        }

    def get_featured_event_ids(self) -> List[Dict[str, Any]]:
        """
        Read the featured ``{id, occurrence}`` pairs from settings.

        Returns:
            List of pairs, empty when unset or invalid
        """
        value = self.settings.get_setting('featured-event-ids', self.SETTINGS_GROUP, [])
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                logger.warning("Ignoring unreadable featured-event-ids setting")
                return []
        if not isinstance(value, list):
            return []
        return value

    def get_featured_events(self, params: Optional[Dict[str, Any]] = None) -> List[Event]:
        featured = self.get_featured_event_ids()
        if not featured:
            return []
        params = dict(params or {})
        params['include_occurrences'] = featured
        return self.get_user_events(params)

    def get_non_featured_events(self, params: Optional[Dict[str, Any]] = None) -> List[Event]:
        params = dict(params or {})
        featured = self.get_featured_event_ids()
        if featured:
            params['exclude_occurrences'] = featured
        return self.get_user_events(params)

    def get_event_by_id(self, event_id: Any, occurrence: int = 0) -> Optional[Event]:
        """
        Get one event, optionally rescheduled to one of its occurrences.

        Args:
            event_id: Event id
            occurrence: Index into the event's repeat schedule

        Returns:
            Event or None if the user has no such upcoming event
        """
        events = self.get_user_events({'include': [event_id]})
        if not events:
            return None

        event = events[0]
        if 0 < occurrence < len(event.repeat_schedule):
            return event.with_dates(event.repeat_schedule[occurrence], occurrence)
        return event

    def get_venue_info(self) -> Optional[Dict[str, Any]]:
        """Venue configured in the ``venue-id`` setting, if any."""
        venue_id = self.settings.get_setting('venue-id', self.SETTINGS_GROUP, None)
        if not venue_id:
            return None
        return self.get_venue(venue_id)


def ticket_widget_url(event_id: Any) -> str:
    """URL of the external ticket widget for an event."""
    request = requests.Request(
        'GET',
        TICKET_WIDGET_URL,
        params={'eid': event_id, 'ref': 'etckt', 'v': 2}
    )
    return request.prepare().url
