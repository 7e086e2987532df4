"""Data models for event retrieval and filtering."""
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class RepeatEntry:
    """One scheduled date range of a recurring event."""
    start_date: str
    end_date: str


@dataclass
class Venue:
    """Venue reference attached to an event."""
    id: str
    name: str = ''


@dataclass
class Organizer:
    """Organizer reference attached to an event."""
    id: str
    name: str = ''


@dataclass
class Event:
    """Event record as returned by the remote API.

    Synthetic occurrence records produced by recurrence expansion carry
    ``occurrence`` (the index into ``repeat_schedule``); base records
    leave it unset.
    """
    id: str
    title: str
    start_date: str
    end_date: str
    created: str = ''
    repeats: bool = False
    repeat_schedule: List[RepeatEntry] = field(default_factory=list)
    venue: Optional[Venue] = None
    organizer: Optional[Organizer] = None
    occurrence: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def occurrence_index(self) -> int:
        """Occurrence index, 0 for the base record."""
        return self.occurrence if self.occurrence is not None else 0

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'Event':
        """
        Build an Event from an API list item.

        Args:
            item: Either ``{"event": {...}}`` or the bare event object

        Returns:
            Event object
        """
        data = item.get('event', item) if isinstance(item, dict) else {}

        schedule = [
            RepeatEntry(
                start_date=entry.get('start_date', ''),
                end_date=entry.get('end_date', '')
            )
            for entry in data.get('repeat_schedule') or []
            if isinstance(entry, dict)
        ]

        venue = None
        venue_data = data.get('venue')
        if isinstance(venue_data, dict) and venue_data.get('id') is not None:
            venue = Venue(id=str(venue_data['id']), name=venue_data.get('name', ''))

        organizer = None
        organizer_data = data.get('organizer')
        if isinstance(organizer_data, dict) and organizer_data.get('id') is not None:
            organizer = Organizer(
                id=str(organizer_data['id']),
                name=organizer_data.get('name', '')
            )

        occurrence = data.get('occurrence')

        return cls(
            id=str(data.get('id', '')),
            title=data.get('title') or '',
            start_date=data.get('start_date') or '',
            end_date=data.get('end_date') or '',
            created=data.get('created') or '',
            repeats=_parse_repeats(data.get('repeats')),
            repeat_schedule=schedule,
            venue=venue,
            organizer=organizer,
            occurrence=int(occurrence) if occurrence is not None else None,
            raw=data
        )

    def with_dates(self, entry: RepeatEntry, occurrence: int) -> 'Event':
        """Return a shallow copy rescheduled to ``entry``."""
        return replace(
            self,
            start_date=entry.start_date,
            end_date=entry.end_date,
            occurrence=occurrence
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise for JSON responses."""
        data = {
            'id': self.id,
            'title': self.title,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'created': self.created,
            'repeats': self.repeats,
            'repeat_schedule': [
                {'start_date': e.start_date, 'end_date': e.end_date}
                for e in self.repeat_schedule
            ],
        }
        if self.venue:
            data['venue'] = {'id': self.venue.id, 'name': self.venue.name}
        if self.organizer:
            data['organizer'] = {'id': self.organizer.id, 'name': self.organizer.name}
        if self.occurrence is not None:
            data['occurrence'] = self.occurrence
        return data


def _parse_repeats(value: Any) -> bool:
    # The API reports "yes"/"no"
    if isinstance(value, str):
        return value.strip().lower() in ('yes', 'true', '1')
    return bool(value)


@dataclass
class QuerySpec:
    """
    Query parameters for user event listings.

    Attributes:
        count: Number of items to return, -1 for all
        per_page: Page size used when ``page`` is set
        page: 1-based page number, -1 disables pagination
        orderby: ``""`` orders by start date, ``"created"`` by creation date
        order: ``"asc"`` or ``"desc"`` (creation-date ordering only)
        include: Only keep these event ids
        exclude: Drop these event ids
        include_occurrences: Only keep these ``{id, occurrence}`` pairs
        exclude_occurrences: Drop these ``{id, occurrence}`` pairs
        organizer: Organizer id, ``""``/``"all"`` for any
        venue: Venue id, ``"online"`` for events without a venue,
            ``""``/``"all"`` for any
        display: Extra output fields requested from the API
        search: Case-insensitive title substring
    """
    count: int = -1
    per_page: int = 10
    page: int = -1
    orderby: str = ''
    order: str = 'asc'
    include: List[Any] = field(default_factory=list)
    exclude: List[Any] = field(default_factory=list)
    include_occurrences: List[Dict[str, Any]] = field(default_factory=list)
    exclude_occurrences: List[Dict[str, Any]] = field(default_factory=list)
    organizer: str = ''
    venue: str = ''
    display: str = 'repeat_schedule'
    search: str = ''

    @classmethod
    def from_params(cls, params: Optional[Dict[str, Any]] = None) -> 'QuerySpec':
        """
        Merge caller parameters over the defaults.

        Unknown keys are ignored. Numeric fields accept numeric strings.

        Args:
            params: Parameter mapping, may be None

        Returns:
            QuerySpec instance
        """
        if isinstance(params, cls):
            return params

        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in (params or {}).items():
            if key not in known:
                logger.debug(f"Ignoring unknown query parameter: {key}")
                continue
            if value is None:
                continue
            values[key] = value

        for key in ('count', 'per_page', 'page'):
            if key in values:
                try:
                    values[key] = int(values[key])
                except (TypeError, ValueError):
                    logger.debug(f"Using default for invalid query parameter {key}: {values[key]!r}")
                    del values[key]
        for key in ('include', 'exclude', 'include_occurrences', 'exclude_occurrences'):
            if key in values:
                value = values[key]
                if isinstance(value, (str, int, float, dict)):
                    values[key] = [value]
                else:
                    try:
                        values[key] = list(value)
                    except TypeError:
                        logger.debug(f"Using default for invalid query parameter {key}: {value!r}")
                        del values[key]
        for key in ('orderby', 'order', 'organizer', 'venue', 'display', 'search'):
            if key in values:
                values[key] = str(values[key])

        return cls(**values)
