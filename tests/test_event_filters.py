"""Unit tests for individual filter stages."""
from datetime import datetime, timezone

from processor import event_filters
from processor.models import Event, Organizer, Venue


def event(event_id, end='2024-06-01 12:00:00', **kwargs):
    return Event(id=event_id, title=f"Event {event_id}", start_date=end, end_date=end, **kwargs)


def test_empty_selectors_are_pass_through():
    events = [event('1'), event('2')]

    assert event_filters.filter_included(events, []) is events
    assert event_filters.filter_excluded(events, []) is events
    assert event_filters.filter_venue(events, '') is events
    assert event_filters.filter_organizer(events, '') is events
    assert event_filters.filter_included_occurrences(events, []) is events
    assert event_filters.filter_excluded_occurrences(events, []) is events
    assert event_filters.search_titles(events, '') is events


def test_ids_compare_as_strings():
    events = [event('10'), event('20')]
    assert [e.id for e in event_filters.filter_included(events, [10])] == ['10']
    assert [e.id for e in event_filters.filter_excluded(events, [10])] == ['20']


def test_organizer_filter_drops_events_without_organizer():
    events = [event('1', organizer=Organizer(id='3')), event('2')]
    assert [e.id for e in event_filters.filter_organizer(events, '3')] == ['1']


def test_matches_venue():
    assert event_filters.matches_venue(event('1', venue=Venue(id='4')), 4)
    assert not event_filters.matches_venue(event('1', venue=Venue(id='4')), 'online')
    assert event_filters.matches_venue(event('1'), 'online')
    assert not event_filters.matches_venue(event('1'), '4')


def test_occurrence_pairs_accept_tuples():
    events = [event('1', occurrence=2), event('1')]
    result = event_filters.filter_included_occurrences(events, [('1', 2)])
    assert [e.occurrence for e in result] == [2]


def test_parse_datetime():
    assert event_filters.parse_datetime('2024-01-10 19:00:00') == datetime(2024, 1, 10, 19)
    assert event_filters.parse_datetime('2024-01-10') == datetime(2024, 1, 10)
    assert event_filters.parse_datetime('not a date') is None
    assert event_filters.parse_datetime('') is None


def test_filter_ends_after_drops_unparseable_dates():
    events = [event('1'), event('2', end='soon')]
    result = event_filters.filter_ends_after(events, datetime(2024, 1, 1))
    assert [e.id for e in result] == ['1']


def test_filter_ends_after_with_aware_clock():
    events = [event('1', end='2024-06-01 12:00:00'), event('2', end='2023-06-01 12:00:00')]
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    result = event_filters.filter_ends_after(events, now)
    assert [e.id for e in result] == ['1']


def test_strip_slashes():
    assert event_filters.strip_slashes("O\\'Reilly") == "O'Reilly"
    assert event_filters.strip_slashes('back\\\\slash') == 'back\\slash'
    assert event_filters.strip_slashes('plain') == 'plain'


def test_search_skips_untitled_events():
    events = [Event(id='1', title='', start_date='', end_date='')]
    assert event_filters.search_titles(events, 'a') == []


def test_sort_by_created_is_stable_in_both_directions():
    events = [
        event('a', created='2024-01-02'),
        event('b', created='2024-01-01'),
        event('c', created='2024-01-02'),
    ]

    ascending = event_filters.sort_by_created(events, 'asc')
    descending = event_filters.sort_by_created(events, 'desc')

    assert [e.id for e in ascending] == ['b', 'a', 'c']
    assert [e.id for e in descending] == ['a', 'c', 'b']
