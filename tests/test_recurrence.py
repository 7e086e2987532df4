"""Unit tests for recurrence expansion."""
from processor.models import Event, RepeatEntry
from processor.recurrence import expand, expand_occurrences


def recurring_event(event_id='1', start='2024-02-01', schedule=None):
    return Event(
        id=event_id,
        title='Weekly class',
        start_date=start,
        end_date=start,
        repeats=True,
        repeat_schedule=[RepeatEntry(s, s) for s in (schedule or [])]
    )


def test_non_repeating_events_are_unchanged():
    """Lists without recurring events pass through untouched."""
    events = [
        Event(id='1', title='A', start_date='2024-01-10', end_date='2024-01-10'),
        Event(id='2', title='B', start_date='2024-01-05', end_date='2024-01-05'),
    ]

    assert expand_occurrences(events) == []
    assert expand(events) == events


def test_base_dates_are_not_duplicated():
    """A schedule entry equal to the base dates yields no occurrence."""
    event = recurring_event(schedule=['2024-02-01', '2024-03-01'])

    occurrences = expand_occurrences([event])

    assert len(occurrences) == 1
    assert occurrences[0].occurrence == 1
    assert occurrences[0].start_date == '2024-03-01'
    assert occurrences[0].end_date == '2024-03-01'


def test_occurrence_count_matches_schedule():
    """Every non-matching schedule index produces one record."""
    event = recurring_event(schedule=['2024-02-01', '2024-02-08', '2024-02-15', '2024-02-22'])

    occurrences = expand_occurrences([event])

    assert [o.occurrence for o in occurrences] == [1, 2, 3]


def test_occurrence_is_a_copy():
    """Expansion does not modify the base record."""
    event = recurring_event(schedule=['2024-02-01', '2024-03-01'])

    occurrence = expand_occurrences([event])[0]

    assert occurrence is not event
    assert event.start_date == '2024-02-01'
    assert event.occurrence is None
    assert occurrence.title == event.title
    assert occurrence.id == event.id


def test_first_entry_differing_from_base_is_occurrence_zero():
    """Index 0 is emitted when it does not match the base dates."""
    event = recurring_event(start='2024-02-08', schedule=['2024-02-01', '2024-02-08'])

    occurrences = expand_occurrences([event])

    assert [(o.occurrence, o.start_date) for o in occurrences] == [(0, '2024-02-01')]


def test_expand_appends_after_originals():
    event = recurring_event(schedule=['2024-02-01', '2024-03-01'])
    single = Event(id='2', title='B', start_date='2024-02-15', end_date='2024-02-15')

    result = expand([event, single])

    assert result[:2] == [event, single]
    assert result[2].occurrence == 1
