"""Unit tests for the refresh schedule handle."""
import boto3
import pytest
from moto import mock_aws

from scheduler.refresh_schedule import RefreshSchedule


@pytest.fixture
def events_client():
    """Mock EventBridge with an enabled refresh rule."""
    with mock_aws():
        client = boto3.client('events', region_name='us-east-1')
        client.put_rule(
            Name='eventbrite-refresh',
            ScheduleExpression='rate(20 minutes)',
            State='ENABLED'
        )
        yield client


def test_cancel_disables_rule(events_client):
    schedule = RefreshSchedule('eventbrite-refresh', region_name='us-east-1')
    assert schedule.is_enabled()

    assert schedule.cancel() is True

    assert not schedule.is_enabled()
    assert events_client.describe_rule(Name='eventbrite-refresh')['State'] == 'DISABLED'


def test_cancel_missing_rule(events_client):
    schedule = RefreshSchedule('no-such-rule', region_name='us-east-1')
    assert schedule.cancel() is False
