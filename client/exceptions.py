"""Errors raised while talking to the Eventbrite API."""


class EventbriteError(Exception):
    """Base class for Eventbrite API failures."""


class AuthUnavailable(EventbriteError):
    """No authenticated service is available."""


class UpstreamError(EventbriteError):
    """The API returned an error payload or could not be reached."""

    def __init__(self, message: str, error_type: str = ''):
        super().__init__(message)
        self.error_type = error_type
