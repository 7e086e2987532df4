"""Access token lookup for the Eventbrite service."""
import logging
from typing import Optional

from client.eventbrite_client import EventbriteService

logger = logging.getLogger(__name__)

SETTINGS_GROUP = 'eventbrite'
TOKEN_SETTING = 'access-token'


class AuthProvider:
    """Builds an authenticated EventbriteService from the stored token."""

    def __init__(
        self,
        settings,
        token: Optional[str] = None,
        endpoint: str = EventbriteService.ENDPOINT,
        timeout: int = 30,
        max_retries: int = 3
    ):
        """
        Initialize the provider.

        Args:
            settings: Settings store holding the access token
            token: Fixed token that takes precedence over the settings store
            endpoint: API base URL
            timeout: HTTP request timeout in seconds
            max_retries: Attempts per request
        """
        self.settings = settings
        self.token = token
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_retries = max_retries

    def get_token(self) -> Optional[str]:
        if self.token:
            return self.token
        return self.settings.get_setting(TOKEN_SETTING, SETTINGS_GROUP, None) or None

    def get_auth_service(self) -> Optional[EventbriteService]:
        """
        Return an authenticated service.

        Returns:
            EventbriteService, or None when no account is connected
        """
        token = self.get_token()
        if not token:
            logger.debug("No Eventbrite access token configured")
            return None
        return EventbriteService(
            token=token,
            endpoint=self.endpoint,
            timeout=self.timeout,
            max_retries=self.max_retries
        )
