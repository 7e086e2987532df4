"""HTTP client for the Eventbrite JSON API."""
import logging
import time
from typing import Any, Dict, Optional

import requests

from client.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class EventbriteService:
    """Authenticated access to the Eventbrite JSON API."""

    ENDPOINT = "https://www.eventbrite.com/json/"

    def __init__(
        self,
        token: str,
        endpoint: str = ENDPOINT,
        timeout: int = 30,
        max_retries: int = 3,
        base_delay: float = 1,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the API client.

        Args:
            token: OAuth access token
            endpoint: Base URL that method names are appended to
            timeout: HTTP request timeout in seconds (default: 30)
            max_retries: Attempts per request before giving up (default: 3)
            base_delay: Initial backoff delay in seconds (default: 1)
            session: Optional requests session to reuse
        """
        self.token = token
        self.endpoint = endpoint if endpoint.endswith('/') else endpoint + '/'
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.session = session or requests.Session()

    def get(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Call an API method.

        Args:
            method: API method name, e.g. ``user_list_events``
            params: Query string parameters

        Returns:
            Decoded JSON response

        Raises:
            UpstreamError: If the request fails after all retries or the
                API returns an error payload
        """
        url = self.endpoint + method
        response = self._request_with_retry(url, params or {})

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(f"Eventbrite API: invalid JSON from {method}: {e}")

        if not isinstance(payload, dict):
            raise UpstreamError(f"Eventbrite API: unexpected response from {method}")

        if 'error' in payload:
            error = payload['error'] or {}
            if not isinstance(error, dict):
                error = {'error_message': str(error)}
            message = error.get('error_message', 'unknown error')
            logger.error(f"Eventbrite API error for {method}: {message}")
            raise UpstreamError(
                f"Eventbrite API: {message}",
                error_type=error.get('error_type', '')
            )

        return payload

    def _request_with_retry(self, url: str, params: Dict[str, Any]) -> requests.Response:
        """
        Send a GET request with exponential backoff.

        Args:
            url: Full method URL
            params: Query string parameters

        Returns:
            Successful response

        Raises:
            UpstreamError: If all retry attempts fail
        """
        headers = {'Authorization': f"Bearer {self.token}"}

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Requesting {url} (attempt {attempt + 1}/{self.max_retries})")
                response = self.session.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise UpstreamError(f"Eventbrite API: request failed: {e}") from e

        raise UpstreamError("Eventbrite API: no request attempts were made")
