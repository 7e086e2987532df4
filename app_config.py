"""Environment-driven configuration."""
import os
from dataclasses import dataclass
from typing import Optional

from client.eventbrite_client import EventbriteService


@dataclass
class Config:
    """Runtime settings read from environment variables."""
    log_level: str = 'INFO'
    service_name: str = 'eventbrite'
    token: Optional[str] = None
    endpoint: str = EventbriteService.ENDPOINT
    timeout_seconds: int = 30
    max_retries: int = 3
    cache_table_name: Optional[str] = None
    settings_table_name: Optional[str] = None
    cache_ttl_seconds: int = 1200
    cache_grace_seconds: int = 300
    refresh_rule_name: Optional[str] = None
    timezone: str = 'UTC'

    @classmethod
    def from_env(cls) -> 'Config':
        env = os.environ
        return cls(
            log_level=env.get('LOG_LEVEL', 'INFO'),
            service_name=env.get('SERVICE_NAME', 'eventbrite'),
            token=env.get('EVENTBRITE_TOKEN') or None,
            endpoint=env.get('EVENTBRITE_ENDPOINT', EventbriteService.ENDPOINT),
            timeout_seconds=int(env.get('TIMEOUT_SECONDS', '30')),
            max_retries=int(env.get('MAX_RETRIES', '3')),
            cache_table_name=env.get('CACHE_TABLE_NAME') or None,
            settings_table_name=env.get('SETTINGS_TABLE_NAME') or None,
            cache_ttl_seconds=int(env.get('CACHE_TTL_SECONDS', '1200')),
            cache_grace_seconds=int(env.get('CACHE_GRACE_SECONDS', '300')),
            refresh_rule_name=env.get('REFRESH_RULE_NAME') or None,
            timezone=env.get('TIMEZONE', 'UTC'),
        )
