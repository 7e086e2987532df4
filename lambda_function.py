"""AWS Lambda handler for the Eventbrite events service."""
import json
import logging
import time
from datetime import datetime
from typing import Dict, Any
from zoneinfo import ZoneInfo

from api.eventbrite_api import EventbriteAPI
from app_config import Config
from cache.request_cache import RequestCache
from client.auth import AuthProvider
from processor.event_processor import EventProcessor
from scheduler.refresh_schedule import RefreshSchedule
from storage.dynamodb_store import DynamoDBCacheStore
from storage.memory_store import InMemoryCacheStore
from storage.settings_store import DictSettingsStore, DynamoDBSettingsStore

# Shared by warm invocations when no cache table is configured
_memory_store = InMemoryCacheStore()

QUERY_ACTIONS = (
    'get_user_events',
    'get_venue_events',
    'get_featured_events',
    'get_non_featured_events',
    'get_user_venues',
    'get_user_organizers',
    'get_user',
    'get_venue',
)


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def build_api(config: Config) -> EventbriteAPI:
    """
    Wire the API with the stores and collaborators named in ``config``.

    Args:
        config: Runtime configuration

    Returns:
        EventbriteAPI instance
    """
    if config.settings_table_name:
        settings = DynamoDBSettingsStore(config.settings_table_name)
    else:
        settings = DictSettingsStore()

    if config.cache_table_name:
        store = DynamoDBCacheStore(config.cache_table_name)
    else:
        store = _memory_store

    cache = RequestCache(
        store=store,
        ttl=config.cache_ttl_seconds,
        grace=config.cache_grace_seconds
    )
    auth = AuthProvider(
        settings,
        token=config.token,
        endpoint=config.endpoint,
        timeout=config.timeout_seconds,
        max_retries=config.max_retries
    )
    schedule = RefreshSchedule(config.refresh_rule_name) if config.refresh_rule_name else None
    tz = ZoneInfo(config.timezone)
    processor = EventProcessor(now=lambda: datetime.now(tz).replace(tzinfo=None))

    return EventbriteAPI(
        auth=auth,
        cache=cache,
        settings=settings,
        schedule=schedule,
        processor=processor,
        service_name=config.service_name
    )


def _serialise(result: Any) -> Any:
    if isinstance(result, list):
        return [_serialise(item) for item in result]
    if hasattr(result, 'to_dict'):
        return result.to_dict()
    return result


def _run_query(api: EventbriteAPI, event: Dict[str, Any]) -> Any:
    action = event['action']
    params = event.get('params') or {}
    force = bool(event.get('force', False))

    if action == 'get_user_events':
        return api.get_user_events(params, force)
    if action == 'get_venue_events':
        return api.get_venue_events(event.get('venue_id'), params, force)
    if action == 'get_featured_events':
        return api.get_featured_events(params)
    if action == 'get_non_featured_events':
        return api.get_non_featured_events(params)
    if action == 'get_user_venues':
        return api.get_user_venues(force)
    if action == 'get_user_organizers':
        return api.get_user_organizers(force)
    if action == 'get_user':
        return api.get_user(force)
    return api.get_venue(event.get('venue_id'))


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {'statusCode': status_code, 'body': json.dumps(body)}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Handles three kinds of invocation: the scheduled cache refresh
    (EventBridge ``Scheduled Event``), an account disconnection
    (``ConnectionDeleted`` with ``detail.service``), and direct queries
    carrying an ``action`` name.

    Args:
        event: Invocation payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and JSON body
    """
    config = Config.from_env()
    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    detail_type = event.get('detail-type')

    try:
        api = build_api(config)

        if detail_type == 'Scheduled Event':
            logger.info("Refreshing cached Eventbrite data")
            counts = api.refresh_caches()
            duration = time.time() - start_time
            logger.info(
                "Cache refresh completed",
                extra={'duration_seconds': round(duration, 2), **counts}
            )
            return _response(200, {
                'message': 'Cache refresh completed',
                'statistics': counts,
                'duration_seconds': round(duration, 2)
            })

        if detail_type == 'ConnectionDeleted':
            service = (event.get('detail') or {}).get('service', '')
            flushed = api.flush_api_caches(service)
            return _response(200, {'service': service, 'flushed': flushed})

        action = event.get('action')
        if action in QUERY_ACTIONS:
            result = _run_query(api, event)
            return _response(200, {'action': action, 'result': _serialise(result)})

        logger.warning(f"Unsupported invocation: detail-type={detail_type!r} action={action!r}")
        return _response(400, {'message': 'Unsupported invocation'})

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return _response(500, {
            'message': 'Request failed',
            'error': str(e),
            'error_type': type(e).__name__,
            'duration_seconds': round(duration, 2)
        })
