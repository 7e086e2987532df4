"""DynamoDB-backed cache entry store."""
import json
import logging
from decimal import Decimal
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from cache.request_cache import CacheEntry

logger = logging.getLogger(__name__)


class DynamoDBCacheStore:
    """Store for cache entries shared across Lambda invocations."""

    # Expired entries stay readable this long for grace-on-failure
    STALE_RETENTION_SECONDS = 7 * 24 * 3600

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table (hash key ``cache_key``)
            region_name: AWS region, defaults to the environment's
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBCacheStore for table: {table_name}")

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Read a cache entry.

        Args:
            key: Cache key

        Returns:
            CacheEntry or None if missing or unreadable
        """
        try:
            response = self.table.get_item(Key={'cache_key': key})
        except ClientError as e:
            logger.error(f"Error reading cache entry {key}: {e}")
            raise

        item = response.get('Item')
        if not item:
            return None
        return self._item_to_entry(item)

    def put(self, key: str, entry: CacheEntry) -> None:
        try:
            self.table.put_item(Item=self._entry_to_item(key, entry))
        except ClientError as e:
            logger.error(f"Error writing cache entry {key}: {e}")
            raise

    def delete(self, key: str) -> None:
        try:
            self.table.delete_item(Key={'cache_key': key})
        except ClientError as e:
            logger.error(f"Error deleting cache entry {key}: {e}")
            raise

    def _item_to_entry(self, item: dict) -> Optional[CacheEntry]:
        try:
            grace_until = item.get('grace_until')
            return CacheEntry(
                value=json.loads(item['value']),
                fresh_until=float(item['fresh_until']),
                grace_until=float(grace_until) if grace_until is not None else None
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Failed to convert item to CacheEntry: {e}")
            return None

    def _entry_to_item(self, key: str, entry: CacheEntry) -> dict:
        item = {
            'cache_key': key,
            'value': json.dumps(entry.value),
            'fresh_until': Decimal(str(entry.fresh_until)),
            'ttl': int(entry.expires_at) + self.STALE_RETENTION_SECONDS
        }

        if entry.grace_until is not None:
            item['grace_until'] = Decimal(str(entry.grace_until))

        return item
