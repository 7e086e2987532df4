"""Read-only settings stores."""
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class DictSettingsStore:
    """Settings held in memory, grouped by setting group."""

    def __init__(self, settings: Optional[Dict[str, Dict[str, Any]]] = None):
        self.settings = settings or {}

    def get_setting(self, key: str, group: str, default: Any = None) -> Any:
        return self.settings.get(group, {}).get(key, default)


class DynamoDBSettingsStore:
    """Settings stored one item per (group, key) in a DynamoDB table."""

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB table reference.

        Args:
            table_name: Table with hash key ``setting_group`` and range
                key ``setting_key``; values live in ``value``
            region_name: AWS region, defaults to the environment's
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)

    def get_setting(self, key: str, group: str, default: Any = None) -> Any:
        """
        Read a setting.

        Args:
            key: Setting name
            group: Setting group
            default: Returned when the setting is missing or unreadable

        Returns:
            The stored value or ``default``
        """
        try:
            response = self.table.get_item(
                Key={'setting_group': group, 'setting_key': key}
            )
        except ClientError as e:
            logger.error(f"Error reading setting {group}/{key}: {e}")
            return default

        item = response.get('Item')
        if not item or 'value' not in item:
            return default
        return item['value']
