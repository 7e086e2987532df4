"""Handle on the EventBridge rule that triggers periodic cache refreshes."""
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class RefreshSchedule:
    """Scheduled refresh job backed by an EventBridge rule."""

    def __init__(self, rule_name: str, region_name: Optional[str] = None):
        """
        Initialize the EventBridge client.

        Args:
            rule_name: Name of the rule invoking the refresh Lambda
            region_name: AWS region, defaults to the environment's
        """
        self.rule_name = rule_name
        self.events = boto3.client('events', region_name=region_name)

    def cancel(self) -> bool:
        """
        Disable the refresh rule.

        Returns:
            True if the rule was disabled, False if it does not exist
        """
        try:
            self.events.disable_rule(Name=self.rule_name)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceNotFoundException':
                logger.warning(f"Refresh rule {self.rule_name} not found")
                return False
            logger.error(f"Error disabling refresh rule {self.rule_name}: {e}")
            raise

        logger.info(f"Disabled refresh rule {self.rule_name}")
        return True

    def is_enabled(self) -> bool:
        response = self.events.describe_rule(Name=self.rule_name)
        return response.get('State') == 'ENABLED'
