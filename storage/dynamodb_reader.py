"""Read-only DynamoDB access for organization memberships and schedules."""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class DynamoDBReader:
    """Reader for membership and academic schedule tables."""

    ACTIVE_STATUS = 'active'

    def __init__(self, memberships_table: str, schedules_table: str):
        """
        Initialize DynamoDB resource and table references.

        Args:
            memberships_table: Table keyed by organization_id (hash) and user_id (range)
            schedules_table: Table keyed by organization_id (hash) and id (range)
        """
        self.dynamodb = boto3.resource('dynamodb')
        self.memberships = self.dynamodb.Table(memberships_table)
        self.schedules = self.dynamodb.Table(schedules_table)
        logger.info(
            f"Initialized DynamoDBReader for tables: {memberships_table}, {schedules_table}"
        )

    def count_active_members(self, organization_id: str) -> int:
        """
        Count active members of an organization.

        Args:
            organization_id: Organization to count

        Returns:
            Number of memberships whose status is active
        """
        items = self._query_all(self.memberships, organization_id)
        count = sum(1 for item in items if item.get('status') == self.ACTIVE_STATUS)
        logger.info(f"Organization {organization_id} has {count} active members")
        return count

    def get_schedule_rows(
        self,
        organization_id: str,
        user_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Retrieve schedule rows for an organization.

        Args:
            organization_id: Organization whose schedules to load
            user_id: Keep only this owner's schedules when given

        Returns:
            List of schedule rows with plain Python values
        """
        items = self._query_all(self.schedules, organization_id)
        rows = [self._item_to_row(item) for item in items]
        if user_id is not None:
            rows = [row for row in rows if row.get('user_id') == user_id]

        logger.info(f"Retrieved {len(rows)} schedules for organization {organization_id}")
        return rows

    def _query_all(self, table, organization_id: str) -> List[Dict[str, Any]]:
        """Query one partition, following pagination."""
        condition = Key('organization_id').eq(organization_id)
        try:
            response = table.query(KeyConditionExpression=condition)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = table.query(
                    KeyConditionExpression=condition,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

            return items

        except ClientError as e:
            logger.error(f"Error querying DynamoDB table {table.name}: {e}")
            raise

    def _item_to_row(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Convert DynamoDB numbers and sets into ints and sorted lists."""
        return {key: self._plain(value) for key, value in item.items()}

    def _plain(self, value: Any) -> Any:
        if isinstance(value, Decimal):
            return int(value) if value == value.to_integral_value() else float(value)
        if isinstance(value, (set, frozenset)):
            return sorted(self._plain(v) for v in value)
        if isinstance(value, list):
            return [self._plain(v) for v in value]
        if isinstance(value, dict):
            return {k: self._plain(v) for k, v in value.items()}
        return value
