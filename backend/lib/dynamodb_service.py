"""
=============================================================================
DYNAMODB SERVICE - Bill history in Amazon DynamoDB
=============================================================================
Stores every calculated bill for the household so the forecast can be
rebuilt from any machine (Elastic Beanstalk, Lambda, local dev).

Our Table Schema:
-----------------
Table: ElectricityBills
- account_id (String) - Partition Key - one household per partition
- sk (String)         - Sort Key - "<ISO timestamp>#<bill id>", so a query
                        returns bills in chronological order
- id, previousReading, currentReading, unitsConsumed, energyCharges,
  fixedCharges, taxes, totalBill (Number), perSlabBreakdown (List of Maps),
  timestamp (String), created_at (String)

Example Item:
{
    "account_id": "household",
    "sk": "2025-11-01T10:30:00+00:00#9f2c...",
    "id": "9f2c...",
    "unitsConsumed": 250,
    "totalBill": 1265.00,
    ...
}

All failures are raised as HistoryStoreError so the caller decides
whether to warn the user or retry.
=============================================================================
"""

# boto3 - AWS SDK for Python
import boto3

# Key / Attr build KeyConditionExpression and FilterExpression objects
from boto3.dynamodb.conditions import Attr, Key

# ClientError - error response from the AWS API
# BotoCoreError - no response at all (endpoint unreachable, no credentials, timeouts)
from botocore.exceptions import BotoCoreError, ClientError

import os
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from backend.lib.history_store import HistoryStoreError
from backend.lib.tariff_engine.io import bill_from_record, bill_to_record
from backend.lib.tariff_engine.models import BillResult

NUMERIC_FIELDS = (
    "previousReading", "currentReading", "unitsConsumed",
    "energyCharges", "fixedCharges", "taxes", "totalBill",
)


def bill_to_item(bill: BillResult, account_id: str) -> Dict:
    """
    DynamoDB requires Decimal for numbers, not float.
    The record already holds exact strings, so Decimal(str) is lossless.
    """
    item = bill_to_record(bill)
    for key in NUMERIC_FIELDS:
        item[key] = Decimal(item[key])
    item["perSlabBreakdown"] = [
        {
            "range": row["range"],
            "rate": Decimal(row["rate"]),
            "unitsInSlab": Decimal(row["unitsInSlab"]),
            "amount": Decimal(row["amount"]),
        }
        for row in item["perSlabBreakdown"]
    ]
    item["account_id"] = account_id
    item["sk"] = f"{item['timestamp']}#{bill.id}"
    item["created_at"] = datetime.now(timezone.utc).isoformat()
    return item


class DynamoDBBillStore:
    """
    Bill history store backed by a DynamoDB table.

    Usage:
        store = DynamoDBBillStore()
        store.create_table_if_not_exists()
        store.append(bill)
        store.list_recent(5)
    """

    name = "dynamodb"

    def __init__(self, table_name: str = None, account_id: str = None):
        """
        Args:
            table_name: defaults to DYNAMODB_TABLE_NAME or 'ElectricityBills'
            account_id: partition key value; defaults to ACCOUNT_ID or 'household'
        """
        self.table_name = table_name or os.getenv('DYNAMODB_TABLE_NAME', 'ElectricityBills')
        self.account_id = account_id or os.getenv('ACCOUNT_ID', 'household')
        self.region = os.getenv('AWS_REGION', 'us-east-1')

        # Session token for temporary (lab / assumed-role) credentials
        session_token = os.getenv('AWS_SESSION_TOKEN')

        self.dynamodb = boto3.resource(
            'dynamodb',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )
        # describe_table needs the low-level client
        self.client = boto3.client(
            'dynamodb',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )
        self.table = self.dynamodb.Table(self.table_name)

    def create_table_if_not_exists(self) -> None:
        try:
            self.client.describe_table(TableName=self.table_name)
            print(f"DynamoDB table '{self.table_name}' exists")
            return
        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceNotFoundException':
                raise HistoryStoreError(f"Error checking table: {e}")
        except BotoCoreError as e:
            raise HistoryStoreError(f"Error checking table: {e}")

        try:
            table = self.dynamodb.create_table(
                TableName=self.table_name,
                KeySchema=[
                    {'AttributeName': 'account_id', 'KeyType': 'HASH'},
                    {'AttributeName': 'sk', 'KeyType': 'RANGE'},
                ],
                AttributeDefinitions=[
                    {'AttributeName': 'account_id', 'AttributeType': 'S'},
                    {'AttributeName': 'sk', 'AttributeType': 'S'},
                ],
                BillingMode='PAY_PER_REQUEST'
            )
            table.wait_until_exists()
            self.table = table
            print(f"Created DynamoDB table '{self.table_name}'")
        except (ClientError, BotoCoreError) as e:
            raise HistoryStoreError(f"Failed to create table: {e}")

    def _query(self, **kwargs) -> List[Dict]:
        """Query this account's partition, following LastEvaluatedKey pages."""
        kwargs['KeyConditionExpression'] = Key('account_id').eq(self.account_id)
        limit = kwargs.get('Limit')
        items = []
        try:
            response = self.table.query(**kwargs)
            items.extend(response.get('Items', []))
            while 'LastEvaluatedKey' in response and (limit is None or len(items) < limit):
                response = self.table.query(ExclusiveStartKey=response['LastEvaluatedKey'], **kwargs)
                items.extend(response.get('Items', []))
        except (ClientError, BotoCoreError) as e:
            raise HistoryStoreError(f"Failed to query bills: {e}")
        return items[:limit] if limit is not None else items

    def _find_item(self, bill_id: str) -> Optional[Dict]:
        items = self._query(FilterExpression=Attr('id').eq(bill_id))
        return items[0] if items else None

    def append(self, bill: BillResult) -> None:
        try:
            self.table.put_item(Item=bill_to_item(bill, self.account_id))
        except (ClientError, BotoCoreError) as e:
            raise HistoryStoreError(f"Failed to store bill {bill.id}: {e}")

    def _to_bills(self, items: List[Dict]) -> List[BillResult]:
        try:
            return [bill_from_record(item) for item in items]
        except (ValueError, KeyError, TypeError) as e:
            raise HistoryStoreError(f"Bad bill item in {self.table_name}: {e}")

    def get(self, bill_id: str) -> Optional[BillResult]:
        item = self._find_item(bill_id)
        return self._to_bills([item])[0] if item else None

    def list_recent(self, n: int) -> List[BillResult]:
        if n <= 0:
            return []
        items = self._query(ScanIndexForward=False, Limit=n)
        return self._to_bills(items)

    def list_all(self) -> List[BillResult]:
        return self._to_bills(self._query(ScanIndexForward=True))

    def delete_by_id(self, bill_id: str) -> bool:
        item = self._find_item(bill_id)
        if item is None:
            return False
        try:
            self.table.delete_item(Key={'account_id': self.account_id, 'sk': item['sk']})
        except (ClientError, BotoCoreError) as e:
            raise HistoryStoreError(f"Failed to delete bill {bill_id}: {e}")
        return True

    def clear(self) -> None:
        items = self._query(ProjectionExpression='account_id, sk')
        try:
            with self.table.batch_writer() as writer:
                for item in items:
                    writer.delete_item(Key={'account_id': item['account_id'], 'sk': item['sk']})
        except (ClientError, BotoCoreError) as e:
            raise HistoryStoreError(f"Failed to clear bills: {e}")
