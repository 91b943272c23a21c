# backend/lambda_handlers/get_forecast.py
"""
Lambda function to get the next-period usage/cost forecast
Triggered by API Gateway (GET /forecast)
"""
import json
import os

from backend.lib.dynamodb_service import DynamoDBBillStore
from backend.lib.history_store import HistoryStoreError
from backend.lib.tariff_engine.analytics import generate_forecast
from backend.lib.tariff_engine.io import forecast_to_dict

_store = None


def get_store() -> DynamoDBBillStore:
    global _store
    if _store is None:
        _store = DynamoDBBillStore()
    return _store


def lambda_handler(event, context):
    """
    Build the forecast from the household's full bill history.
    An empty history returns the zero placeholder, not an error.
    """
    print(f"Received event: {json.dumps(event)}")

    try:
        history = get_store().list_all()
    except HistoryStoreError as e:
        print(f"Error: {str(e)}")
        return response(503, {'message': 'Bill history is temporarily unavailable'})

    default_rate = os.getenv('DEFAULT_RATE_PER_KWH', '5.5')
    return response(200, forecast_to_dict(generate_forecast(history, default_rate)))


def response(status_code: int, body: dict) -> dict:
    """Create API Gateway response."""
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'GET,POST,OPTIONS',
            'Access-Control-Allow-Headers': 'Content-Type'
        },
        'body': json.dumps(body)
    }
