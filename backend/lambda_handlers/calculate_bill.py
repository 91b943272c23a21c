# backend/lambda_handlers/calculate_bill.py
"""
Lambda function to calculate an electricity bill from two meter readings
Triggered by API Gateway (POST /bill)
"""
import json
import os

from backend.lib.dynamodb_service import DynamoDBBillStore
from backend.lib.tracker_service import TrackerService
from backend.lib.tariff_engine.errors import InvalidReadingError
from backend.lib.tariff_engine.io import bill_to_dict
from backend.lib.tariff_engine.tariff import load_schedule_from_env

# Built on first invocation and reused while the container stays warm
_service = None


def get_service() -> TrackerService:
    global _service
    if _service is None:
        _service = TrackerService(
            store=DynamoDBBillStore(),
            schedule=load_schedule_from_env(),
            default_rate=os.getenv('DEFAULT_RATE_PER_KWH', '5.5'),
        )
    return _service


def lambda_handler(event, context):
    """
    Calculate and store a bill.

    Body (JSON):
    - previousReading: Required
    - currentReading: Required, >= previousReading
    """
    print(f"Received event: {json.dumps(event)}")

    try:
        data = json.loads(event.get('body') or '{}')
    except ValueError:
        return response(400, {'message': 'Request body must be JSON'})
    if not isinstance(data, dict):
        return response(400, {'message': 'Request body must be a JSON object'})

    try:
        submission = get_service().submit_readings(
            data.get('previousReading'), data.get('currentReading')
        )
    except InvalidReadingError as e:
        return response(400, {'message': str(e)})

    body = bill_to_dict(submission.bill)
    body['persisted'] = submission.persisted
    if not submission.persisted:
        body['warning'] = 'Bill calculated but could not be saved to history. Please try again.'
    return response(200, body)


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
