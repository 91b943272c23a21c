"""
=============================================================================
ELECTRICITY TRACKER - MAIN FLASK APPLICATION
=============================================================================
REST API for the household electricity tracker:
- Calculating a slab-tariff bill from two meter readings
- Browsing and deleting past bills
- Next-period usage/cost forecast with trend and efficiency score
- Dashboard summary and personalised energy-saving tips

Storage:
- DynamoDB when USE_DYNAMODB=true
- Otherwise a local JSON Lines file (BILLS_FILE)

How to run:
    python -m backend.app

Then visit: http://127.0.0.1:5000/health
=============================================================================
"""

import os

from dotenv import load_dotenv
from flask import Flask, jsonify, request

# Load environment variables from .env file
# This must be called before accessing any environment variables
load_dotenv()

from backend.lib.history_store import HistoryStoreError, JsonlBillStore
from backend.lib.tracker_service import TrackerService
from backend.lib.tariff_engine.errors import InvalidReadingError
from backend.lib.tariff_engine.io import (
    bill_to_dict, dashboard_to_dict, forecast_to_dict, tip_to_dict,
)
from backend.lib.tariff_engine.tariff import load_schedule_from_env, schedule_to_dict

DEFAULT_BILLS_LIMIT = 10

# =============================================================================
# STORAGE INITIALIZATION
# =============================================================================
# DynamoDB is optional; if it cannot be reached we fall back to the local file


def create_store():
    if os.getenv('USE_DYNAMODB', 'false').lower() == 'true':
        try:
            from backend.lib.dynamodb_service import DynamoDBBillStore
            store = DynamoDBBillStore()
            store.create_table_if_not_exists()
            print("DynamoDB storage enabled")
            return store
        except Exception as e:
            print(f"DynamoDB initialization failed: {e}. Using local storage.")

    return JsonlBillStore(os.getenv('BILLS_FILE', 'backend/data/bills.jsonl'))


def create_service() -> TrackerService:
    return TrackerService(
        store=create_store(),
        schedule=load_schedule_from_env(),
        default_rate=os.getenv('DEFAULT_RATE_PER_KWH', '5.5'),
    )


# =============================================================================
# FLASK APPLICATION INITIALIZATION
# =============================================================================

app = Flask(__name__)
service = create_service()


@app.errorhandler(HistoryStoreError)
def storage_unavailable(e):
    print(f"Bill history unavailable: {e}")
    return jsonify({"message": "Bill history is temporarily unavailable"}), 503


# =============================================================================
# API ROUTES
# =============================================================================

@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "storage": service.store.name})


@app.route("/tariff", methods=["GET"])
def tariff():
    """Active tariff schedule (slabs, fixed charge, tax rate)."""
    return jsonify(schedule_to_dict(service.schedule))


@app.route("/bill", methods=["POST"])
def calculate_bill():
    """
    Calculate a bill from two meter readings and save it to history.

    Request Body (JSON):
        {"previousReading": 1000, "currentReading": 1250}

    HTTP Status Codes:
        200: bill calculated (check "persisted" - false means it was not saved)
        400: readings missing, not numbers, or current < previous
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    try:
        submission = service.submit_readings(
            data.get("previousReading"), data.get("currentReading")
        )
    except InvalidReadingError as e:
        return jsonify({"message": str(e)}), 400

    body = bill_to_dict(submission.bill)
    body["persisted"] = submission.persisted
    if not submission.persisted:
        body["warning"] = "Bill calculated but could not be saved to history. Please try again."
    return jsonify(body)


@app.route("/bills", methods=["GET"])
def list_bills():
    """
    Most recent bills first.

    Query Parameters:
        limit (optional): maximum number of bills (default: 10)
    """
    try:
        limit = int(request.args.get("limit", DEFAULT_BILLS_LIMIT))
    except ValueError:
        return jsonify({"message": "limit must be a positive integer"}), 400
    if limit <= 0:
        return jsonify({"message": "limit must be a positive integer"}), 400

    return jsonify([bill_to_dict(b) for b in service.recent_bills(limit)])


@app.route("/bills/<bill_id>", methods=["DELETE"])
def delete_bill(bill_id):
    if not service.delete_bill(bill_id):
        return jsonify({"message": f"Bill {bill_id} not found"}), 404
    return "", 204


@app.route("/bills", methods=["DELETE"])
def clear_bills():
    """Remove the whole history (reset)."""
    service.clear_history()
    return "", 204


@app.route("/forecast", methods=["GET"])
def forecast():
    """Next-period forecast; a zero placeholder when there is no history yet."""
    return jsonify(forecast_to_dict(service.forecast()))


@app.route("/dashboard", methods=["GET"])
def dashboard():
    return jsonify(dashboard_to_dict(service.dashboard()))


@app.route("/tips", methods=["GET"])
def tips():
    return jsonify({"tips": [tip_to_dict(t) for t in service.tips()]})


# =============================================================================
# RUN THE SERVER
# =============================================================================

if __name__ == "__main__":
    # debug=True reloads on code changes; never use it in production
    app.run(debug=True)
