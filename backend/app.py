"""
flask rest api for the home vitals tracker.

provides endpoints for:
- recording vitals readings and listing them
- daily averages for charts
- issuing and checking sharing sessions
- a live event stream for shared dashboards
- insight summaries
"""

import logging
from datetime import datetime, UTC

from flask import Flask, Response, request, jsonify, stream_with_context

from backend.config import Config, get_db_session, configure_logging, init_db
from backend.exceptions import ValidationError, StorageError
from backend.repositories.sharing_repository import SharingRepository
from backend.repositories.vitals_repository import VitalsRepository
from backend.services.insights_service import generate_insights
from backend.services.notifications import NotificationHub, format_sse
from backend.services.vitals_service import record_reading

logger = logging.getLogger(__name__)

MIN_WINDOW_DAYS = 1
MAX_WINDOW_DAYS = 365

# seconds between keep-alive comments on idle event streams
STREAM_KEEPALIVE_SECONDS = 15


# initialize flask app
app = Flask(__name__)

# live update fan-out shared by all request handlers
notification_hub = NotificationHub(max_queue_size=Config.NOTIFICATION_QUEUE_SIZE)


def error_response(message: str, status_code: int) -> tuple:
    """
    create standardized error response.

    args:
        message: error message
        status_code: http status code

    returns:
        tuple of (json_response, status_code)
    """
    return jsonify({
        "success": False,
        "error": message,
        "status_code": status_code
    }), status_code


def _parse_days(default: int) -> int:
    """
    read the days query parameter.

    raises:
        ValidationError: if days is not an integer in range
    """
    message = f"days must be an integer between {MIN_WINDOW_DAYS} and {MAX_WINDOW_DAYS}"

    raw_days = request.args.get('days')
    if raw_days is None:
        return default

    try:
        days = int(raw_days)
    except ValueError:
        raise ValidationError(message)

    if days < MIN_WINDOW_DAYS or days > MAX_WINDOW_DAYS:
        raise ValidationError(message)
    return days


@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return error_response(str(e), 400)


@app.errorhandler(StorageError)
def handle_storage_error(e):
    # details stay in the server log
    logger.error("storage failure on %s %s: %s", request.method, request.path, e)
    return error_response("storage unavailable, please try again", 500)


@app.route('/health', methods=['GET'])
def health():
    """
    health check endpoint.

    returns:
        json response with health status
    """
    return jsonify({
        "status": "healthy",
        "service": "home-vitals-tracker",
        "timestamp": datetime.now(UTC).isoformat()
    })


@app.route('/api/vitals', methods=['POST'])
def create_vitals():
    """
    record a new vitals reading.

    request body:
        {
            "date": "YYYY-MM-DD",
            "time_slot": "morning",
            "systolic": 120,  // any vital optional, at least one required
            "diastolic": 80,
            "oxygen_level": 97,
            "blood_sugar": 110,
            "urine_output": 400,
            "notes": "string"  // optional
        }

    returns:
        json response with the reading id and its alerts
    """
    data = request.get_json(silent=True)
    if data is None:
        return error_response("request body is required", 400)

    session = get_db_session()
    try:
        reading, alerts = record_reading(
            VitalsRepository(session),
            SharingRepository(session),
            data,
            notification_hub
        )

        return jsonify({
            "success": True,
            "id": reading.id,
            "message": "Vitals recorded successfully",
            "alerts": [alert.to_dict() for alert in alerts]
        }), 201
    finally:
        session.close()


@app.route('/api/vitals', methods=['GET'])
def list_vitals():
    """
    list readings in a trailing window.

    query parameters:
        days: window in days (default: 30)

    returns:
        json response with readings, newest date first
    """
    days = _parse_days(Config.INSIGHTS_WINDOW_DAYS)

    session = get_db_session()
    try:
        readings = VitalsRepository(session).get_recent_readings(days)
        return jsonify({
            "success": True,
            "days": days,
            "vitals_count": len(readings),
            "vitals": [r.to_dict() for r in readings]
        }), 200
    finally:
        session.close()


@app.route('/api/vitals/trends', methods=['GET'])
def vitals_trends():
    """
    per-day averages of every vital, oldest day first.

    query parameters:
        days: window in days (default: 30)
    """
    days = _parse_days(Config.INSIGHTS_WINDOW_DAYS)

    session = get_db_session()
    try:
        averages = VitalsRepository(session).get_daily_averages(days)
        return jsonify({
            "success": True,
            "days": days,
            "trends": averages
        }), 200
    finally:
        session.close()


@app.route('/api/sharing/create', methods=['POST'])
def create_sharing_session():
    """
    issue a read-only sharing session.

    request body:
        {
            "patientName": "string",  // optional
            "doctorEmail": "string"   // optional
        }

    returns:
        json response with sessionId and shareUrl
    """
    data = request.get_json(silent=True) or {}

    session = get_db_session()
    try:
        sharing_session = SharingRepository(session).create_session(
            patient_name=data.get('patientName'),
            doctor_email=data.get('doctorEmail')
        )
        share_url = f"{request.host_url}doctor/{sharing_session.id}"

        return jsonify({
            "success": True,
            "sessionId": sharing_session.id,
            "shareUrl": share_url
        }), 201
    finally:
        session.close()


@app.route('/api/sharing/<session_id>', methods=['GET'])
def get_sharing_session(session_id: str):
    """
    return details of an active sharing session.

    args:
        session_id: session identifier from url path
    """
    session = get_db_session()
    try:
        sharing_session = SharingRepository(session).get_active_session(session_id)
        if sharing_session is None:
            return error_response("session not found", 404)

        return jsonify({"success": True, **sharing_session.to_dict()}), 200
    finally:
        session.close()


@app.route('/api/sharing/<session_id>', methods=['DELETE'])
def revoke_sharing_session(session_id: str):
    """
    deactivate a sharing session.

    args:
        session_id: session identifier from url path
    """
    session = get_db_session()
    try:
        if not SharingRepository(session).deactivate_session(session_id):
            return error_response("session not found", 404)

        return jsonify({"success": True, "sessionId": session_id}), 200
    finally:
        session.close()


@app.route('/api/sharing/<session_id>/events', methods=['GET'])
def sharing_events(session_id: str):
    """
    stream vitals_update events to a viewer as server-sent events.

    a viewer that reconnects should reload vitals and insights, since events
    published while it was disconnected are not replayed.

    args:
        session_id: session identifier from url path
    """
    session = get_db_session()
    try:
        sharing_session = SharingRepository(session).get_active_session(session_id)
    finally:
        session.close()

    if sharing_session is None:
        return error_response("session not found", 404)

    def stream():
        # subscribe on first read; the finally below never runs for an unread body
        subscription = notification_hub.subscribe(session_id)
        try:
            yield ": connected\n\n"
            while True:
                event = subscription.get(timeout=STREAM_KEEPALIVE_SECONDS)
                if event is None:
                    yield ": keep-alive\n\n"
                    continue
                yield format_sse(event)
        finally:
            notification_hub.unsubscribe(subscription)

    return Response(
        stream_with_context(stream()),
        mimetype='text/event-stream',
        headers={'Cache-Control': 'no-cache'}
    )


@app.route('/api/vitals/shared/<session_id>', methods=['GET'])
def shared_vitals(session_id: str):
    """
    readings for a shared dashboard, each with its structured alerts.

    args:
        session_id: session identifier from url path

    query parameters:
        days: window in days (default: 30)
    """
    days = _parse_days(Config.INSIGHTS_WINDOW_DAYS)

    session = get_db_session()
    try:
        sharing_session = SharingRepository(session).get_active_session(session_id)
        if sharing_session is None:
            return error_response("session not found", 404)

        vitals = VitalsRepository(session).get_readings_with_alerts(days)

        return jsonify({
            "success": True,
            "patient": sharing_session.patient_name,
            "days": days,
            "vitals": vitals
        }), 200
    finally:
        session.close()


@app.route('/api/insights', methods=['GET'])
@app.route('/api/insights/<session_id>', methods=['GET'])
def insights(session_id: str = None):
    """
    insight summary over a trailing window.

    args:
        session_id: optional sharing session; must be active when given

    query parameters:
        days: trend window in days (default: 30)
    """
    days = _parse_days(Config.INSIGHTS_WINDOW_DAYS)

    session = get_db_session()
    try:
        if session_id is not None:
            if SharingRepository(session).get_active_session(session_id) is None:
                return error_response("session not found", 404)

        result = generate_insights(
            VitalsRepository(session),
            window_days=days,
            alerts_recency_days=Config.ALERTS_RECENCY_DAYS,
            alerts_limit=Config.ALERTS_LIMIT
        )

        return jsonify(result), 200
    finally:
        session.close()


# development server
if __name__ == '__main__':
    configure_logging()
    init_db()

    app.run(
        debug=Config.FLASK_DEBUG,
        port=Config.FLASK_PORT,
        host='0.0.0.0',
        threaded=True
    )
