import logging

from flask import request, jsonify, abort
from sqlalchemy.exc import SQLAlchemyError

from . import app, repository
from .auth import token_required
from .models import db
from .streak import today_in
from .validation import ValidationError, require_fields, number_value, calendar_date, int_arg

logger = logging.getLogger(__name__)


@app.route("/api/logs", methods=["GET", "POST"])
@token_required
def logs(user):
    today = today_in(app.config["TRACKFLOW_TIMEZONE"])
    if request.method == "GET":
        try:
            activity_id = int_arg(request.args, "activity_id")
            day = calendar_date(request.args["date"]) if request.args.get("date") else None
        except ValidationError as e:
            return jsonify({"message": str(e)}), 400
        try:
            items = repository.list_logs(user.id, activity_id=activity_id, day=day)
            logger.debug(f"Fetched {len(items)} logs for user {user.id}")
            return jsonify([log.to_dict(include_activity=True) for log in items]), 200
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching logs: {str(e)}")
            return jsonify({"message": "Failed to fetch logs"}), 500

    data = request.get_json(silent=True) or {}
    logger.debug(f"Create log payload: {data}")
    try:
        require_fields(data, "activity_id", "value")
        value = number_value(data["value"], "value")
        if value < 0:
            raise ValidationError("value must not be negative")
        day = calendar_date(data.get("date"), default=today)
    except ValidationError as e:
        logger.error(f"Invalid log payload: {e}")
        return jsonify({"message": str(e)}), 400

    try:
        activity_id = int(data["activity_id"])
    except (TypeError, ValueError):
        return jsonify({"message": "activity_id must be an integer"}), 400
    if repository.get_activity(user.id, activity_id) is None:
        abort(404, description="Activity not found")

    try:
        log, created = repository.upsert_log(user.id, activity_id, day, value)
        db.session.commit()
        logger.info(f"Log {'created' if created else 'updated'} for activity {activity_id} on {day} by user {user.id}")
        return jsonify(log.to_dict()), 201 if created else 200
    except SQLAlchemyError as e:
        logger.error(f"Database error saving log: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to save log"}), 500


@app.route("/api/logs/today", methods=["GET"])
@token_required
def today_logs(user):
    today = today_in(app.config["TRACKFLOW_TIMEZONE"])
    try:
        items = repository.list_logs(user.id, day=today)
        logger.debug(f"Fetched {len(items)} logs for {today} for user {user.id}")
        return jsonify([log.to_dict(include_activity=True) for log in items]), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching today's logs: {str(e)}")
        return jsonify({"message": "Failed to fetch today's logs"}), 500
