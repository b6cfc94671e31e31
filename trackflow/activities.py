import logging

from flask import request, jsonify, abort
from sqlalchemy.exc import SQLAlchemyError

from . import app, repository
from .auth import token_required
from .models import db
from .streak import activity_streak, today_in
from .validation import ValidationError, require_fields, positive_number, reminder_time, bool_value

logger = logging.getLogger(__name__)

# Categories offered by the activity form, with their default emoji and color
CATEGORIES = [
    {"name": "Health & Fitness", "emoji": "💪", "color": "#ef4444"},
    {"name": "Learning", "emoji": "📚", "color": "#3b82f6"},
    {"name": "Work", "emoji": "💼", "color": "#8b5cf6"},
    {"name": "Personal", "emoji": "🧘", "color": "#10b981"},
    {"name": "Social", "emoji": "👥", "color": "#f59e0b"},
    {"name": "Creative", "emoji": "🎨", "color": "#ec4899"},
    {"name": "Other", "emoji": "⭐", "color": "#6b7280"},
]
_CATEGORY_DEFAULTS = {c["name"]: c for c in CATEGORIES}


def activity_fields(data):
    """Validate a create payload and fill category defaults for emoji/color."""
    require_fields(data, "name", "category", "target", "unit")
    category = str(data["category"]).strip()
    defaults = _CATEGORY_DEFAULTS.get(category, _CATEGORY_DEFAULTS["Other"])
    return {
        "name": str(data["name"]).strip(),
        "category": category,
        "target": positive_number(data["target"], "target"),
        "unit": str(data["unit"]).strip(),
        "color": data.get("color") or defaults["color"],
        "emoji": data.get("emoji") or defaults["emoji"],
        "reminder_time": reminder_time(data.get("reminder_time")),
        "reminder_enabled": bool_value(data.get("reminder_enabled", True), "reminder_enabled"),
    }


@app.route("/api/activities/categories", methods=["GET"])
def categories():
    return jsonify(CATEGORIES), 200


@app.route("/api/activities", methods=["GET", "POST"])
@token_required
def activities(user):
    if request.method == "GET":
        try:
            items = repository.list_activities(user.id)
            logger.debug(f"Fetched {len(items)} activities for user {user.id}")
            return jsonify([activity.to_dict() for activity in items]), 200
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching activities: {str(e)}")
            return jsonify({"message": "Failed to fetch activities"}), 500

    data = request.get_json(silent=True) or {}
    logger.debug(f"Create activity payload: {data}")
    try:
        fields = activity_fields(data)
    except ValidationError as e:
        logger.error(f"Invalid activity payload: {e}")
        return jsonify({"message": str(e)}), 400
    try:
        activity = repository.create_activity(user.id, **fields)
        db.session.commit()
        logger.info(f"Activity created: {activity.name} for user {user.id}")
        return jsonify(activity.to_dict()), 201
    except SQLAlchemyError as e:
        logger.error(f"Database error creating activity: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to create activity"}), 500


@app.route("/api/activities/<int:id>", methods=["GET", "DELETE"])
@token_required
def activity(user, id):
    activity = repository.get_activity(user.id, id)
    if activity is None:
        abort(404, description="Activity not found")
    if request.method == "GET":
        data = activity.to_dict()
        data["streak"] = activity_streak(activity, today_in(app.config["TRACKFLOW_TIMEZONE"]))
        return jsonify(data), 200
    try:
        removed = repository.delete_activity(activity)
        db.session.commit()
        logger.info(f"Activity {id} deleted with {removed} logs by user {user.id}")
        return jsonify({"message": "Activity deleted", "deleted_logs": removed}), 200
    except SQLAlchemyError as e:
        logger.error(f"Error deleting activity {id}: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to delete activity"}), 500


@app.route("/api/activities/<int:id>/streak", methods=["GET"])
@token_required
def streak(user, id):
    activity = repository.get_activity(user.id, id)
    if activity is None:
        abort(404, description="Activity not found")
    today = today_in(app.config["TRACKFLOW_TIMEZONE"])
    return jsonify({"activity_id": id, "streak": activity_streak(activity, today)}), 200
