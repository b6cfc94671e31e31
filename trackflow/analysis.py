"""Dashboard progress and monthly calendar analytics.

The functions at the top are pure: they take activities and log entries from
either the database or the local store and a fixed ``today``. The routes at
the bottom feed them from the database.
"""
import calendar
import logging
import math
from collections import namedtuple
from datetime import timedelta

from flask import request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from . import app, repository
from .auth import token_required
from .streak import calculate_streak, parse_date, today_in
from .validation import ValidationError, int_arg

logger = logging.getLogger(__name__)

LogEntry = namedtuple("LogEntry", ["activity_id", "date", "value"])

ALL_ACTIVITIES = "all"


def round_half_up(value, digits=0):
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def to_entries(logs):
    return [LogEntry(log.activity_id, parse_date(log.date), log.value) for log in logs]


def days_in_month(year, month):
    return calendar.monthrange(year, month)[1]


def _matches(entry, activity_id):
    return activity_id in (None, ALL_ACTIVITIES) or entry.activity_id == activity_id


def calendar_grid(entries, year, month, activity_id=None):
    """Day cells for a month, preceded by ``None`` blanks so day 1 lands on its
    weekday column in a Sunday-first week."""
    first_weekday = calendar.monthrange(year, month)[0]
    leading = (first_weekday + 1) % 7
    counts = {}
    for entry in entries:
        if entry.date.year == year and entry.date.month == month and _matches(entry, activity_id):
            counts[entry.date.day] = counts.get(entry.date.day, 0) + 1

    days = [None] * leading
    for day in range(1, days_in_month(year, month) + 1):
        log_count = counts.get(day, 0)
        days.append({
            "day": day,
            "date": f"{year:04d}-{month:02d}-{day:02d}",
            "log_count": log_count,
            "has_activity": log_count > 0
        })
    return days


def monthly_stats(entries, year, month, activity_id=None):
    month_entries = [
        e for e in entries
        if e.date.year == year and e.date.month == month and _matches(e, activity_id)
    ]
    total_days = days_in_month(year, month)
    active_days = len({e.date for e in month_entries})
    return {
        "active_days": active_days,
        "total_days": total_days,
        "completion_rate": round_half_up(100 * active_days / total_days),
        "total_logs": len(month_entries)
    }


def activity_stats(activity_id, entries, today):
    values = [e for e in entries if e.activity_id == activity_id]
    total_logged = sum(e.value for e in values)
    average_daily = total_logged / len(values) if values else 0
    return {
        "streak": calculate_streak([e.date for e in values], today),
        "total_logged": total_logged,
        "average_daily": round_half_up(average_daily, 2),
        "total_days": len(values)
    }


def progress_for(target, today_value):
    """Return ``(progress, completed)`` with progress clamped to [0, 100]."""
    if not target or target <= 0 or today_value <= 0:
        return 0, False
    progress = today_value / target * 100
    return min(progress, 100), progress >= 100


def completion_message(rate):
    if rate == 100:
        return "Perfect day! You're crushing it! 🔥"
    if rate >= 75:
        return "Almost there! Keep pushing! 💪"
    if rate >= 50:
        return "Great progress! You're doing well! ⭐"
    if rate >= 25:
        return "Good start! Keep building momentum! 🚀"
    return "Every journey starts with a single step! 🌱"


def daily_counts(entries, start, end):
    counts = {}
    for entry in entries:
        if start <= entry.date <= end:
            counts[entry.date] = counts.get(entry.date, 0) + 1
    span = (end - start).days + 1
    return [(start + timedelta(days=i), counts.get(start + timedelta(days=i), 0)) for i in range(span)]


def dashboard(activities, entries, today):
    """Join each activity (a dict with at least ``id`` and ``target``) with
    today's log and reduce the list to summary stats."""
    today_values = {e.activity_id: e.value for e in entries if e.date == today}
    items = []
    for activity in activities:
        today_value = today_values.get(activity["id"], 0)
        progress, completed = progress_for(activity["target"], today_value)
        item = dict(activity)
        item.update({
            "today_value": today_value,
            "progress": progress,
            "completed": completed,
            "streak": calculate_streak([e.date for e in entries if e.activity_id == activity["id"]], today)
        })
        items.append(item)

    completed_count = sum(1 for item in items if item["completed"])
    completion_rate = round_half_up(completed_count / len(items) * 100) if items else 0
    week = daily_counts(entries, today - timedelta(days=6), today)
    month = daily_counts(entries, today.replace(day=1), today)
    return {
        "date": today.isoformat(),
        "activities": items,
        "total_activities": len(items),
        "completed_today": completed_count,
        "completion_rate": completion_rate,
        "total_streak": sum(item["streak"] for item in items),
        "weekly_progress": [count for _, count in week],
        "monthly_progress": {day.isoformat(): count for day, count in month},
        "message": completion_message(completion_rate)
    }


@app.route("/api/dashboard", methods=["GET"])
@token_required
def get_dashboard(user):
    today = today_in(app.config["TRACKFLOW_TIMEZONE"])
    try:
        activities = [a.to_dict() for a in repository.list_activities(user.id)]
        entries = to_entries(repository.list_logs(user.id))
        data = dashboard(activities, entries, today)
        logger.debug(f"Dashboard fetched for user {user.id}: {data['completed_today']}/{data['total_activities']} completed")
        return jsonify(data), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching dashboard: {str(e)}")
        return jsonify({"message": "Failed to fetch dashboard"}), 500


@app.route("/api/analytics", methods=["GET"])
@token_required
def get_analytics(user):
    today = today_in(app.config["TRACKFLOW_TIMEZONE"])
    try:
        month = int_arg(request.args, "month", default=today.month)
        year = int_arg(request.args, "year", default=today.year)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        return jsonify({"message": "month must be 1-12 and year 1-9999"}), 400
    activity_param = request.args.get("activity_id", ALL_ACTIVITIES)
    if activity_param == ALL_ACTIVITIES:
        activity_id = None
    else:
        try:
            activity_id = int(activity_param)
        except ValueError:
            return jsonify({"message": "activity_id must be an integer or 'all'"}), 400

    try:
        activities = repository.list_activities(user.id)
        entries = to_entries(repository.list_logs(user.id))
        per_activity = []
        for activity in activities:
            stats = activity.to_dict()
            stats.update(activity_stats(activity.id, entries, today))
            per_activity.append(stats)
        logger.debug(f"Analytics fetched for user {user.id}: {year}-{month:02d}, {len(per_activity)} activities")
        return jsonify({
            "month": month,
            "year": year,
            "activity_id": activity_id if activity_id is not None else ALL_ACTIVITIES,
            "calendar": calendar_grid(entries, year, month, activity_id),
            "monthly_stats": monthly_stats(entries, year, month, activity_id),
            "activity_stats": per_activity,
            "best_streak": max([a["streak"] for a in per_activity], default=0)
        }), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching analytics: {str(e)}")
        return jsonify({"message": "Failed to fetch analytics"}), 500
