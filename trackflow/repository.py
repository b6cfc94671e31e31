"""Write-boundary operations on the database.

Route handlers go through these functions for every mutation so that the
one-log-per-day rule and subscription upserts live in one place. Callers own
the transaction: nothing here commits.
"""
import json
import logging

from .models import db, Activity, Log, PushSubscription, EmailSubscription

logger = logging.getLogger(__name__)


def get_activity(user_id, activity_id):
    return Activity.query.filter_by(id=activity_id, user_id=user_id).first()


def list_activities(user_id):
    return Activity.query.filter_by(user_id=user_id).order_by(Activity.created_at, Activity.id).all()


def create_activity(user_id, **fields):
    activity = Activity(user_id=user_id, **fields)
    db.session.add(activity)
    db.session.flush()
    return activity


def delete_activity(activity):
    # Logs go with the activity through the relationship cascade
    log_count = len(activity.logs)
    db.session.delete(activity)
    db.session.flush()
    logger.debug(f"Deleted activity {activity.id} and {log_count} logs")
    return log_count


def list_logs(user_id, activity_id=None, day=None, start=None, end=None):
    query = Log.query.filter_by(user_id=user_id)
    if activity_id is not None:
        query = query.filter_by(activity_id=activity_id)
    if day is not None:
        query = query.filter(Log.date == day)
    if start is not None:
        query = query.filter(Log.date >= start)
    if end is not None:
        query = query.filter(Log.date <= end)
    return query.order_by(Log.date.desc(), Log.id).all()


def upsert_log(user_id, activity_id, day, value):
    """Store ``value`` as the single log for ``activity_id`` on ``day``.

    Returns ``(log, created)``.
    """
    log = Log.query.filter_by(activity_id=activity_id, date=day).first()
    if log:
        log.value = value
        db.session.flush()
        return log, False
    log = Log(activity_id=activity_id, user_id=user_id, date=day, value=value)
    db.session.add(log)
    db.session.flush()
    return log, True


def upsert_push_subscription(user_id, subscription, reminder_time):
    record = PushSubscription.query.filter_by(user_id=user_id).first()
    if record is None:
        record = PushSubscription(user_id=user_id)
        db.session.add(record)
    record.subscription = json.dumps(subscription)
    record.reminder_time = reminder_time
    record.is_active = True
    db.session.flush()
    return record


def upsert_email_subscription(user_id, email, reminder_time):
    record = EmailSubscription.query.filter_by(user_id=user_id).first()
    if record is None:
        record = EmailSubscription(user_id=user_id)
        db.session.add(record)
    record.email = email
    record.reminder_time = reminder_time
    record.is_active = True
    db.session.flush()
    return record


def deactivate_subscription(model, user_id):
    """Soft-deactivate; returns False when the user never subscribed."""
    record = model.query.filter_by(user_id=user_id).first()
    if record is None:
        return False
    record.is_active = False
    db.session.flush()
    return True


def active_subscriptions(model, user_id=None, reminder_time=None):
    query = model.query.filter_by(is_active=True)
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    if reminder_time is not None:
        query = query.filter_by(reminder_time=reminder_time)
    return query.order_by(model.id).all()
