"""Push and email reminder dispatch.

Deliveries fan out on a bounded thread pool. Worker threads only talk to the
external provider; every database change (deactivating stale push endpoints)
happens afterwards on the calling thread.
"""
import hmac
import json
import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

from flask import request, jsonify, abort
from pywebpush import webpush
from sqlalchemy.exc import SQLAlchemyError

from . import app, mail, mailer, repository
from .auth import bearer_token, token_required, user_from_token
from .models import db, PushSubscription, EmailSubscription
from .streak import now_in
from .validation import ValidationError, reminder_time

logger = logging.getLogger(__name__)

PUSH = "push"
EMAIL = "email"
DAILY_REMINDER = "daily-reminder"
NOTIFICATION_TYPES = (PUSH, EMAIL, DAILY_REMINDER)

DEFAULT_MESSAGE = "Don't forget to log your daily activities! Keep your streak going! 🔥"

Delivery = namedtuple("Delivery", ["subscription_id", "ok", "error"])


class NotificationConfigError(RuntimeError):
    pass


class DispatchReport:
    def __init__(self, channel):
        self.channel = channel
        self.sent = []
        self.failed = []
        self.deactivated = []

    def add(self, delivery):
        (self.sent if delivery.ok else self.failed).append(delivery)

    def to_dict(self):
        return {
            "channel": self.channel,
            "sent": len(self.sent),
            "failed": len(self.failed),
            "deactivated": list(self.deactivated),
            "errors": {str(d.subscription_id): d.error for d in self.failed}
        }


def push_payload(body, title="TrackFlow Reminder", url="/dashboard"):
    """JSON payload read by the service worker's push handler."""
    return json.dumps({
        "title": title,
        "body": body,
        "url": url,
        "icon": "/icon-192x192.png",
        "badge": "/icon-192x192.png"
    })


def _vapid_settings():
    private_key = app.config.get("VAPID_PRIVATE_KEY")
    email = app.config.get("VAPID_EMAIL")
    if not private_key or not email or not app.config.get("VAPID_PUBLIC_KEY"):
        raise NotificationConfigError("Missing VAPID config: set VAPID_EMAIL, VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY")
    return private_key, email


def deliver_push(raw_subscription, payload):
    private_key, email = _vapid_settings()
    webpush(
        subscription_info=json.loads(raw_subscription),
        data=payload,
        vapid_private_key=private_key,
        vapid_claims={"sub": f"mailto:{email}"}
    )


def _fan_out(jobs, deliver):
    """Run ``deliver(*args)`` for each ``(subscription_id, args)`` job and
    return one :class:`Delivery` per job, in job order."""
    if not jobs:
        return []

    def run(job):
        subscription_id, args = job
        with app.app_context():
            try:
                deliver(*args)
                return Delivery(subscription_id, True, None)
            except Exception as e:
                logger.error(f"Failed to deliver notification for subscription {subscription_id}: {str(e)}")
                return Delivery(subscription_id, False, str(e))

    workers = max(1, min(app.config["NOTIFICATION_MAX_WORKERS"], len(jobs)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(run, jobs))


def _deactivate_failed(report):
    for delivery in report.failed:
        sub = db.session.get(PushSubscription, delivery.subscription_id)
        if sub is not None and sub.is_active:
            sub.is_active = False
            report.deactivated.append(sub.id)
    if report.deactivated:
        db.session.commit()
        logger.info(f"Deactivated {len(report.deactivated)} push subscriptions after failed delivery")


def send_push_notifications(message=None, user_id=None, reminder_at=None, title="TrackFlow Reminder", url="/dashboard"):
    _vapid_settings()
    subscriptions = repository.active_subscriptions(PushSubscription, user_id=user_id, reminder_time=reminder_at)
    payload = push_payload(message or DEFAULT_MESSAGE, title=title, url=url)
    jobs = [(sub.id, (sub.subscription, payload)) for sub in subscriptions]
    report = DispatchReport(PUSH)
    for delivery in _fan_out(jobs, deliver_push):
        report.add(delivery)
    _deactivate_failed(report)
    logger.info(f"Push dispatch: {len(report.sent)} sent, {len(report.failed)} failed")
    return report


def send_email_notifications(message=None, user_id=None):
    subscriptions = repository.active_subscriptions(EmailSubscription, user_id=user_id)
    jobs = [(sub.id, (mailer.reminder_message(sub.email, message or DEFAULT_MESSAGE),)) for sub in subscriptions]
    report = DispatchReport(EMAIL)
    for delivery in _fan_out(jobs, mail.send):
        report.add(delivery)
    logger.info(f"Email dispatch: {len(report.sent)} sent, {len(report.failed)} failed")
    return report


def send_daily_reminders(now=None, user_id=None):
    """Send to every active subscription whose reminder time equals the
    current HH:MM. Meant to be triggered once a minute by an external cron;
    ``user_id`` limits the sweep to one account."""
    now = now or now_in(app.config["TRACKFLOW_TIMEZONE"])
    current_time = now.strftime("%H:%M")
    logger.info(f"Running daily reminder sweep for {current_time}")
    reports = []

    try:
        reports.append(send_push_notifications(
            DEFAULT_MESSAGE, user_id=user_id, reminder_at=current_time, title="TrackFlow Daily Reminder", url="/log"
        ))
    except NotificationConfigError as e:
        logger.error(f"Skipping push reminders: {str(e)}")

    subscriptions = repository.active_subscriptions(EmailSubscription, user_id=user_id, reminder_time=current_time)
    jobs = [(sub.id, (mailer.daily_reminder_message(sub.email, sub.user.name),)) for sub in subscriptions]
    report = DispatchReport(EMAIL)
    for delivery in _fan_out(jobs, mail.send):
        report.add(delivery)
    reports.append(report)
    return reports


def _authorize_send():
    """Return ``(allowed, user)``. A valid bearer token scopes sends to that user."""
    token = bearer_token()
    user = user_from_token(token) if token else None
    if user is not None:
        return True, user
    secret = app.config.get("CRON_SECRET")
    if not secret:
        return True, None
    provided = request.headers.get("X-Cron-Secret", "")
    return hmac.compare_digest(provided.encode("utf-8"), secret.encode("utf-8")), None


@app.route("/api/notifications/vapid-public-key", methods=["GET"])
def vapid_public_key():
    key = app.config.get("VAPID_PUBLIC_KEY")
    if not key:
        abort(404, description="Push notifications are not configured")
    return jsonify({"public_key": key}), 200


@app.route("/api/notifications/subscriptions", methods=["GET"])
@token_required
def subscriptions(user):
    push = PushSubscription.query.filter_by(user_id=user.id).first()
    email = EmailSubscription.query.filter_by(user_id=user.id).first()
    return jsonify({
        "push": {"reminder_time": push.reminder_time, "is_active": push.is_active} if push else None,
        "email": email.to_dict() if email else None
    }), 200


@app.route("/api/notifications/subscribe", methods=["POST"])
@token_required
def subscribe_push(user):
    data = request.get_json(silent=True) or {}
    subscription = data.get("subscription")
    if not isinstance(subscription, dict) or not subscription.get("endpoint"):
        return jsonify({"message": "A push subscription with an endpoint is required"}), 400
    try:
        at = reminder_time(data.get("reminder_time"))
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    try:
        repository.upsert_push_subscription(user.id, subscription, at)
        db.session.commit()
        logger.info(f"Push subscription saved for user {user.id} at {at}")
        return jsonify({"message": "Subscription saved successfully"}), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error saving push subscription: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to save subscription"}), 500


@app.route("/api/notifications/unsubscribe", methods=["POST"])
@token_required
def unsubscribe_push(user):
    return _deactivate(PushSubscription, user, "Unsubscribed successfully")


@app.route("/api/notifications/email/subscribe", methods=["POST"])
@token_required
def subscribe_email(user):
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or user.email).strip()
    if "@" not in email:
        return jsonify({"message": "A valid email address is required"}), 400
    try:
        at = reminder_time(data.get("reminder_time"))
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    try:
        repository.upsert_email_subscription(user.id, email, at)
        db.session.commit()
        logger.info(f"Email subscription saved for user {user.id} at {at}")
        return jsonify({"message": "Email subscription saved successfully"}), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error saving email subscription: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to save email subscription"}), 500


@app.route("/api/notifications/email/unsubscribe", methods=["POST"])
@token_required
def unsubscribe_email(user):
    return _deactivate(EmailSubscription, user, "Email unsubscribed successfully")


def _deactivate(model, user, message):
    try:
        found = repository.deactivate_subscription(model, user.id)
        if not found:
            abort(404, description="Subscription not found")
        db.session.commit()
        logger.info(f"{model.__name__} deactivated for user {user.id}")
        return jsonify({"message": message}), 200
    except SQLAlchemyError as e:
        logger.error(f"Database error deactivating {model.__name__}: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to unsubscribe"}), 500


@app.route("/api/notifications/send", methods=["POST"])
def send_notifications():
    allowed, user = _authorize_send()
    if not allowed:
        logger.error("Rejected notification send with bad cron secret")
        return jsonify({"message": "Unauthorized"}), 401

    data = request.get_json(silent=True) or {}
    kind = data.get("type")
    if kind not in NOTIFICATION_TYPES:
        return jsonify({"message": f"type must be one of {', '.join(NOTIFICATION_TYPES)}"}), 400
    message = data.get("message")
    user_id = user.id if user is not None else data.get("user_id")

    try:
        if kind == PUSH:
            reports = [send_push_notifications(message, user_id=user_id)]
        elif kind == EMAIL:
            reports = [send_email_notifications(message, user_id=user_id)]
        else:
            reports = send_daily_reminders(user_id=user_id)
    except NotificationConfigError as e:
        logger.error(f"Send notification error: {str(e)}")
        return jsonify({"message": str(e)}), 500
    except SQLAlchemyError as e:
        logger.error(f"Database error sending notifications: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to send notifications"}), 500

    return jsonify({
        "message": "Notifications sent successfully",
        "results": [report.to_dict() for report in reports]
    }), 200
