from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(120), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    activities = db.relationship("Activity", backref="user", lazy=True, cascade="all, delete-orphan")
    logs = db.relationship("Log", backref="user", lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at.isoformat()
        }


class Activity(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    target = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(30), nullable=False)
    color = db.Column(db.String(20), nullable=False)
    emoji = db.Column(db.String(16), nullable=False, default="⭐")
    reminder_time = db.Column(db.String(5), nullable=False, default="20:00")  # "HH:MM"
    reminder_enabled = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    logs = db.relationship("Log", backref="activity", lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "target": self.target,
            "unit": self.unit,
            "color": self.color,
            "emoji": self.emoji,
            "reminder_time": self.reminder_time,
            "reminder_enabled": self.reminder_enabled,
            "created_at": self.created_at.isoformat()
        }


class Log(db.Model):
    __table_args__ = (db.UniqueConstraint("activity_id", "date", name="uq_log_activity_date"),)

    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(db.Integer, db.ForeignKey("activity.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    value = db.Column(db.Float, nullable=False)
    date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_dict(self, include_activity=False):
        data = {
            "id": self.id,
            "activity_id": self.activity_id,
            "value": self.value,
            "date": self.date.isoformat(),
            "created_at": self.created_at.isoformat()
        }
        if include_activity:
            data["activity"] = self.activity.to_dict()
        return data


class PushSubscription(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), unique=True, nullable=False)
    subscription = db.Column(db.Text, nullable=False)  # JSON-encoded browser PushSubscription
    reminder_time = db.Column(db.String(5), nullable=False, default="20:00")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)
    user = db.relationship("User", backref=db.backref("push_subscription", uselist=False, cascade="all, delete-orphan"))


class EmailSubscription(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), unique=True, nullable=False)
    email = db.Column(db.String(120), nullable=False)
    reminder_time = db.Column(db.String(5), nullable=False, default="20:00")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)
    user = db.relationship("User", backref=db.backref("email_subscription", uselist=False, cascade="all, delete-orphan"))

    def to_dict(self):
        return {
            "email": self.email,
            "reminder_time": self.reminder_time,
            "is_active": self.is_active
        }
