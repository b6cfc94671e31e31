"""Single-user local store kept in one JSON file.

The file holds three fixed keys, each a whole collection that is read and
replaced in full on every save. There is no locking: one process, one user.
"""
import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone

from .analysis import LogEntry, dashboard
from .streak import calculate_streak, parse_date, today_in

logger = logging.getLogger(__name__)

USER_KEY = "trackflow_user"
ACTIVITIES_KEY = "trackflow_activities"
LOGS_KEY = "trackflow_logs"


def generate_id():
    return uuid.uuid4().hex


def _timestamp():
    return datetime.now(timezone.utc).isoformat()


class LocalStore:
    def __init__(self, path, tz_name="UTC"):
        self.path = path
        self.tz_name = tz_name

    def _load(self):
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                logger.error(f"Local store {self.path} is not valid JSON: {e}")
                raise

    def _dump(self, data):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def get(self, key, default=None):
        return self._load().get(key, default)

    def set(self, key, value):
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key):
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)

    # User
    def save_user(self, user):
        self.set(USER_KEY, user)

    def get_user(self):
        return self.get(USER_KEY)

    def remove_user(self):
        self.remove(USER_KEY)

    # Activities
    def get_activities(self):
        return self.get(ACTIVITIES_KEY, [])

    def save_activity(self, activity):
        activities = self.get_activities()
        activities.append(activity)
        self.set(ACTIVITIES_KEY, activities)
        return activity

    def create_activity(self, name, category, target, unit, color="#6b7280", emoji="⭐"):
        return self.save_activity({
            "id": generate_id(),
            "name": name,
            "category": category,
            "target": target,
            "unit": unit,
            "color": color,
            "emoji": emoji,
            "created_at": _timestamp()
        })

    def delete_activity(self, activity_id):
        """Remove the activity and every log that references it."""
        self.set(ACTIVITIES_KEY, [a for a in self.get_activities() if a["id"] != activity_id])
        self.set(LOGS_KEY, [log for log in self.get_logs() if log["activity_id"] != activity_id])
        logger.debug(f"Deleted local activity {activity_id}")

    # Logs
    def get_logs(self):
        return self.get(LOGS_KEY, [])

    def save_log(self, log):
        """Store ``log`` as the only entry for its activity and date."""
        day = parse_date(log["date"]).isoformat()
        log = dict(log, date=day)
        logs = [
            existing for existing in self.get_logs()
            if not (existing["activity_id"] == log["activity_id"] and existing["date"] == day)
        ]
        logs.append(log)
        self.set(LOGS_KEY, logs)
        return log

    def log_value(self, activity_id, value, day=None):
        return self.save_log({
            "id": generate_id(),
            "activity_id": activity_id,
            "value": value,
            "date": (parse_date(day) if day else self.today()).isoformat(),
            "created_at": _timestamp()
        })

    def get_logs_for_date(self, day):
        day = parse_date(day).isoformat()
        return [log for log in self.get_logs() if log["date"] == day]

    def get_logs_for_activity(self, activity_id):
        return [log for log in self.get_logs() if log["activity_id"] == activity_id]

    # Derived values
    def today(self):
        return today_in(self.tz_name)

    def today_string(self):
        return self.today().isoformat()

    def log_entries(self):
        return [LogEntry(log["activity_id"], parse_date(log["date"]), log["value"]) for log in self.get_logs()]

    def calculate_streak(self, activity_id, today=None):
        dates = [log["date"] for log in self.get_logs_for_activity(activity_id)]
        return calculate_streak(dates, today or self.today())

    def dashboard(self, today=None):
        return dashboard(self.get_activities(), self.log_entries(), today or self.today())
