import os

# Configuration is read at import time, so the test database must be chosen first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest

from trackflow import app as flask_app
from trackflow.models import db, Activity, Log


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setitem(flask_app.config, "TESTING", True)
    monkeypatch.setitem(flask_app.config, "TRACKFLOW_TIMEZONE", "UTC")
    monkeypatch.setitem(flask_app.config, "CRON_SECRET", None)
    monkeypatch.setitem(flask_app.config, "MAIL_DEFAULT_SENDER", None)
    monkeypatch.setitem(flask_app.config, "LOCAL_STORE_PATH", str(tmp_path / "store.json"))
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, name="Ada", email="ada@example.com", password="secret123"):
    resp = client.post("/api/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


@pytest.fixture
def user(client):
    return register(client)


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture
def make_activity(user):
    def _make(name="Read", target=10, unit="pages", category="Learning"):
        activity = Activity(
            name=name, category=category, target=target, unit=unit,
            color="#3b82f6", user_id=user["user"]["id"]
        )
        db.session.add(activity)
        db.session.commit()
        return activity
    return _make


@pytest.fixture
def make_log(user):
    def _make(activity, day, value=1):
        log = Log(activity_id=activity.id, user_id=user["user"]["id"], date=day, value=value)
        db.session.add(log)
        db.session.commit()
        return log
    return _make
