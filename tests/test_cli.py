import json

from trackflow import mail
from trackflow.storage import LocalStore
from tests.conftest import register


def test_init_db(app):
    result = app.test_cli_runner().invoke(args=["init-db"])
    assert result.exit_code == 0
    assert "created" in result.output


def test_send_reminders_command(app, client, monkeypatch):
    sent = []
    monkeypatch.setattr(mail, "send", sent.append)
    account = register(client)
    client.post(
        "/api/notifications/email/subscribe", json={"reminder_time": "09:45"},
        headers={"Authorization": f"Bearer {account['token']}"}
    )

    result = app.test_cli_runner().invoke(args=["send-reminders", "--at", "09:45"])

    assert result.exit_code == 0, result.output
    reports = [json.loads(line) for line in result.output.strip().splitlines()]
    assert reports[-1]["channel"] == "email"
    assert reports[-1]["sent"] == 1
    assert sent[0].recipients == ["ada@example.com"]


def test_send_reminders_rejects_bad_time(app):
    result = app.test_cli_runner().invoke(args=["send-reminders", "--at", "late"])
    assert result.exit_code != 0


def test_local_store_commands(app):
    store = LocalStore(app.config["LOCAL_STORE_PATH"])
    activity = store.create_activity("Water", "Health & Fitness", 8, "glasses")
    runner = app.test_cli_runner()

    result = runner.invoke(args=["local-log", activity["id"], "9"])
    assert result.exit_code == 0, result.output
    assert runner.invoke(args=["local-streak", activity["id"]]).output.strip() == "1"

    summary = json.loads(runner.invoke(args=["local-summary"]).output)
    assert summary["activities"][0]["completed"] is True

    assert runner.invoke(args=["local-log", "nope", "1"]).exit_code != 0
