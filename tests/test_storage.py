import json
import os
from datetime import date, timedelta

import pytest

from trackflow.storage import ACTIVITIES_KEY, LOGS_KEY, USER_KEY, LocalStore

TODAY = date(2024, 6, 10)


@pytest.fixture
def store(tmp_path):
    return LocalStore(str(tmp_path / "nested" / "store.json"))


def test_empty_store_defaults(store):
    assert store.get_user() is None
    assert store.get_activities() == []
    assert store.get_logs() == []


def test_user_round_trip_under_fixed_key(store):
    store.save_user({"id": "u1", "name": "Ada", "email": "ada@example.com", "created_at": "2024-01-01"})
    assert store.get_user()["name"] == "Ada"
    with open(store.path, encoding="utf-8") as f:
        assert set(json.load(f)) == {USER_KEY}
    store.remove_user()
    assert store.get_user() is None


def test_save_log_keeps_one_entry_per_activity_and_day(store):
    activity = store.create_activity("Read", "Learning", 10, "pages")
    store.log_value(activity["id"], 3, TODAY)
    store.log_value(activity["id"], 8, TODAY.isoformat())
    store.log_value(activity["id"], 2, TODAY - timedelta(days=1))

    logs = store.get_logs_for_activity(activity["id"])
    assert len(logs) == 2
    assert [log["value"] for log in store.get_logs_for_date(TODAY)] == [8]


def test_delete_activity_cascades_to_logs(store):
    read = store.create_activity("Read", "Learning", 10, "pages")
    run = store.create_activity("Run", "Health & Fitness", 5, "km")
    store.log_value(read["id"], 1, TODAY)
    store.log_value(run["id"], 1, TODAY)

    store.delete_activity(read["id"])

    assert [a["name"] for a in store.get_activities()] == ["Run"]
    assert all(log["activity_id"] != read["id"] for log in store.get_logs())
    assert len(store.get(LOGS_KEY)) == 1
    assert len(store.get(ACTIVITIES_KEY)) == 1


def test_streak_and_dashboard_from_local_data(store):
    read = store.create_activity("Read", "Learning", 10, "pages")
    for offset in range(3):
        store.log_value(read["id"], 12, TODAY - timedelta(days=offset))
    store.log_value(read["id"], 12, TODAY - timedelta(days=5))

    assert store.calculate_streak(read["id"], today=TODAY) == 3
    assert store.calculate_streak("missing", today=TODAY) == 0

    summary = store.dashboard(today=TODAY)
    assert summary["completion_rate"] == 100
    assert summary["activities"][0]["completed"] is True
    assert summary["total_streak"] == 3


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(json.JSONDecodeError):
        LocalStore(str(path)).get_logs()


def test_failed_write_leaves_no_temp_file(store):
    store.save_user({"id": "u1", "name": "Ada"})
    with pytest.raises(TypeError):
        store.set(LOGS_KEY, {"not", "serializable"})

    directory = os.path.dirname(store.path)
    assert sorted(os.listdir(directory)) == ["store.json"]
    assert store.get_logs() == []
    assert store.get_user()["name"] == "Ada"
