from datetime import date, timedelta

from trackflow.analysis import (
    LogEntry, activity_stats, calendar_grid, completion_message, dashboard, monthly_stats,
    progress_for, round_half_up,
)

TODAY = date(2024, 4, 20)


def entry(activity_id, day, value=1):
    return LogEntry(activity_id, day, value)


def test_calendar_grid_leading_blanks_sunday_first():
    march = calendar_grid([], 2024, 3)
    # 1 March 2024 is a Friday
    assert march[:5] == [None] * 5
    assert march[5]["day"] == 1
    assert len([cell for cell in march if cell]) == 31

    september = calendar_grid([], 2024, 9)
    # 1 September 2024 is a Sunday
    assert september[0]["date"] == "2024-09-01"


def test_calendar_grid_marks_days_and_filters_activity():
    entries = [
        entry(1, date(2024, 4, 2)),
        entry(2, date(2024, 4, 2)),
        entry(2, date(2024, 4, 5)),
        entry(1, date(2024, 5, 2)),
    ]
    cells = {cell["day"]: cell for cell in calendar_grid(entries, 2024, 4) if cell}
    assert cells[2]["has_activity"] and cells[2]["log_count"] == 2
    assert cells[5]["has_activity"]
    assert not cells[3]["has_activity"]

    only_one = {cell["day"]: cell for cell in calendar_grid(entries, 2024, 4, activity_id=1) if cell}
    assert only_one[2]["log_count"] == 1
    assert not only_one[5]["has_activity"]


def test_monthly_completion_rate_half_month():
    entries = [entry(1, date(2024, 4, day)) for day in range(1, 16)]
    entries.append(entry(2, date(2024, 4, 1)))
    stats = monthly_stats(entries, 2024, 4)
    assert stats == {"active_days": 15, "total_days": 30, "completion_rate": 50, "total_logs": 16}


def test_monthly_stats_with_filter_and_leap_february():
    entries = [entry(1, date(2024, 2, 29)), entry(2, date(2024, 2, 28))]
    stats = monthly_stats(entries, 2024, 2, activity_id=1)
    assert stats["total_days"] == 29
    assert stats["active_days"] == 1
    assert stats["completion_rate"] == 3
    assert monthly_stats(entries, 2024, 2, activity_id="all")["total_logs"] == 2


def test_activity_stats():
    entries = [
        entry(7, TODAY, 3),
        entry(7, TODAY - timedelta(days=1), 4),
        entry(7, TODAY - timedelta(days=5), 3),
        entry(8, TODAY, 100),
    ]
    stats = activity_stats(7, entries, TODAY)
    assert stats == {"streak": 2, "total_logged": 10, "average_daily": 3.33, "total_days": 3}
    assert activity_stats(9, entries, TODAY) == {"streak": 0, "total_logged": 0, "average_daily": 0, "total_days": 0}


def test_progress_is_clamped():
    assert progress_for(10, 25) == (100, True)
    assert progress_for(10, 5) == (50, False)
    assert progress_for(10, 10) == (100, True)
    assert progress_for(10, 0) == (0, False)
    assert progress_for(0, 5) == (0, False)


def test_round_half_up():
    assert round_half_up(50.5) == 51
    assert round_half_up(2.5) == 3


def test_dashboard_summary():
    activities = [
        {"id": 1, "name": "Read", "target": 10},
        {"id": 2, "name": "Run", "target": 5},
        {"id": 3, "name": "Water", "target": 8},
    ]
    entries = [
        entry(1, TODAY, 25),
        entry(1, TODAY - timedelta(days=1), 10),
        entry(2, TODAY, 2),
        entry(3, TODAY - timedelta(days=1), 8),
    ]
    data = dashboard(activities, entries, TODAY)
    by_id = {item["id"]: item for item in data["activities"]}

    assert by_id[1]["progress"] == 100 and by_id[1]["completed"] is True
    assert by_id[2]["progress"] == 40 and by_id[2]["completed"] is False
    assert by_id[3]["today_value"] == 0
    assert data["completed_today"] == 1
    assert data["completion_rate"] == 33
    assert data["total_streak"] == 2 + 1 + 0
    assert data["weekly_progress"] == [0, 0, 0, 0, 0, 2, 2]
    assert data["monthly_progress"]["2024-04-20"] == 2
    assert len(data["monthly_progress"]) == 20
    assert data["message"] == completion_message(33)


def test_dashboard_without_activities():
    data = dashboard([], [], TODAY)
    assert data["completion_rate"] == 0
    assert data["total_streak"] == 0


def test_completion_messages():
    assert "Perfect" in completion_message(100)
    assert "Almost" in completion_message(75)
    assert "Great" in completion_message(50)
    assert "Good start" in completion_message(25)
    assert "single step" in completion_message(0)
