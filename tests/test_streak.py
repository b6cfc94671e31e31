from datetime import date, datetime, timedelta

import pytest

from trackflow.streak import calculate_streak, parse_date

TODAY = date(2024, 3, 15)


def days_back(*offsets):
    return [TODAY - timedelta(days=n) for n in offsets]


def test_no_logs_means_no_streak():
    assert calculate_streak([], TODAY) == 0


def test_consecutive_days_ending_today():
    assert calculate_streak(days_back(0, 1, 2, 3), TODAY) == 4


def test_gap_stops_the_count():
    assert calculate_streak(days_back(0, 1, 3, 4, 5), TODAY) == 2


def test_missing_today_resets_streak():
    assert calculate_streak(days_back(1, 2, 3, 4), TODAY) == 0


def test_duplicates_and_order_do_not_matter():
    assert calculate_streak(days_back(2, 0, 1, 0, 1), TODAY) == 3


def test_accepts_strings_and_datetimes():
    dates = ["2024-03-15", datetime(2024, 3, 14, 23, 59), "2024-03-13T08:00:00.000Z"]
    assert calculate_streak(dates, TODAY) == 3


def test_streak_crosses_month_boundary():
    today = date(2024, 3, 1)
    assert calculate_streak([date(2024, 3, 1), date(2024, 2, 29), date(2024, 2, 28)], today) == 3


def test_future_dates_are_ignored_before_today():
    assert calculate_streak([TODAY + timedelta(days=1), TODAY], TODAY) == 1


@pytest.mark.parametrize("value", ["", None, "not-a-date", 42])
def test_parse_date_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_date(value)
