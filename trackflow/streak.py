"""Calendar-day helpers and streak calculation.

All "today" values come from :func:`today_in`, which resolves the calendar date
in a named IANA timezone. Log dates are plain :class:`datetime.date` values, so
a streak never depends on the hour a log was written.
"""
import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def now_in(tz_name="UTC"):
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.error(f"Unknown timezone {tz_name!r}, falling back to UTC")
        tz = ZoneInfo("UTC")
    return datetime.now(tz)


def today_in(tz_name="UTC"):
    return now_in(tz_name).date()


def parse_date(value):
    """Accept a date, a datetime or an ISO string ("2024-05-01" or a full timestamp)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid date: {value!r}")
    return date.fromisoformat(value[:10])


def calculate_streak(dates, today):
    """Count consecutive days ending today that appear in ``dates``.

    ``dates`` may contain duplicates and be in any order; dates after today
    are skipped. A missing log for today means the streak is 0, regardless of
    older runs.
    """
    distinct = sorted({d for d in map(parse_date, dates) if d <= today}, reverse=True)
    streak = 0
    for i, log_date in enumerate(distinct):
        if log_date != today - timedelta(days=i):
            break
        streak += 1
    return streak


def activity_streak(activity, today):
    return calculate_streak([log.date for log in activity.logs], today)
