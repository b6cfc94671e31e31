import re

from .streak import parse_date

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class ValidationError(ValueError):
    pass


def require_fields(data, *names):
    missing = [name for name in names if data.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def positive_number(value, field):
    number = number_value(value, field)
    if number <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return number


def number_value(value, field):
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if number != number or number in (float("inf"), float("-inf")):
        raise ValidationError(f"{field} must be a finite number")
    return number


def reminder_time(value, default="20:00"):
    if value in (None, ""):
        return default
    if not isinstance(value, str) or not _TIME_RE.match(value):
        raise ValidationError("reminder_time must be in HH:MM format")
    return value


def calendar_date(value, default=None):
    if value in (None, ""):
        if default is None:
            raise ValidationError("date is required")
        return default
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError("date must be in YYYY-MM-DD format")


def int_arg(args, name, default=None):
    """Integer query parameter; a present but non-numeric value is an error."""
    raw = args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def bool_value(value, field):
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{field} must be true or false")
