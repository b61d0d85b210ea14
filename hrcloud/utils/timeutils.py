import calendar
from datetime import datetime, timezone

SECONDS_PER_DAY = 86400


def utcnow():
    """Naive UTC now; every persisted timestamp uses this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value):
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def whole_days_between(earlier, later):
    """floor((later - earlier) / 1 day)"""
    delta = to_naive_utc(later) - to_naive_utc(earlier)
    return int(delta.total_seconds() // SECONDS_PER_DAY)


def days_remaining(until, now):
    """Whole days left before ``until``, rounded up (a trial ending in 36h has 2 days left)."""
    seconds = (to_naive_utc(until) - to_naive_utc(now)).total_seconds()
    days = int(seconds // SECONDS_PER_DAY)
    if seconds % SECONDS_PER_DAY:
        days += 1
    return days


def add_months(value, months):
    """Calendar month arithmetic, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def isoformat(value):
    return value.isoformat() if value else None

