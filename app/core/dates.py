from datetime import date, datetime, timedelta, timezone


def normalize_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return date.fromisoformat(value_text)
        except ValueError:
            try:
                return datetime.fromisoformat(value_text).date()
            except ValueError:
                return None
    return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def utc_tomorrow() -> date:
    return utc_today() + timedelta(days=1)


def is_weekend(value: date) -> bool:
    return value.weekday() >= 5


def date_range(start: date, days: int):
    for offset in range(max(0, int(days))):
        yield start + timedelta(days=offset)


__all__ = [
    "date_range",
    "is_weekend",
    "normalize_date",
    "utc_now",
    "utc_today",
    "utc_tomorrow",
]
