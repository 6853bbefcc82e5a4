"""Date helpers shared by the store, the engine and the routes."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from flask import current_app

DATE_FORMAT = '%Y-%m-%d'


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'Asia/Tokyo')
    return ZoneInfo(tz_name)


def get_today() -> date:
    """Get today's date in the configured timezone."""
    return datetime.now(get_timezone()).date()


def parse_date(value) -> date:
    """
    Coerce a date or a 'YYYY-MM-DD' string into a date.

    Raises:
        ValueError: If the value is empty or not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValueError('date is required')
    return datetime.strptime(str(value).strip(), DATE_FORMAT).date()


def to_iso(value) -> str:
    """Format a date (or ISO string) for storage and session payloads."""
    return parse_date(value).strftime(DATE_FORMAT)


def day_key(day: date) -> str:
    """
    Calendar key for a day, 'YYYY-MM-D' with a non-padded day.

    Matches the add_block_/remove_block_ form field suffixes.
    """
    return f'{day.year}-{day.month:02d}-{day.day}'


def parse_day_key(key: str) -> date:
    """Inverse of day_key()."""
    year, month, day = key.split('-')
    return date(int(year), int(month), int(day))
