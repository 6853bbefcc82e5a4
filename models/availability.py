"""
Availability engine.
Pure query logic over the Interval Store: a laptop is available for a date
range when no restriction intersects it.

Date ranges are closed intervals. A restriction that ends on the requested
start date, or starts on the requested end date, overlaps; back-to-back
bookings sharing a boundary day are not possible.
"""

from datetime import date

from models.errors import ValidationError
from models.store import IntervalStore
from utils.datetime_helpers import parse_date


def parse_date_range(start, end) -> tuple:
    """
    Parse and order-check a date range.

    Args:
        start: Start date (date or 'YYYY-MM-DD')
        end: End date (date or 'YYYY-MM-DD')

    Returns:
        tuple: (start, end) as dates

    Raises:
        ValidationError: If a date does not parse or start is after end
    """
    errors = {}
    parsed = {}
    for field, value in (('start_date', start), ('end_date', end)):
        try:
            parsed[field] = parse_date(value)
        except (TypeError, ValueError):
            errors[field] = 'Invalid date, use YYYY-MM-DD'

    if errors:
        raise ValidationError('Invalid date range', errors)

    if parsed['start_date'] > parsed['end_date']:
        raise ValidationError(
            'Start date can not be after end date',
            {'end_date': 'End date must be on or after the start date'}
        )

    return parsed['start_date'], parsed['end_date']


class AvailabilityEngine:
    """Answers 'is this range free' for one laptop or for the whole catalog."""

    def __init__(self, store: IntervalStore):
        self.store = store

    def is_laptop_available(self, laptop_id: int, start, end) -> bool:
        """
        Check whether a laptop has no restriction in [start, end].

        Raises:
            ValidationError: If start is after end
            PersistenceError: On store failure
        """
        start, end = parse_date_range(start, end)
        return not self.store.restrictions_for_laptop_in_range(laptop_id, start, end)

    def available_laptops(self, start, end) -> list:
        """
        Laptops free for the whole range, ordered by name.

        An empty list means no availability; it is not an error.
        """
        start, end = parse_date_range(start, end)
        return self.store.laptops_free_in_range(start, end)

    def conflicts(self, laptop_id: int, start: date, end: date) -> list:
        """Restrictions blocking a laptop in [start, end], for display and logging."""
        start, end = parse_date_range(start, end)
        return self.store.restrictions_for_laptop_in_range(laptop_id, start, end)
