"""
Admin reservations calendar.

Render pass: per laptop, map every day of a month to the reservation or
manual block occupying it. The block maps are kept in the session so the
submit pass knows which blocks were on screen.

Submit pass (reconciliation): every block shown on screen whose
remove_block_<laptopId>_<YYYY-MM-D> keep flag is missing is deleted, and
every add_block_<laptopId>_<YYYY-MM-D> field becomes a one-day block.
Deletes and inserts key on explicit ids and days, so submitting the same
form twice gives the same result as submitting it once. A store failure
aborts the pass; changes already applied in it are kept.
"""

import calendar
import logging
from datetime import date, timedelta

from models.errors import ValidationError
from models.store import IntervalStore
from utils.datetime_helpers import day_key, parse_day_key

logger = logging.getLogger(__name__)

ADD_BLOCK_PREFIX = 'add_block_'
KEEP_BLOCK_PREFIX = 'remove_block_'
BLOCK_MAP_SESSION_KEY = 'block_map_{laptop_id}_{month}'


def block_map_session_key(laptop_id, first: date) -> str:
    """Session key of a laptop's block map for the month starting at `first`."""
    return BLOCK_MAP_SESSION_KEY.format(laptop_id=laptop_id, month=first.strftime('%Y-%m'))


def resolve_month(year=None, month=None, today: date = None) -> date:
    """
    First day of the requested month, or of today's month when not given.

    Raises:
        ValidationError: If year or month is not a valid number
    """
    if not year and not month:
        today = today or date.today()
        return today.replace(day=1)

    try:
        return date(int(year), int(month), 1)
    except (TypeError, ValueError) as e:
        raise ValidationError('Invalid year or month', {'y': str(e)}) from e


def month_days(first: date) -> list:
    """Every date of the month starting at `first`."""
    days_in_month = calendar.monthrange(first.year, first.month)[1]
    return [first + timedelta(days=offset) for offset in range(days_in_month)]


def build_month_calendar(store: IntervalStore, first: date) -> dict:
    """
    Build the calendar view data for one month.

    Args:
        store: Interval Store
        first: First day of the month

    Returns:
        dict: Navigation values, the days of the month, and per laptop a
            reservation_map and block_map keyed by day_key()
    """
    days = month_days(first)
    last = days[-1]
    previous_month = (first - timedelta(days=1)).replace(day=1)
    next_month = last + timedelta(days=1)

    laptops = []
    for laptop in store.all_laptops():
        reservation_map = {day_key(d): 0 for d in days}
        block_map = {day_key(d): 0 for d in days}

        for restriction in store.restrictions_for_laptop_in_range(laptop['id'], first, last):
            day = max(restriction['start_date'], first)
            end = min(restriction['end_date'], last)
            while day <= end:
                if restriction['reservation_id'] > 0:
                    reservation_map[day_key(day)] = restriction['reservation_id']
                else:
                    block_map[day_key(day)] = restriction['id']
                day += timedelta(days=1)

        laptops.append(dict(laptop, reservation_map=reservation_map, block_map=block_map))

    return {
        'now': first,
        'days': [{'day': d.day, 'key': day_key(d), 'weekday': d.strftime('%a')} for d in days],
        'days_in_month': len(days),
        'this_month': first.strftime('%m'),
        'this_month_year': first.strftime('%Y'),
        'last_month': previous_month.strftime('%m'),
        'last_month_year': previous_month.strftime('%Y'),
        'next_month': next_month.strftime('%m'),
        'next_month_year': next_month.strftime('%Y'),
        'laptops': laptops,
    }


def parse_block_field(name: str, prefix: str) -> tuple:
    """
    Split a compound block field name into (laptop_id, day).

    Example: 'add_block_3_2025-06-2' -> (3, date(2025, 6, 2))

    Raises:
        ValidationError: If the name is malformed
    """
    try:
        laptop_part, day_part = name[len(prefix):].split('_', 1)
        return int(laptop_part), parse_day_key(day_part)
    except ValueError as e:
        raise ValidationError(f'Malformed calendar field: {name}') from e


def _in_month(key: str, month: date) -> bool:
    try:
        day = parse_day_key(key)
    except ValueError:
        return False
    return (day.year, day.month) == (month.year, month.month)


def reconcile_blocks(store: IntervalStore, block_maps: dict, form, month: date = None) -> dict:
    """
    Apply keep/remove/add directives to the manual blocks of a month.

    Args:
        store: Interval Store
        block_maps: {laptop_id: {day_key: restriction_id or 0}} from the
            render pass
        form: Submitted form fields (any mapping supporting `in` and iteration)
        month: First day of the submitted month; cached days outside it
            are never deleted

    Returns:
        dict: Counts of 'deleted', 'added' and 'skipped' blocks

    Raises:
        ValidationError: If an add_block field name is malformed (nothing applied)
        PersistenceError: On the first store failure (earlier changes kept)
    """
    additions = [parse_block_field(name, ADD_BLOCK_PREFIX)
                 for name in form if name.startswith(ADD_BLOCK_PREFIX)]

    result = {'deleted': 0, 'added': 0, 'skipped': 0}

    for laptop_id, block_map in block_maps.items():
        laptop_id = int(laptop_id)
        for key, restriction_id in (block_map or {}).items():
            if not restriction_id or int(restriction_id) <= 0:
                continue
            if month is not None and not _in_month(key, month):
                continue
            if f'{KEEP_BLOCK_PREFIX}{laptop_id}_{key}' in form:
                continue
            # A block removed by an earlier submission simply no longer matches
            if store.delete_block(int(restriction_id), laptop_id):
                result['deleted'] += 1

    for laptop_id, day in additions:
        if store.restrictions_for_laptop_in_range(laptop_id, day, day):
            logger.info('Laptop %s already restricted on %s, block not added', laptop_id, day)
            result['skipped'] += 1
            continue
        store.insert_one_day_block(laptop_id, day)
        result['added'] += 1

    logger.info('Calendar reconciled: %(deleted)s deleted, %(added)s added, %(skipped)s skipped', result)
    return result
