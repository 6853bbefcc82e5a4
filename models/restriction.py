"""
Laptop restriction data access.
A restriction is one interval of unavailability for one laptop, owned either
by a reservation or by an administrator's manual block.

Functions take an open sqlite3 connection; error translation and
transactions are handled by SQLiteIntervalStore.
"""

from datetime import date

from utils.datetime_helpers import parse_date, to_iso


# =============================================================================
# RESTRICTION KINDS
# =============================================================================

RESERVATION_KIND = 1
BLOCK_KIND = 2

RESTRICTION_KINDS = {
    RESERVATION_KIND: 'Reservation',
    BLOCK_KIND: 'Owner Block',
}


def row_to_restriction(row) -> dict:
    """Convert a laptop_restrictions row into a plain dict with date values."""
    restriction = dict(row)
    restriction['start_date'] = parse_date(restriction['start_date'])
    restriction['end_date'] = parse_date(restriction['end_date'])
    restriction['reservation_id'] = restriction.get('reservation_id') or 0
    return restriction


# =============================================================================
# CRUD OPERATIONS
# =============================================================================

def insert_restriction(conn, data: dict) -> int:
    """
    Insert a laptop restriction.

    Args:
        conn: Open connection
        data: laptop_id, start_date, end_date, restriction_id and an optional
            reservation_id (0 or None for a manual block)

    Returns:
        int: New restriction ID
    """
    cursor = conn.execute('''
        INSERT INTO laptop_restrictions
        (laptop_id, reservation_id, restriction_id, start_date, end_date, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    ''', (
        data['laptop_id'],
        data.get('reservation_id') or None,
        data.get('restriction_id', RESERVATION_KIND),
        to_iso(data['start_date']),
        to_iso(data['end_date'])
    ))
    return cursor.lastrowid


def insert_one_day_block(conn, laptop_id: int, day: date) -> int:
    """Insert a manual block covering a single day."""
    return insert_restriction(conn, {
        'laptop_id': laptop_id,
        'start_date': day,
        'end_date': day,
        'restriction_id': BLOCK_KIND,
    })


def restrictions_for_laptop_in_range(conn, laptop_id: int, start, end) -> list:
    """
    Get every restriction of a laptop that intersects [start, end].

    Intervals are closed: a restriction ending on `start` or beginning on
    `end` intersects.

    Returns:
        list: Restriction dicts ordered by start date then ID
    """
    cursor = conn.execute('''
        SELECT id, laptop_id, reservation_id, restriction_id, start_date, end_date
        FROM laptop_restrictions
        WHERE laptop_id = ?
          AND end_date >= ?
          AND start_date <= ?
        ORDER BY start_date, id
    ''', (laptop_id, to_iso(start), to_iso(end)))
    return [row_to_restriction(row) for row in cursor.fetchall()]


def delete_restriction(conn, restriction_id: int) -> bool:
    """
    Delete a restriction by ID.

    Returns:
        bool: True if a row was deleted
    """
    cursor = conn.execute('DELETE FROM laptop_restrictions WHERE id = ?', (restriction_id,))
    return cursor.rowcount > 0


def delete_block(conn, restriction_id: int, laptop_id: int) -> bool:
    """
    Delete a manual block of a laptop.

    Reservation-owned restrictions never match, so a stale ID can not
    remove a booking.

    Returns:
        bool: True if a block was deleted
    """
    cursor = conn.execute('''
        DELETE FROM laptop_restrictions
        WHERE id = ? AND laptop_id = ? AND reservation_id IS NULL AND restriction_id = ?
    ''', (restriction_id, laptop_id, BLOCK_KIND))
    return cursor.rowcount > 0
