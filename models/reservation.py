"""
Reservation data access.
Handles create, read, update, delete for customer reservations.

Deleting a reservation removes its restrictions through the
ON DELETE CASCADE on laptop_restrictions.reservation_id.
"""

from typing import Optional

from utils.datetime_helpers import parse_date, to_iso


_SELECT_RESERVATION = '''
    SELECT r.id, r.first_name, r.last_name, r.email, r.phone,
           r.start_date, r.end_date, r.laptop_id, r.processed,
           r.created_at, r.updated_at,
           l.laptop_name
    FROM reservations r
    LEFT JOIN laptops l ON r.laptop_id = l.id
'''


def row_to_reservation(row) -> dict:
    """Convert a reservations row into a plain dict with date values."""
    reservation = dict(row)
    reservation['start_date'] = parse_date(reservation['start_date'])
    reservation['end_date'] = parse_date(reservation['end_date'])
    return reservation


# =============================================================================
# CREATE
# =============================================================================

def insert_reservation(conn, data: dict) -> int:
    """
    Insert a reservation.

    Args:
        conn: Open connection
        data: first_name, last_name, email, phone, laptop_id,
            start_date, end_date

    Returns:
        int: New reservation ID
    """
    cursor = conn.execute('''
        INSERT INTO reservations
        (first_name, last_name, email, phone, laptop_id, start_date, end_date,
         processed, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, 0, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    ''', (
        data['first_name'],
        data['last_name'],
        data['email'],
        data.get('phone') or '',
        data['laptop_id'],
        to_iso(data['start_date']),
        to_iso(data['end_date'])
    ))
    return cursor.lastrowid


# =============================================================================
# READ
# =============================================================================

def get_reservation_by_id(conn, reservation_id: int) -> Optional[dict]:
    """
    Get a reservation by ID, joined with its laptop name.

    Returns:
        dict or None: Reservation data
    """
    row = conn.execute(
        _SELECT_RESERVATION + ' WHERE r.id = ?', (reservation_id,)
    ).fetchone()
    return row_to_reservation(row) if row else None


def get_all_reservations(conn, new_only: bool = False) -> list:
    """
    List reservations ordered by start then end date.

    Args:
        conn: Open connection
        new_only: Only reservations not yet processed

    Returns:
        list: Reservation dicts
    """
    query = _SELECT_RESERVATION
    if new_only:
        query += ' WHERE r.processed = 0'
    query += ' ORDER BY r.start_date ASC, r.end_date ASC, r.id ASC'

    cursor = conn.execute(query)
    return [row_to_reservation(row) for row in cursor.fetchall()]


# =============================================================================
# UPDATE
# =============================================================================

def update_reservation(conn, data: dict) -> bool:
    """
    Update the contact fields of a reservation.

    Dates and laptop are not editable here: they are mirrored by the
    reservation's restriction.

    Returns:
        bool: True if a row was updated
    """
    cursor = conn.execute('''
        UPDATE reservations
        SET first_name = ?, last_name = ?, email = ?, phone = ?,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (
        data['first_name'],
        data['last_name'],
        data['email'],
        data.get('phone') or '',
        data['id']
    ))
    return cursor.rowcount > 0


def update_reservation_processed(conn, reservation_id: int, processed: int) -> bool:
    """Set the processed flag (0 or 1) of a reservation."""
    cursor = conn.execute('''
        UPDATE reservations
        SET processed = ?, updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (1 if processed else 0, reservation_id))
    return cursor.rowcount > 0


# =============================================================================
# DELETE
# =============================================================================

def delete_reservation(conn, reservation_id: int) -> bool:
    """
    Delete a reservation and, by cascade, its restrictions.

    Returns:
        bool: True if deleted
    """
    cursor = conn.execute('DELETE FROM reservations WHERE id = ?', (reservation_id,))
    return cursor.rowcount > 0
