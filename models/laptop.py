"""
Laptop catalog data access.
Laptops are provisioned by seed data or the add-laptop command and are
read-only to the booking engine.
"""

from typing import Optional

from utils.datetime_helpers import to_iso


def get_laptop_by_id(conn, laptop_id: int) -> Optional[dict]:
    """
    Get a laptop by ID.

    Args:
        conn: Open connection
        laptop_id: Laptop ID

    Returns:
        dict or None: Laptop data
    """
    row = conn.execute('''
        SELECT id, laptop_name, created_at, updated_at
        FROM laptops WHERE id = ?
    ''', (laptop_id,)).fetchone()
    return dict(row) if row else None


def get_all_laptops(conn) -> list:
    """Get all laptops ordered by name."""
    cursor = conn.execute('''
        SELECT id, laptop_name, created_at, updated_at
        FROM laptops
        ORDER BY laptop_name, id
    ''')
    return [dict(row) for row in cursor.fetchall()]


def laptops_free_in_range(conn, start, end) -> list:
    """
    Get laptops with no restriction intersecting [start, end].

    Returns:
        list: Laptop dicts ordered by name
    """
    cursor = conn.execute('''
        SELECT l.id, l.laptop_name, l.created_at, l.updated_at
        FROM laptops l
        WHERE l.id NOT IN (
            SELECT lr.laptop_id FROM laptop_restrictions lr
            WHERE lr.end_date >= ? AND lr.start_date <= ?
        )
        ORDER BY l.laptop_name, l.id
    ''', (to_iso(start), to_iso(end)))
    return [dict(row) for row in cursor.fetchall()]


def create_laptop(conn, laptop_name: str) -> int:
    """Add a laptop to the catalog."""
    cursor = conn.execute('''
        INSERT INTO laptops (laptop_name, created_at, updated_at)
        VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    ''', (laptop_name,))
    return cursor.lastrowid
