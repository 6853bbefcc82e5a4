"""
Database seed data.
Initial data population for fresh database installations.
"""

from werkzeug.security import generate_password_hash

from models.restriction import RESTRICTION_KINDS


def seed_database(db):
    """Insert initial seed data."""

    # 1. Restriction kinds (ids are referenced by code)
    for kind_id, name in RESTRICTION_KINDS.items():
        db.execute('''
            INSERT INTO restrictions (id, restriction_name) VALUES (?, ?)
        ''', (kind_id, name))

    # 2. Catalog
    for laptop_name in ('Alienware m15', 'MacBook Pro'):
        db.execute('INSERT INTO laptops (laptop_name) VALUES (?)', (laptop_name,))

    # 3. Default administrator
    db.execute('''
        INSERT INTO users (first_name, last_name, email, password, access_level)
        VALUES (?, ?, ?, ?, ?)
    ''', ('Admin', 'User', 'admin@laptop-rental.com', generate_password_hash('admin123'), 3))
