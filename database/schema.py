"""
Database schema definitions.
Table creation, indexes, and triggers.

Dates are stored as ISO 'YYYY-MM-DD' text so lexical comparison is
chronological comparison.
"""

OVERLAP_MESSAGE = 'restriction overlaps an existing restriction'


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'laptop_restrictions',
        'reservations',
        'restrictions',
        'laptops',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    db.execute('DROP TRIGGER IF EXISTS laptop_restrictions_no_overlap')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT NOT NULL DEFAULT '',
            last_name TEXT NOT NULL DEFAULT '',
            email TEXT UNIQUE NOT NULL,
            password TEXT NOT NULL,
            access_level INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE laptops (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            laptop_name TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE restrictions (
            id INTEGER PRIMARY KEY,
            restriction_name TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            email TEXT NOT NULL,
            phone TEXT NOT NULL DEFAULT '',
            laptop_id INTEGER NOT NULL REFERENCES laptops(id),
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            processed INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK (start_date <= end_date)
        )
    ''')

    db.execute('''
        CREATE TABLE laptop_restrictions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            laptop_id INTEGER NOT NULL REFERENCES laptops(id),
            reservation_id INTEGER REFERENCES reservations(id) ON DELETE CASCADE,
            restriction_id INTEGER NOT NULL REFERENCES restrictions(id),
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK (start_date <= end_date)
        )
    ''')


def create_indexes(db):
    """Create indexes for the availability queries."""
    db.execute('''
        CREATE INDEX IF NOT EXISTS idx_laptop_restrictions_range
        ON laptop_restrictions(laptop_id, start_date, end_date)
    ''')
    db.execute('''
        CREATE INDEX IF NOT EXISTS idx_laptop_restrictions_reservation
        ON laptop_restrictions(reservation_id)
    ''')
    db.execute('''
        CREATE INDEX IF NOT EXISTS idx_reservations_processed
        ON reservations(processed, start_date)
    ''')


def create_triggers(db):
    """
    Reject a restriction that overlaps an existing one for the same laptop.

    Closed intervals: sharing a single boundary date is an overlap. The
    trigger message is matched by the store to report a conflict.
    """
    db.execute(f'''
        CREATE TRIGGER IF NOT EXISTS laptop_restrictions_no_overlap
        BEFORE INSERT ON laptop_restrictions
        WHEN EXISTS (
            SELECT 1 FROM laptop_restrictions
            WHERE laptop_id = NEW.laptop_id
              AND end_date >= NEW.start_date
              AND start_date <= NEW.end_date
        )
        BEGIN
            SELECT RAISE(ABORT, '{OVERLAP_MESSAGE}');
        END
    ''')
