"""
Database connection management.
Handles per-request connections, initialization, and teardown.
"""

import sqlite3
from flask import g, current_app


def connect(db_path: str, timeout: float = 3.0) -> sqlite3.Connection:
    """
    Open a SQLite connection configured for the application.

    Args:
        db_path: Path to the database file
        timeout: Seconds to wait for a competing writer's lock

    Returns:
        sqlite3.Connection: Database connection object
    """
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.row_factory = sqlite3.Row
    # Enable foreign key constraints (reservation -> restriction cascade)
    conn.execute('PRAGMA foreign_keys = ON')
    # Enable WAL mode for better concurrency
    conn.execute('PRAGMA journal_mode = WAL')
    return conn


def get_db():
    """
    Get the request-scoped database connection, opening it on first use.

    Returns:
        sqlite3.Connection: Database connection object
    """
    if 'db' not in g:
        g.db = connect(
            current_app.config.get('DATABASE_PATH', 'instance/laptop_rental.db'),
            timeout=current_app.config.get('STORE_TIMEOUT_SECONDS', 3.0)
        )
    return g.db


def close_db(e=None):
    """
    Close database connection.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    db = g.pop('db', None)
    if db is not None:
        db.close()


def init_db():
    """
    Initialize database: drop existing tables, create new schema, insert seed data.
    WARNING: This will delete all existing data!
    """
    from database.schema import drop_tables, create_tables, create_indexes, create_triggers
    from database.seed import seed_database

    db = get_db()

    drop_tables(db)
    create_tables(db)
    create_indexes(db)

    if current_app.config.get('ENFORCE_DISJOINT_RESTRICTIONS', True):
        create_triggers(db)

    seed_database(db)

    db.commit()
    current_app.logger.info('Database initialized at %s', current_app.config.get('DATABASE_PATH'))
