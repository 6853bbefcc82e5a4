"""
Database package for the Laptop Rental application.

This package provides modular database operations:
- connection: Database connection management (get_db, close_db, init_db)
- schema: Table, index and trigger creation
- seed: Initial seed data
"""

from database.connection import connect, get_db, close_db, init_db
from database.schema import drop_tables, create_tables, create_indexes, create_triggers
from database.seed import seed_database

__all__ = [
    # Connection
    'connect',
    'get_db',
    'close_db',
    'init_db',
    # Schema
    'drop_tables',
    'create_tables',
    'create_indexes',
    'create_triggers',
    # Seed
    'seed_database',
]
