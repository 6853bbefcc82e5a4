"""
SQLite implementation of the Interval Store.

Wraps the entity modules (laptop, reservation, restriction, user) with:
- one request-scoped connection obtained from a factory (database.get_db)
- a per-statement deadline, so no call can hang past STORE_TIMEOUT_SECONDS
- sqlite3.Error translation into PersistenceError
- commit per write outside transaction(), a single commit inside it
"""

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from datetime import date
from typing import Callable, Optional

from database.schema import OVERLAP_MESSAGE
from models import laptop as laptop_model
from models import reservation as reservation_model
from models import restriction as restriction_model
from models import user as user_model
from models.errors import OverlapError, PersistenceError
from models.store import IntervalStore

logger = logging.getLogger(__name__)

# Number of SQLite VM instructions between deadline checks
_PROGRESS_STEPS = 1000


class SQLiteIntervalStore(IntervalStore):
    """
    Interval Store backed by the application's SQLite database.

    Args:
        connection_factory: Callable returning the current sqlite3 connection
        timeout: Deadline in seconds for every statement
    """

    def __init__(self, connection_factory: Callable[[], sqlite3.Connection], timeout: float = 3.0):
        self._connection_factory = connection_factory
        self.timeout = timeout
        self._local = threading.local()

    @property
    def conn(self) -> sqlite3.Connection:
        return self._connection_factory()

    def _in_transaction(self) -> bool:
        return getattr(self._local, 'depth', 0) > 0

    @contextmanager
    def _deadline(self, conn):
        expires = time.monotonic() + self.timeout

        def check():
            # Non-zero aborts the running statement with OperationalError
            return 1 if time.monotonic() > expires else 0

        conn.set_progress_handler(check, _PROGRESS_STEPS)
        try:
            yield
        finally:
            conn.set_progress_handler(None, _PROGRESS_STEPS)

    def _translate(self, operation: str, error: sqlite3.Error) -> PersistenceError:
        if isinstance(error, sqlite3.IntegrityError) and OVERLAP_MESSAGE in str(error):
            return OverlapError(f'{operation}: {error}')
        if isinstance(error, sqlite3.OperationalError) and 'interrupted' in str(error):
            return PersistenceError(f'{operation}: timed out after {self.timeout}s')
        return PersistenceError(f'{operation}: {error}')

    def _run(self, operation: str, func, *args, write: bool = False):
        """Run one entity-module call under the deadline with error translation."""
        try:
            conn = self.conn
        except sqlite3.Error as e:
            logger.error('Could not connect for %s: %s', operation, e)
            raise self._translate(operation, e) from e

        try:
            with self._deadline(conn):
                result = func(conn, *args)
            if write and not self._in_transaction():
                conn.commit()
            return result
        except sqlite3.Error as e:
            if not self._in_transaction():
                try:
                    conn.rollback()
                except sqlite3.Error:
                    logger.warning('Rollback after failed %s also failed', operation, exc_info=True)
            logger.error('Store operation %s failed: %s', operation, e)
            raise self._translate(operation, e) from e

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        if self._in_transaction():
            # Nested blocks join the outer transaction
            self._local.depth += 1
            try:
                yield self
            finally:
                self._local.depth -= 1
            return

        try:
            conn = self.conn
            if conn.in_transaction:
                conn.commit()
            # Take the write lock up front so the availability re-check and
            # the inserts see the same state
            conn.execute('BEGIN IMMEDIATE')
        except sqlite3.Error as e:
            logger.error('Could not open transaction: %s', e)
            raise self._translate('begin transaction', e) from e

        self._local.depth = 1
        try:
            yield self
        except BaseException:
            self._local.depth = 0
            conn.rollback()
            raise
        else:
            self._local.depth = 0
            try:
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error('Commit failed: %s', e)
                raise self._translate('commit transaction', e) from e

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    def get_laptop_by_id(self, laptop_id: int) -> Optional[dict]:
        return self._run('get_laptop_by_id', laptop_model.get_laptop_by_id, laptop_id)

    def all_laptops(self) -> list:
        return self._run('all_laptops', laptop_model.get_all_laptops)

    def create_laptop(self, laptop_name: str) -> int:
        return self._run('create_laptop', laptop_model.create_laptop, laptop_name, write=True)

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def insert_reservation(self, data: dict) -> int:
        return self._run('insert_reservation', reservation_model.insert_reservation, data, write=True)

    def get_reservation_by_id(self, reservation_id: int) -> Optional[dict]:
        return self._run('get_reservation_by_id', reservation_model.get_reservation_by_id, reservation_id)

    def all_reservations(self) -> list:
        return self._run('all_reservations', reservation_model.get_all_reservations)

    def new_reservations(self) -> list:
        return self._run('new_reservations', reservation_model.get_all_reservations, True)

    def update_reservation(self, data: dict) -> bool:
        return self._run('update_reservation', reservation_model.update_reservation, data, write=True)

    def update_reservation_processed(self, reservation_id: int, processed: int) -> bool:
        return self._run(
            'update_reservation_processed', reservation_model.update_reservation_processed,
            reservation_id, processed, write=True
        )

    def delete_reservation(self, reservation_id: int) -> bool:
        return self._run('delete_reservation', reservation_model.delete_reservation, reservation_id, write=True)

    # -------------------------------------------------------------------------
    # Restrictions
    # -------------------------------------------------------------------------

    def insert_restriction(self, data: dict) -> int:
        return self._run('insert_restriction', restriction_model.insert_restriction, data, write=True)

    def restrictions_for_laptop_in_range(self, laptop_id: int, start, end) -> list:
        return self._run(
            'restrictions_for_laptop_in_range', restriction_model.restrictions_for_laptop_in_range,
            laptop_id, start, end
        )

    def laptops_free_in_range(self, start, end) -> list:
        return self._run('laptops_free_in_range', laptop_model.laptops_free_in_range, start, end)

    def delete_restriction(self, restriction_id: int) -> bool:
        return self._run('delete_restriction', restriction_model.delete_restriction, restriction_id, write=True)

    def insert_one_day_block(self, laptop_id: int, day: date) -> int:
        return self._run('insert_one_day_block', restriction_model.insert_one_day_block, laptop_id, day, write=True)

    def delete_block(self, restriction_id: int, laptop_id: int) -> bool:
        return self._run('delete_block', restriction_model.delete_block, restriction_id, laptop_id, write=True)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def get_user_by_id(self, user_id: int) -> Optional[dict]:
        return self._run('get_user_by_id', user_model.get_user_by_id, user_id)

    def get_user_by_email(self, email: str) -> Optional[dict]:
        return self._run('get_user_by_email', user_model.get_user_by_email, email)

    def create_user(self, email: str, password: str, first_name: str = '',
                    last_name: str = '', access_level: int = 3) -> int:
        return self._run(
            'create_user', user_model.create_user,
            email, password, first_name, last_name, access_level, write=True
        )

    def update_user(self, user: dict) -> bool:
        return self._run('update_user', user_model.update_user, user, write=True)
