"""
In-memory implementation of the Interval Store.

Used as a test fixture and for running the app without a database file.
Mirrors the SQLite store's semantics: closed-interval overlap, cascade of
reservation restrictions, optional disjointness enforcement, and
all-or-nothing transactions (state snapshot restored on failure).
"""

import copy
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Optional

from werkzeug.security import generate_password_hash

from models.errors import OverlapError, PersistenceError
from models.restriction import BLOCK_KIND, RESERVATION_KIND
from models.store import IntervalStore
from utils.datetime_helpers import parse_date


class MemoryIntervalStore(IntervalStore):
    """
    Interval Store kept in process memory.

    Args:
        enforce_disjoint: Reject restrictions overlapping an existing one
            for the same laptop
        laptops: Optional laptop names to seed the catalog with
    """

    def __init__(self, enforce_disjoint: bool = True, laptops: list = None):
        self.enforce_disjoint = enforce_disjoint
        self._lock = threading.RLock()
        self._state = {
            'laptops': {},
            'reservations': {},
            'restrictions': {},
            'users': {},
            'sequences': {'laptops': 0, 'reservations': 0, 'restrictions': 0, 'users': 0},
        }
        for laptop_name in laptops or []:
            self.create_laptop(laptop_name)

    def _next_id(self, table: str) -> int:
        self._state['sequences'][table] += 1
        return self._state['sequences'][table]

    @staticmethod
    def _overlaps(restriction: dict, start: date, end: date) -> bool:
        return restriction['end_date'] >= start and restriction['start_date'] <= end

    def _with_laptop_name(self, reservation: dict) -> dict:
        result = dict(reservation)
        laptop = self._state['laptops'].get(reservation['laptop_id'])
        result['laptop_name'] = laptop['laptop_name'] if laptop else None
        return result

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        with self._lock:
            snapshot = copy.deepcopy(self._state)
            try:
                yield self
            except BaseException:
                self._state = snapshot
                raise

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    def get_laptop_by_id(self, laptop_id: int) -> Optional[dict]:
        with self._lock:
            laptop = self._state['laptops'].get(laptop_id)
            return dict(laptop) if laptop else None

    def all_laptops(self) -> list:
        with self._lock:
            laptops = sorted(self._state['laptops'].values(), key=lambda l: (l['laptop_name'], l['id']))
            return [dict(l) for l in laptops]

    def create_laptop(self, laptop_name: str) -> int:
        with self._lock:
            now = datetime.now()
            laptop_id = self._next_id('laptops')
            self._state['laptops'][laptop_id] = {
                'id': laptop_id,
                'laptop_name': laptop_name,
                'created_at': now,
                'updated_at': now,
            }
            return laptop_id

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def insert_reservation(self, data: dict) -> int:
        start = parse_date(data['start_date'])
        end = parse_date(data['end_date'])
        if start > end:
            raise PersistenceError('insert_reservation: CHECK constraint failed: start_date <= end_date')

        with self._lock:
            if data['laptop_id'] not in self._state['laptops']:
                raise PersistenceError('insert_reservation: FOREIGN KEY constraint failed')
            now = datetime.now()
            reservation_id = self._next_id('reservations')
            self._state['reservations'][reservation_id] = {
                'id': reservation_id,
                'first_name': data['first_name'],
                'last_name': data['last_name'],
                'email': data['email'],
                'phone': data.get('phone') or '',
                'laptop_id': data['laptop_id'],
                'start_date': start,
                'end_date': end,
                'processed': 0,
                'created_at': now,
                'updated_at': now,
            }
            return reservation_id

    def get_reservation_by_id(self, reservation_id: int) -> Optional[dict]:
        with self._lock:
            reservation = self._state['reservations'].get(reservation_id)
            return self._with_laptop_name(reservation) if reservation else None

    def _sorted_reservations(self, new_only: bool) -> list:
        with self._lock:
            reservations = [
                r for r in self._state['reservations'].values()
                if not new_only or r['processed'] == 0
            ]
            reservations.sort(key=lambda r: (r['start_date'], r['end_date'], r['id']))
            return [self._with_laptop_name(r) for r in reservations]

    def all_reservations(self) -> list:
        return self._sorted_reservations(new_only=False)

    def new_reservations(self) -> list:
        return self._sorted_reservations(new_only=True)

    def update_reservation(self, data: dict) -> bool:
        with self._lock:
            reservation = self._state['reservations'].get(data['id'])
            if reservation is None:
                return False
            for field in ('first_name', 'last_name', 'email'):
                reservation[field] = data[field]
            reservation['phone'] = data.get('phone') or ''
            reservation['updated_at'] = datetime.now()
            return True

    def update_reservation_processed(self, reservation_id: int, processed: int) -> bool:
        with self._lock:
            reservation = self._state['reservations'].get(reservation_id)
            if reservation is None:
                return False
            reservation['processed'] = 1 if processed else 0
            reservation['updated_at'] = datetime.now()
            return True

    def delete_reservation(self, reservation_id: int) -> bool:
        with self._lock:
            if self._state['reservations'].pop(reservation_id, None) is None:
                return False
            restrictions = self._state['restrictions']
            for restriction_id in [
                rid for rid, r in restrictions.items() if r['reservation_id'] == reservation_id
            ]:
                del restrictions[restriction_id]
            return True

    # -------------------------------------------------------------------------
    # Restrictions
    # -------------------------------------------------------------------------

    def insert_restriction(self, data: dict) -> int:
        start = parse_date(data['start_date'])
        end = parse_date(data['end_date'])
        if start > end:
            raise PersistenceError('insert_restriction: CHECK constraint failed: start_date <= end_date')

        with self._lock:
            laptop_id = data['laptop_id']
            reservation_id = data.get('reservation_id') or 0
            if laptop_id not in self._state['laptops']:
                raise PersistenceError('insert_restriction: FOREIGN KEY constraint failed')
            if reservation_id and reservation_id not in self._state['reservations']:
                raise PersistenceError('insert_restriction: FOREIGN KEY constraint failed')
            if self.enforce_disjoint and self.restrictions_for_laptop_in_range(laptop_id, start, end):
                raise OverlapError('insert_restriction: restriction overlaps an existing restriction')

            now = datetime.now()
            restriction_id = self._next_id('restrictions')
            self._state['restrictions'][restriction_id] = {
                'id': restriction_id,
                'laptop_id': laptop_id,
                'reservation_id': reservation_id,
                'restriction_id': data.get('restriction_id', RESERVATION_KIND),
                'start_date': start,
                'end_date': end,
                'created_at': now,
                'updated_at': now,
            }
            return restriction_id

    def restrictions_for_laptop_in_range(self, laptop_id: int, start, end) -> list:
        start, end = parse_date(start), parse_date(end)
        with self._lock:
            matches = [
                dict(r) for r in self._state['restrictions'].values()
                if r['laptop_id'] == laptop_id and self._overlaps(r, start, end)
            ]
        matches.sort(key=lambda r: (r['start_date'], r['id']))
        return matches

    def laptops_free_in_range(self, start, end) -> list:
        start, end = parse_date(start), parse_date(end)
        with self._lock:
            busy = {
                r['laptop_id'] for r in self._state['restrictions'].values()
                if self._overlaps(r, start, end)
            }
            return [l for l in self.all_laptops() if l['id'] not in busy]

    def delete_restriction(self, restriction_id: int) -> bool:
        with self._lock:
            return self._state['restrictions'].pop(restriction_id, None) is not None

    def insert_one_day_block(self, laptop_id: int, day: date) -> int:
        return self.insert_restriction({
            'laptop_id': laptop_id,
            'start_date': day,
            'end_date': day,
            'restriction_id': BLOCK_KIND,
        })

    def delete_block(self, restriction_id: int, laptop_id: int) -> bool:
        with self._lock:
            restriction = self._state['restrictions'].get(restriction_id)
            if (restriction is None
                    or restriction['laptop_id'] != laptop_id
                    or restriction['reservation_id']
                    or restriction['restriction_id'] != BLOCK_KIND):
                return False
            del self._state['restrictions'][restriction_id]
            return True

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def get_user_by_id(self, user_id: int) -> Optional[dict]:
        with self._lock:
            user = self._state['users'].get(user_id)
            return dict(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[dict]:
        with self._lock:
            for user in self._state['users'].values():
                if user['email'] == email:
                    return dict(user)
            return None

    def create_user(self, email: str, password: str, first_name: str = '',
                    last_name: str = '', access_level: int = 3) -> int:
        with self._lock:
            if self.get_user_by_email(email) is not None:
                raise PersistenceError('create_user: UNIQUE constraint failed: users.email')
            now = datetime.now()
            user_id = self._next_id('users')
            self._state['users'][user_id] = {
                'id': user_id,
                'first_name': first_name,
                'last_name': last_name,
                'email': email,
                'password': generate_password_hash(password),
                'access_level': access_level,
                'created_at': now,
                'updated_at': now,
            }
            return user_id

    def update_user(self, user: dict) -> bool:
        with self._lock:
            stored = self._state['users'].get(user['id'])
            if stored is None:
                return False
            for field in ('first_name', 'last_name', 'email', 'access_level'):
                stored[field] = user[field]
            stored['updated_at'] = datetime.now()
            return True
