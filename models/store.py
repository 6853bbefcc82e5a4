"""
Interval Store capability set.

The store is the only shared mutable resource of the booking engine. Every
mutation of reservations and restrictions goes through these operations so
the overlap contract stays in one place. Two implementations exist:

- SQLiteIntervalStore (models/sqlite_store.py): the application database
- MemoryIntervalStore (models/memory_store.py): in-process fixture for tests

Every operation raises PersistenceError on failure and never applies
partially. Dates are datetime.date values (ISO strings are accepted).
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional


class IntervalStore(ABC):
    """Abstract persistence for laptops, reservations and restrictions."""

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator['IntervalStore']:
        """
        Scoped transactional boundary.

        Store calls made inside the block commit together on normal exit and
        are rolled back if the block raises.
        """

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_laptop_by_id(self, laptop_id: int) -> Optional[dict]:
        """Get a laptop or None."""

    @abstractmethod
    def all_laptops(self) -> list:
        """All laptops ordered by name."""

    @abstractmethod
    def create_laptop(self, laptop_name: str) -> int:
        """Add a laptop to the catalog."""

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    @abstractmethod
    def insert_reservation(self, data: dict) -> int:
        """Insert a reservation and return its ID."""

    @abstractmethod
    def get_reservation_by_id(self, reservation_id: int) -> Optional[dict]:
        """Get a reservation (with laptop_name) or None."""

    @abstractmethod
    def all_reservations(self) -> list:
        """All reservations ordered by start then end date."""

    @abstractmethod
    def new_reservations(self) -> list:
        """Unprocessed reservations ordered by start then end date."""

    @abstractmethod
    def update_reservation(self, data: dict) -> bool:
        """Update contact fields of a reservation."""

    @abstractmethod
    def update_reservation_processed(self, reservation_id: int, processed: int) -> bool:
        """Set the processed flag."""

    @abstractmethod
    def delete_reservation(self, reservation_id: int) -> bool:
        """Delete a reservation together with its restrictions."""

    # -------------------------------------------------------------------------
    # Restrictions
    # -------------------------------------------------------------------------

    @abstractmethod
    def insert_restriction(self, data: dict) -> int:
        """Insert a restriction and return its ID."""

    @abstractmethod
    def restrictions_for_laptop_in_range(self, laptop_id: int, start, end) -> list:
        """Restrictions of a laptop intersecting the closed range [start, end]."""

    @abstractmethod
    def laptops_free_in_range(self, start, end) -> list:
        """Laptops with no restriction intersecting [start, end], by name."""

    @abstractmethod
    def delete_restriction(self, restriction_id: int) -> bool:
        """Delete any restriction by ID."""

    @abstractmethod
    def insert_one_day_block(self, laptop_id: int, day: date) -> int:
        """Insert a manual block for a single day."""

    @abstractmethod
    def delete_block(self, restriction_id: int, laptop_id: int) -> bool:
        """Delete a manual block of a laptop; reservation restrictions never match."""

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_user_by_id(self, user_id: int) -> Optional[dict]:
        """Get a user or None."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[dict]:
        """Get a user by email or None."""

    @abstractmethod
    def create_user(self, email: str, password: str, first_name: str = '',
                    last_name: str = '', access_level: int = 3) -> int:
        """Create a user with a hashed password."""

    @abstractmethod
    def update_user(self, user: dict) -> bool:
        """Update a user's profile fields."""

    def authenticate(self, email: str, password: str) -> Optional[dict]:
        """
        Check credentials.

        Returns:
            The user dict, or None for an unknown email or a wrong password
        """
        from models.user import check_password

        user = self.get_user_by_email(email)
        if user is None or not check_password(user, password):
            return None
        return user
