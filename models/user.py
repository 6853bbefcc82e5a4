"""
User model and data access functions.
Handles administrator authentication and Flask-Login integration.
"""

from typing import Optional

from werkzeug.security import generate_password_hash, check_password_hash


class User:
    """
    User class for Flask-Login integration.
    Wraps database row dictionary with required Flask-Login properties.
    """

    def __init__(self, user_dict):
        """
        Initialize User from database row.

        Args:
            user_dict: Dictionary with user data from database
        """
        self.id = user_dict['id']
        self.first_name = user_dict.get('first_name', '')
        self.last_name = user_dict.get('last_name', '')
        self.email = user_dict['email']
        self.access_level = user_dict.get('access_level', 1)

    @property
    def is_authenticated(self):
        """Required by Flask-Login."""
        return True

    @property
    def is_active(self):
        """Required by Flask-Login."""
        return True

    @property
    def is_anonymous(self):
        """Required by Flask-Login."""
        return False

    @property
    def full_name(self):
        """First and last name joined."""
        return f'{self.first_name} {self.last_name}'.strip()

    def get_id(self):
        """Required by Flask-Login. Returns user ID as unicode string."""
        return str(self.id)


def get_user_by_id(conn, user_id: int) -> Optional[dict]:
    """Get user by ID."""
    row = conn.execute('''
        SELECT id, first_name, last_name, email, password, access_level, created_at, updated_at
        FROM users WHERE id = ?
    ''', (user_id,)).fetchone()
    return dict(row) if row else None


def get_user_by_email(conn, email: str) -> Optional[dict]:
    """Get user by email."""
    row = conn.execute('''
        SELECT id, first_name, last_name, email, password, access_level, created_at, updated_at
        FROM users WHERE email = ?
    ''', (email,)).fetchone()
    return dict(row) if row else None


def create_user(conn, email: str, password: str, first_name: str = '',
                last_name: str = '', access_level: int = 3) -> int:
    """
    Create new user with hashed password.

    Returns:
        New user ID
    """
    cursor = conn.execute('''
        INSERT INTO users (first_name, last_name, email, password, access_level)
        VALUES (?, ?, ?, ?, ?)
    ''', (first_name, last_name, email, generate_password_hash(password), access_level))
    return cursor.lastrowid


def update_user(conn, user: dict) -> bool:
    """
    Update user profile fields.

    Returns:
        True if updated successfully
    """
    cursor = conn.execute('''
        UPDATE users
        SET first_name = ?, last_name = ?, email = ?, access_level = ?,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (user['first_name'], user['last_name'], user['email'], user['access_level'], user['id']))
    return cursor.rowcount > 0


def check_password(user_dict: dict, password: str) -> bool:
    """
    Verify password against stored hash.

    Args:
        user_dict: User dictionary with password hash
        password: Plain text password to check

    Returns:
        True if password matches
    """
    if not user_dict or not password:
        return False
    return check_password_hash(user_dict['password'], password)
