"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database.
"""

import os
import pytest
import tempfile

# Set test database path BEFORE importing app
# This ensures all tests use an isolated database
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), 'laptop_rental_test.db')
os.environ['DATABASE_PATH'] = TEST_DB_PATH


class RecordingMailer:
    """Mailer double that keeps every message instead of sending it."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, mail):
        if self.fail:
            raise RuntimeError('mail queue unavailable')
        self.sent.append(mail)


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Set up test environment before any tests run."""
    # Ensure test database path is set
    os.environ['DATABASE_PATH'] = TEST_DB_PATH
    os.environ['FLASK_ENV'] = 'test'

    yield

    # Cleanup: remove test database after all tests
    for path in (TEST_DB_PATH, TEST_DB_PATH + '-wal', TEST_DB_PATH + '-shm'):
        if os.path.exists(path):
            try:
                os.remove(path)
            except PermissionError:
                pass  # Windows may have file locked


@pytest.fixture
def recording_mailer():
    """Mailer that records queued messages."""
    return RecordingMailer()


@pytest.fixture
def failing_mailer():
    """Mailer whose queue rejects every message."""
    return RecordingMailer(fail=True)


@pytest.fixture
def app(recording_mailer):
    """Create test application with isolated database."""
    from app import create_app
    from database import init_db

    # Ensure test database path
    os.environ['DATABASE_PATH'] = TEST_DB_PATH

    app = create_app('test', mailer=recording_mailer)
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['DATABASE_PATH'] = TEST_DB_PATH

    with app.app_context():
        init_db()
        yield app


@pytest.fixture
def store(app):
    """SQLite Interval Store of the test application."""
    from models.services import get_services
    return get_services().store


@pytest.fixture
def memory_store():
    """In-memory Interval Store seeded with the same catalog as the database."""
    from models.memory_store import MemoryIntervalStore

    store = MemoryIntervalStore(laptops=['Alienware m15', 'MacBook Pro'])
    store.create_user('admin@laptop-rental.com', 'admin123', 'Admin', 'User', 3)
    return store


@pytest.fixture
def memory_app(memory_store, recording_mailer):
    """Test application running on the in-memory store."""
    from app import create_app

    app = create_app('test', store=memory_store, mailer=recording_mailer)
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False

    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def authenticated_client(app, client):
    """Create authenticated test client."""
    with app.app_context():
        # Login as admin
        client.post('/user/login', data={
            'email': 'admin@laptop-rental.com',
            'password': 'admin123'
        }, follow_redirects=True)
    return client
