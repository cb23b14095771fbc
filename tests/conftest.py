"""
Pytest configuration and shared fixtures.

Provides a test application, database session, and test client that
all test modules can use. Uses the ``testing`` configuration which
points at an in-memory SQLite database, so every test gets a fresh
schema.
"""

import pytest

from itam import create_app
from itam.extensions import db as _db
from itam.models.asset import Asset, Category
from itam.models.user import ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_STAFF, User
from itam.repositories import (
    InMemoryAssetRepository,
    InMemoryTransactionRepository,
    InMemoryUserRepository,
)
from itam.services.transaction_service import TransactionProcessor


@pytest.fixture(scope="function")
def app():
    """
    Create a Flask application configured for testing.

    The schema is created from the models before each test and dropped
    afterwards.
    """
    app = create_app("testing")

    # Establish an application context for the duration of the test.
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="function")
def database(app):  # pylint: disable=redefined-outer-name,unused-argument
    """Provide the SQLAlchemy database instance."""
    yield _db


@pytest.fixture(scope="function")
def db_session(database):  # pylint: disable=redefined-outer-name
    """Provide the application's scoped session."""
    yield database.session


@pytest.fixture(scope="function")
def client(app):  # pylint: disable=redefined-outer-name
    """
    Provide a Flask test client for making HTTP requests.

    Usage in tests::

        def test_health(client):
            response = client.get("/health")
            assert response.status_code == 200
    """
    with app.test_client() as test_client:
        yield test_client


# -- Users -----------------------------------------------------------------


def _make_user(session, name, email, role):
    user = User(name=name, email=email, role=role, is_active=True)
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, "Ada Admin", "ada@example.com", ROLE_ADMIN)


@pytest.fixture
def staff_user(db_session):
    return _make_user(db_session, "Sam Staff", "sam@example.com", ROLE_STAFF)


@pytest.fixture
def employee(db_session):
    return _make_user(db_session, "Eve Employee", "eve@example.com", ROLE_EMPLOYEE)


@pytest.fixture
def login(client):  # pylint: disable=redefined-outer-name
    """
    Return a function that signs ``user`` in on the test client.

    Writes the Flask-Login session keys directly instead of going
    through an authentication flow.
    """

    def _login(user):
        with client.session_transaction() as session:
            session["_user_id"] = str(user.id)
            session["_fresh"] = True
        return client

    return _login


@pytest.fixture
def auth_client(login, admin_user):  # pylint: disable=redefined-outer-name
    """Test client signed in as an admin."""
    return login(admin_user)


# -- Assets ----------------------------------------------------------------


@pytest.fixture
def laptop_category(db_session):
    category = Category(name="Laptop")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def make_asset(db_session):
    """
    Return a factory that stores an asset directly.

    ``status`` and ``holder`` let a test start from any lifecycle state
    without replaying transactions.
    """
    counter = {"n": 0}

    def _make(status="available", holder=None, name="ThinkPad T14"):
        counter["n"] += 1
        asset = Asset(
            name=name,
            asset_tag=f"TST-{counter['n']:04d}",
            serial_number=f"SN-{counter['n']:06d}",
            status=status,
            current_holder_id=holder.id if holder is not None else None,
        )
        db_session.add(asset)
        db_session.commit()
        return asset

    return _make


# -- In-memory processor ---------------------------------------------------


class InMemoryWorld:
    """Processor plus its in-memory repositories and some people."""

    def __init__(self):
        self.admin = User(name="Ada Admin", email="ada@example.com", role=ROLE_ADMIN)
        self.alice = User(name="Alice", email="alice@example.com", role=ROLE_EMPLOYEE)
        self.bob = User(name="Bob", email="bob@example.com", role=ROLE_EMPLOYEE)
        self.users = InMemoryUserRepository([self.admin, self.alice, self.bob])
        self.assets = InMemoryAssetRepository()
        self.transactions = InMemoryTransactionRepository()
        self.processor = TransactionProcessor(
            self.assets, self.users, self.transactions
        )

    def add_asset(self, status="available", holder=None, name="Dell Latitude"):
        asset = Asset(
            name=name,
            status=status,
            current_holder_id=holder.id if holder is not None else None,
        )
        return self.assets.add(asset)


@pytest.fixture
def world():
    """Fresh in-memory repositories; no database or app needed."""
    return InMemoryWorld()
