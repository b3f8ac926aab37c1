"""
Pytest fixtures for the sweet shop backend tests.

Provides test database setup, users with tokens, and test client.
"""

import pytest
from sweetshop import create_app
from sweetshop.config import TestConfig
from sweetshop.extensions import db
from sweetshop.models import User, Sweet
from sweetshop.services.auth_service import hash_password


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh database contents for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def regular_user(db_session):
    """A plain customer account."""
    user = User(
        username="user",
        email="user@sweetshop.com",
        password_hash=hash_password("user123"),
        role="user",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    """An admin account."""
    user = User(
        username="admin",
        email="admin@sweetshop.com",
        password_hash=hash_password("admin123"),
        role="admin",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def sweet(db_session):
    """A stocked sweet."""
    s = Sweet(name="Test Sweet", category="Test", price=5.99, quantity=10)
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture(scope='function')
def user_headers(client, regular_user):
    return auth_headers(get_auth_token(client, "user", "user123"))


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, "admin", "admin123"))


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
