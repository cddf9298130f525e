"""Pytest configuration and fixtures."""

import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import marketplace.services.realtime as realtime_module
from marketplace.database import Base, get_db
from marketplace.main import app
from marketplace.models import User
from marketplace.services.auth import AuthService


class AuthHeaders(dict):
    """Dict subclass that also stores user_id."""

    def __init__(self, *args, user_id: int | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id

    @property
    def token(self) -> str:
        return self["Authorization"].removeprefix("Bearer ")


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/marketplace", "/marketplace_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def mock_redis():
    """Replace the publishing Redis client so no test needs a Redis server."""
    redis_client = MagicMock()
    realtime_module._sync_redis = redis_client
    yield redis_client
    realtime_module._sync_redis = None


@pytest.fixture(autouse=True)
def mock_analysis_dispatch():
    """Keep task creation from reaching the Celery broker."""
    with patch("marketplace.tasks.task_analysis.enqueue_task_analysis") as mock_enqueue:
        yield mock_enqueue


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _register(client, email: str, name: str, currency: str | None = None) -> AuthHeaders:
    body = {"email": email, "password": "testpass123", "name": name}
    if currency:
        body["currency"] = currency
    response = client.post("/api/v1/auth/register", json=body)
    assert response.status_code == 201
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"}, user_id=data["user"]["id"]
    )


@pytest.fixture
def auth_headers(client):
    """Create a client user and return auth headers with user info."""
    return _register(client, "test@example.com", "Test User", currency="INR")


@pytest.fixture
def other_auth_headers(client):
    """A second client user who owns nothing the first one created."""
    return _register(client, "other@example.com", "Other User", currency="USD")


@pytest.fixture
def admin_headers(client, db):
    """Create an admin through the reset path and log it in."""
    AuthService(db).reset_admin("admin@example.com", "adminpass123")
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "admin@example.com", "password": "adminpass123"},
    )
    assert response.status_code == 200
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"}, user_id=data["user"]["id"]
    )


@pytest.fixture
def task_data():
    return {
        "title": "Fix checkout bug",
        "description": "The checkout page throws a 500 when the cart is empty.",
        "budget": 1500,
        "currency": "INR",
        "urgency": "high",
    }


@pytest.fixture
def task_id(client, auth_headers, task_data):
    """A SUBMITTED task owned by the auth_headers user."""
    response = client.post("/api/v1/tasks", json=task_data, headers=auth_headers)
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def get_user(db):
    def _get(user_id: int) -> User:
        return db.query(User).filter(User.id == user_id).first()

    return _get
