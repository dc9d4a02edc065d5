"""Pytest configuration and fixtures"""
import os

# Must be set before the application modules read their settings
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront_admin.api.deps import get_session_store
from storefront_admin.database import Base, get_db
from storefront_admin.main import app
from storefront_admin.models.admin_user import AdminUser
from storefront_admin.services.accounts import create_admin
from storefront_admin.services.session_store import InMemorySessionStore

# In-memory SQLite shared by every connection of the test engine
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "fresh-basil-42"
OTHER_PASSWORD = "ripe-mango-17"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    """Fresh session registry for each test"""
    return InMemorySessionStore()


@pytest.fixture(scope="function")
def client(db: Session, session_store: InMemorySessionStore) -> Generator[TestClient, None, None]:
    """Create test client with database session and registry overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db: Session) -> AdminUser:
    """A store admin account"""
    return create_admin(db, "Store Admin", "Admin@Grocery.test", ADMIN_PASSWORD)


@pytest.fixture
def other_admin(db: Session) -> AdminUser:
    """A second, unrelated admin account"""
    return create_admin(db, "Night Shift", "night@grocery.test", OTHER_PASSWORD)


@pytest.fixture
def login(client: TestClient) -> Callable:
    """Log in through the API and return the response"""

    def _login(email: str = "admin@grocery.test", password: str = ADMIN_PASSWORD):
        return client.post("/admin/login", json={"email": email, "password": password})

    return _login


@pytest.fixture
def token(login, admin: AdminUser) -> str:
    """Token of a freshly logged-in admin"""
    response = login()
    assert response.status_code == 200
    return response.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class UnreachableRegistry(InMemorySessionStore):
    """Registry whose backing database is down"""

    def is_flagged(self, admin_id):
        raise OperationalError("SELECT", {}, Exception("registry is down"))
