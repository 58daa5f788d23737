"""
Pytest configuration and fixtures
"""
import os
import sys
import tempfile
from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# One throwaway SQLite file per test run; must be set before settings load
_db_dir = tempfile.mkdtemp(prefix="content_organiser_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_db_dir) / 'test.db'}"
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["AUTH_WAIT_TIMEOUT_MS"] = "2000"
os.environ["ALLOW_SIGNUP"] = "true"
os.environ["DEFAULT_SIGNUP_ROLE"] = "viewer"

from content_organiser.core.config import get_settings  # noqa: E402
from content_organiser.core.database import (Base, get_engine,  # noqa: E402
                                             get_session_local)
from content_organiser.models.content_item import (  # noqa: E402
    ContentItemRecord, ContentPlatform, ContentStage)
from content_organiser.services.auth_service import AuthService  # noqa: E402
from content_organiser.utils.datetime_utils import utc_now_naive  # noqa: E402

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="function")
def db() -> Session:
    """Create a database session for testing"""
    import content_organiser.models  # noqa: F401

    engine = get_engine()
    # Ensure a clean database schema for each test
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = get_session_local()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    """Settings with the cache cleared before and after the test"""
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def app(db):
    from content_organiser.main import create_app
    return create_app()


@pytest.fixture
def client(app):
    """Test client with the application lifespan running"""
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Create an account with the given role"""
    def _make_user(email: str, role: str = "viewer", password: str = TEST_PASSWORD, display_name=None):
        return AuthService(db).register_user(email, password, role=role, display_name=display_name)
    return _make_user


@pytest.fixture
def login(client, make_user):
    """Create an account and sign the test client in as that user"""
    def _login(role: str = "editor", email: str = None):
        email = email or f"{role}@example.com"
        make_user(email, role=role)
        response = client.post("/api/auth/login", json={"email": email, "password": TEST_PASSWORD})
        assert response.status_code == 200, response.text
        return response.json()
    return _login


@pytest.fixture
def make_item(db):
    """Insert a content item row directly"""
    def _make_item(title: str = "Item", **fields):
        now = utc_now_naive()
        values = {
            "title": title,
            "platform": ContentPlatform.YOUTUBE.value,
            "stage": ContentStage.IDEA.value,
            "timeline_days": 0,
            "created_at": now,
            "updated_at": now,
        }
        for key, value in fields.items():
            values[key] = value.value if isinstance(value, (ContentPlatform, ContentStage)) else value
        row = ContentItemRecord(**values)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    return _make_item


@pytest.fixture
def days_ago():
    def _days_ago(n: int):
        return utc_now_naive() - timedelta(days=n)
    return _days_ago
