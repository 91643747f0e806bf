"""Shared test fixtures and configuration."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agora.main import app
from agora.db.base import Base
from agora.api.deps import get_db
from agora.services.poll import create_poll
from tests.utils import make_token


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Disable rate limiting for all tests except rate limiting tests."""
    from agora.core.rate_limit import limiter

    limiter.reset()
    # Rate limit tests are marked with @pytest.mark.rate_limit
    limiter.enabled = "rate_limit" in request.keywords
    yield
    limiter.enabled = True
    limiter.reset()


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with a test database."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Authorization headers for user 1."""
    return {"Authorization": f"Bearer {make_token(1)}"}


@pytest.fixture
def make_poll(db_session):
    """Factory for polls with sensible defaults."""
    def _make_poll(**overrides):
        fields = {
            "title": "Best city to live in",
            "options": [{"text": "Athens"}, {"text": "Thessaloniki"}, {"text": "Patras"}],
            "question_type": "single-choice",
        }
        fields.update(overrides)
        return create_poll(db_session, **fields)
    return _make_poll


@pytest.fixture
def trusted_proxy(monkeypatch):
    """Treat the test client as a reverse proxy so X-Forwarded-For is honoured."""
    from agora.core.config import settings

    monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["testclient"])
