"""Fixtures for tests that need a real Postgres server."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from testcontainers.postgres import PostgresContainer

from agora.db.base import Base


@pytest.fixture(scope="session")  # start a real Postgres container once
def pg_container():
    """
    Spin up a throwaway Postgres container for the test session.
    """
    try:
        container = PostgresContainer("postgres:15-alpine")
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available: {e}")
    yield container
    container.stop()


@pytest.fixture(scope="session")
def pg_engine(pg_container):
    engine = create_engine(pg_container.get_connection_url(), pool_size=5)
    yield engine
    engine.dispose()


@pytest.fixture
def pg_sessions(pg_engine):
    """Session factory on a freshly created schema."""
    Base.metadata.create_all(bind=pg_engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=pg_engine)
    yield factory
    Base.metadata.drop_all(bind=pg_engine)
