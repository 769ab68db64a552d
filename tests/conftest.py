"""
shared pytest fixtures.

every test gets a fresh in-memory sqlite database.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.models.vitals import Base
import backend.models.sharing  # noqa: F401


@pytest.fixture
def engine():
    """
    create an in-memory database with all tables.

    yields:
        sqlalchemy engine sharing one connection across sessions
    """
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """
    create a test database session.

    yields:
        sqlalchemy session for testing
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, monkeypatch):
    """
    create flask test client backed by the test database.

    yields:
        flask test client for making requests
    """
    from backend import app as app_module

    monkeypatch.setattr(app_module, "get_db_session", session_factory)
    app_module.notification_hub.clear()
    app_module.app.config['TESTING'] = True

    with app_module.app.test_client() as test_client:
        yield test_client

    app_module.notification_hub.clear()
