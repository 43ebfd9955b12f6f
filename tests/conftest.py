"""
Shared test fixtures.

Every test gets its own SQLite file under tmp_path, so tests
never touch the real database and never see each other's rows.
A file (not :memory:) lets threads open separate connections
to the same data.
"""

import pytest
from fastapi.testclient import TestClient

from ledger_engine.config import Settings
from ledger_engine.database import Database, get_db
from ledger_engine.logging_config import reset_logging
from ledger_engine.main import create_app
from ledger_engine.models import Base


@pytest.fixture
def database(tmp_path):
    """
    Create all tables before each test, drop them after.

    Each test starts with a clean database.
    """
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=db.engine)
    yield db
    Base.metadata.drop_all(bind=db.engine)
    db.dispose()


@pytest.fixture
def session_factory(database):
    """For tests that need more than one session, one per thread."""
    return database.session_factory


@pytest.fixture
def db_session(database):
    """Provide a database session for direct service testing."""
    session = database.session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def test_settings(database):
    settings = Settings()
    settings.DATABASE_URL = str(database.engine.url)
    settings.ACCOUNTING_SERVICE_TOKEN = None
    settings.LOG_LEVEL = "WARNING"
    return settings


@pytest.fixture
def app(test_settings, database):
    application = create_app(test_settings, database=database)
    yield application
    reset_logging()


@pytest.fixture
def client(app, db_session):
    """
    Provide a test client with the test database.

    get_db is overridden so the app and the test share one
    session and the test can inspect what a request wrote.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
