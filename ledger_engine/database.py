"""
Database engine and session management.

There is no module-level engine. The process entry point builds
one Database from its settings, hands it to the web app (or to a
script), and disposes it on shutdown. Services never open their
own connections; they receive a Session.
"""

from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker


class Database:
    """An engine plus the session factory bound to it."""

    def __init__(self, url: str, **engine_kwargs):
        if url.startswith("sqlite"):
            # Sessions may be used from worker threads (FastAPI, tests)
            engine_kwargs.setdefault(
                "connect_args", {"check_same_thread": False}
            )

        # pool_pre_ping=True tests connections before using them,
        # which handles a database restart or a stale connection.
        self.engine = create_engine(url, pool_pre_ping=True, **engine_kwargs)

        # autoflush=False: SQL is only sent on an explicit flush or
        # commit, so services decide exactly when writes happen.
        self.session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
        )

    def session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Run a unit of work: commit on success, roll back on any error.

        This is the boundary the services rely on for atomicity.
        """
        with self.session_factory.begin() as session:
            yield session

    def ping(self) -> bool:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, preventing connection leaks. Closing a session
    with an open transaction rolls it back.
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when an IntegrityError came from a unique or primary key constraint."""
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate is not None:
        return sqlstate == "23505"
    errorname = getattr(orig, "sqlite_errorname", None)
    if errorname is not None:
        return errorname in (
            "SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY",
        )
    # Older sqlite3 modules only expose the message
    return "UNIQUE constraint failed" in str(orig)
