"""Database handle for the budgetbook backend."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores foreign keys unless asked on every new connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Database:
    """Owns an engine and hands out transactional sessions.

    One instance is built per application and stored on ``app.state``;
    request handlers receive sessions through :func:`get_db`.
    """

    def __init__(self, bind: Engine, **session_options: Any) -> None:
        self.bind = bind
        self.session_factory = sessionmaker(
            bind=bind,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            future=True,
            **session_options,
        )

    @classmethod
    def from_url(cls, url: str) -> "Database":
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, connect_args=connect_args, future=True)
        if url.startswith("sqlite"):
            enable_sqlite_foreign_keys(engine)
        return cls(engine)

    def create_all(self) -> None:
        """Create database tables if they do not already exist."""
        from . import models  # noqa: F401  # Import models for metadata registration

        Base.metadata.create_all(bind=self.bind)

    def dispose(self) -> None:
        self.bind.dispose()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency that provides a database session for one request.

    Write routes commit before building their response, so a failed commit
    still reaches the client as a failure envelope. The teardown commit only
    closes out reads.
    """
    with get_database(request).session_scope() as session:
        yield session
