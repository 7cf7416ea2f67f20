from __future__ import annotations

import pathlib
import sys

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import budgetbook.models  # noqa: F401  # Ensure models are registered with metadata
from budgetbook import models, security
from budgetbook.config import Settings
from budgetbook.database import Base, Database, enable_sqlite_foreign_keys
from budgetbook.server import create_app


@pytest.fixture()
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def database(engine):
    return Database(engine)


@pytest.fixture()
def db_session(database):
    session: Session = database.session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def settings():
    return Settings(environment="test", support_email="help@example.com")


@pytest.fixture()
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(database):
    """Insert a user directly and return its id."""

    def _make_user(email="ada@example.com", username="ada", password="hunter2", verified=False) -> int:
        with database.session_scope() as session:
            user = models.User(
                email=email,
                username=username,
                password=security.encrypt_password(password),
                verification_code="12345678",
                email_verified=verified,
            )
            session.add(user)
            session.flush()
            return user.id

    return _make_user


@pytest.fixture()
def make_overview(database):
    def _make_overview(user_id: int, description: str = "Monthly") -> int:
        with database.session_scope() as session:
            overview = models.Overview(user_id=user_id, description=description)
            session.add(overview)
            session.flush()
            return overview.id

    return _make_overview


@pytest.fixture()
def make_logbook(database):
    def _make_logbook(user_id: int, name: str = "Trip") -> int:
        with database.session_scope() as session:
            logbook = models.Logbook(user_id=user_id, name=name)
            session.add(logbook)
            session.flush()
            return logbook.id

    return _make_logbook
