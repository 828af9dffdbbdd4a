"""
Pytest fixtures for the test suite.

Data-layer tests use an in-memory SQLite engine and a session that rolls back
after each test, so tests do not affect each other. API tests reuse that same
session through a `get_db` override.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from useradmin.settings import Settings

TEST_DB_URL = "sqlite:///:memory:"
DEFAULT_PASSWORD = "123456"
SECURITY_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "security_config.yaml"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from useradmin.db.base import Base
    import useradmin.models.security  # noqa: F401  (register tables)

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


@dataclass
class Org:
    depts: dict
    roles: dict
    users: dict


@pytest.fixture
def org(db_session) -> Org:
    """
    Seeded organisation (see useradmin.db.init_db.seed):

    Head Office > R&D > {Backend, Frontend}; Head Office > Finance.
    Roles: admin (1, ALL), manager (2, CUSTOM on R&D), staff (3, DEPT).
    """
    from useradmin.db.init_db import seed
    from useradmin.models.security import Department, Role, User

    seed(db_session, DEFAULT_PASSWORD)
    return Org(
        depts={d.name: d for d in db_session.scalars(select(Department)).all()},
        roles={r.name: r for r in db_session.scalars(select(Role)).all()},
        users={u.username: u for u in db_session.scalars(select(User)).all()},
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(avatar_dir=str(tmp_path / "avatars"), default_password=DEFAULT_PASSWORD)


@pytest.fixture
def app(db_session, settings):
    from useradmin.db.session import get_db
    from useradmin.main import create_app
    from useradmin.security.config import load_security_config
    from useradmin.settings import get_settings

    application = create_app()
    # Lifespan is not run by a bare TestClient; load what it would.
    application.state.security_config = load_security_config(SECURITY_CONFIG_PATH)

    def _get_db():
        yield db_session

    application.dependency_overrides[get_db] = _get_db
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def auth_header(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {user.id}"}
