from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import worldgrid.models  # noqa: F401
from worldgrid.database import Base, get_db
from worldgrid.game import seed
from worldgrid.main import app
from worldgrid.models.user import User
from worldgrid.routes import admin

from tests.factories import make_user

ADMIN_KEY = "test-admin-key"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def founder(db) -> User:
    return make_user(db, "founder")


@pytest.fixture
def world(db, founder):
    """Default zones plus the origin monument at (0, 0)."""
    return seed.seed_world(db, founder.id)


@pytest.fixture
def client(session_factory, monkeypatch):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(admin, "ADMIN_KEY", ADMIN_KEY)
    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
