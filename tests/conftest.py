"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from tests.test_constants import TEST_SECRET_KEY

# Force an in-memory SQLite DB when pytest runs; don't inherit from .env
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", TEST_SECRET_KEY)
os.environ.setdefault("APP_URL", "http://testserver")


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    from app.main import app

    return TestClient(app)


@pytest.fixture
def db() -> Session:
    """Database session on a fresh in-memory schema. Dropped after each test."""
    import app.models  # noqa: F401
    from app.db.session import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = Session(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client_with_db(db: Session) -> TestClient:
    """TestClient with get_db overridden to use the test db session."""
    from app.db.session import get_db
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    c = TestClient(app)
    yield c
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def owner(db: Session):
    from tests.factories import make_user

    return make_user(db, "owner@acme.com", name="Olive Owner")


@pytest.fixture
def workspace(db: Session, owner):
    from tests.factories import make_workspace

    return make_workspace(db, owner, "Acme")


@pytest.fixture
def owner_actor(db: Session, owner, workspace):
    from tests.factories import actor_for

    return actor_for(db, owner, workspace.id)
