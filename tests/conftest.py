import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EMAIL_MODE", "console")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from edumynt.application.auth_backend import AuthBackend
from edumynt.infrastructure.db import Base, get_db
from edumynt.infrastructure import models  # noqa: F401
from edumynt.interfaces.http.ratelimit import limiter
from edumynt.main import app
from edumynt.seed import seed

ENGLISH_GRAMMAR = "550e8400-e29b-41d4-a716-446655440001"
ENGLISH_LITERATURE = "550e8400-e29b-41d4-a716-446655440003"
PASSWORD = "secret123"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(autouse=True)
def tables():
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    limiter.enabled = False
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def override_db():
    def _get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def client(override_db):
    yield TestClient(app)


@pytest.fixture
def seeded(db):
    seed(db)
    return db


@pytest.fixture
def student(db):
    """A confirmed user with a live session."""
    result = AuthBackend(db).sign_up("student@example.com", PASSWORD, "Test Student")
    return result.session


@pytest.fixture
def auth_headers(student):
    return {"Authorization": f"Bearer {student.access_token}"}
