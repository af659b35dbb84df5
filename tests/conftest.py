"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "secret-key")
os.environ.pop("GOOGLE_API_KEY", None)
os.environ.pop("DEFAULT_ADMIN_EMAIL", None)
os.environ.pop("DEFAULT_ADMIN_PASSWORD", None)

# Ensure the app package is importable when tests run from the repo root.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.append(str(BACKEND_ROOT))

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.db.session import Database  # noqa: E402
from app.main import create_app  # noqa: E402
from tests.utils import FakeProvider  # noqa: E402


@pytest.fixture()
def database():
    database = Database("sqlite://", slow_query_threshold_ms=0)
    database.create_all()
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture()
def engine(database):
    return database.engine


@pytest.fixture()
def db_session(database) -> Session:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def client(database, fake_provider):
    app = create_app(database=database, ai_provider=fake_provider)
    with TestClient(app) as test_client:
        yield test_client
