"""
Pytest configuration for practice gateway tests.

This file is loaded by pytest before any test modules are imported.
It sets up the test environment, including disabling rate limiting.

The environment variables are set at module level (not in pytest_configure)
because they need to be available before any modules are imported during
pytest's collection phase.
"""

import os

# Set ENV=TEST to disable rate limiting BEFORE any modules are imported
os.environ["ENV"] = "TEST"
os.environ["DISABLE_RATE_LIMITS"] = "1"

import pytest


@pytest.fixture(autouse=True)
def test_database(tmp_path, monkeypatch):
    """Give every test its own migrated SQLite database.

    TestClient does not run the app lifespan unless used as a context
    manager, so the schema is migrated here instead.
    """
    from clinic_gateway.app.db.migrate import ensure_schema

    db_path = tmp_path / "practice_test.db"
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("PRACTICE_DB_PATH", str(db_path))
    ensure_schema()
    return db_path


@pytest.fixture(autouse=True)
def object_store(tmp_path, monkeypatch):
    """Point the object store at a per-test directory."""
    from clinic_gateway.app.services.object_store import LocalObjectStore, set_object_store

    root = tmp_path / "objects"
    monkeypatch.setenv("PRACTICE_STORAGE_DIR", str(root))
    store = LocalObjectStore(str(root))
    set_object_store(store)
    yield store
    set_object_store(None)


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from clinic_gateway.app.main import app

    return TestClient(app)


@pytest.fixture
def practice():
    """A registered practice: tenant, owner account and seeded permissions."""
    from clinic_gateway.app.services import user_service

    registered = user_service.register_practice(
        "owner@practice-a.example",
        "correct-horse-battery",
        "Olive",
        "Owner",
        practice_name="Practice A",
    )
    registered["headers"] = {"Authorization": f"Bearer {registered['access_token']}"}
    return registered
