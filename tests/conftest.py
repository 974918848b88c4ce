"""Shared fixtures: an in-memory store, sessions, sample users and an API client."""

import pytest
from fastapi.testclient import TestClient

from database import StoreClient
from services.user_store import UserStore


NORA = {
    "username": "nora_test",
    "email": "Nora@Example.com",
    "age": 25,
    "gender": "female",
    "weight": 60,
    "height": 165,
    "activity_level": 1.55,
}

TOM = {
    "username": "tom_admin",
    "email": "tom@calora-admin.com",
    "age": 30,
    "gender": "male",
    "weight": 75,
    "height": 180,
    "activity_level": 1.2,
}


@pytest.fixture
def store():
    """Fresh in-memory database per test."""
    client = StoreClient("sqlite://")
    client.init_db()
    yield client
    client.dispose()


@pytest.fixture
def session(store):
    db = store.WriteSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def registration():
    """A valid registration payload, fresh per test."""
    return dict(NORA)


@pytest.fixture
def nora(session):
    return UserStore(session).create_user(dict(NORA))


@pytest.fixture
def tom(session):
    return UserStore(session).create_user(dict(TOM))


@pytest.fixture
def client(monkeypatch):
    """API client running the real lifespan against an in-memory database."""
    monkeypatch.setenv("CALORA_DATABASE_URL", "sqlite://")
    monkeypatch.delenv("CALORA_READ_DATABASE_URL", raising=False)
    monkeypatch.setenv("CALORA_TIMEZONE", "UTC")
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_user(client):
    """Register a user through the API and return its id."""
    resp = client.post("/users", json={
        "username": "nora_test",
        "email": "nora@example.com",
        "age": 25,
        "gender": "female",
        "weight": 60,
        "height": 165,
        "activityLevel": 1.55,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]
