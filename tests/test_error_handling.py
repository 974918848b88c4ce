"""Test error handling functionality.

Verifies that custom exceptions are properly raised by the route handlers
and rendered by the registered exception handlers.
"""
import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from api.food_entries import create_food_entry, delete_food_entry
from api.users import get_user_profile
from core.config import Settings
from core.error_handlers import create_error_response, register_exception_handlers
from core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from schemas.food_entry_schema import FoodEntryCreateRequest


def test_entry_for_unknown_user_raises_404(session):
    """Test that logging food for a user that does not exist raises NotFoundError."""
    with pytest.raises(NotFoundError) as exc_info:
        create_food_entry(FoodEntryCreateRequest(food_text="Pizza"), caller_id="0" * 32, db=session)
    assert "User" in exc_info.value.message
    assert exc_info.value.status_code == 404


def test_delete_unknown_entry_raises_404(session, nora):
    """Test that deleting a missing entry raises NotFoundError."""
    with pytest.raises(NotFoundError) as exc_info:
        delete_food_entry(entry_id="a" * 32, caller_id=nora.id, db=session)
    assert "Food entry" in exc_info.value.message


def test_profile_with_malformed_id_raises_validation_error(session):
    """Test that a malformed user id raises ValidationError before any lookup."""
    with pytest.raises(ValidationError) as exc_info:
        get_user_profile(user_id="42", settings=Settings(), db=session)
    assert exc_info.value.status_code == 400
    assert exc_info.value.field == "id"


def test_exception_classes_have_proper_attributes():
    """Test that custom exception classes have expected attributes."""
    exc = NotFoundError("User", "abc123")
    assert exc.status_code == 404
    assert "User" in exc.message
    assert "abc123" in exc.message

    exc = ValidationError("Invalid input", field="age")
    assert exc.status_code == 400
    assert exc.message == "Invalid input"
    assert exc.details == {"field": "age"}

    exc = ConflictError("User already exists", {"email": "Email already taken"})
    assert exc.status_code == 409
    assert exc.details == {"email": "Email already taken"}

    exc = AuthenticationError()
    assert exc.status_code == 401
    assert exc.details == {"header": "X-User-Id"}

    exc = ConfigurationError("bad zone", config_key="CALORA_TIMEZONE")
    assert exc.status_code == 500
    assert exc.details == {"config_key": "CALORA_TIMEZONE"}


def test_create_error_response_shape():
    """Test that an error without details only carries the message."""
    resp = create_error_response("Nope", 418)
    assert resp.status_code == 418
    assert resp.body == b'{"error":"Nope"}'


@pytest.fixture
def failing_app(monkeypatch):
    monkeypatch.setenv("CALORA_ENV", "development")
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaputt")

    @app.get("/duplicate")
    def duplicate():
        raise IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed"))

    return TestClient(app, raise_server_exceptions=False)


def test_unhandled_exception_becomes_500(failing_app):
    """Test that unexpected exceptions are rendered as 500 with their type outside production."""
    resp = failing_app.get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "An internal server error occurred"
    assert body["details"]["exception"] == "RuntimeError"


def test_unhandled_exception_hides_details_in_production(failing_app, monkeypatch):
    """Test that production responses do not expose exception details."""
    monkeypatch.setenv("CALORA_ENV", "production")
    resp = failing_app.get("/boom")
    assert resp.json()["details"] == {"type": "internal_error"}


def test_integrity_error_becomes_409(failing_app):
    """Test that constraint violations are rendered as 409."""
    resp = failing_app.get("/duplicate")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Resource already exists"


def test_405_lists_methods_of_nested_routers():
    """Test that allowed methods are collected across included and nested routers."""
    inner = APIRouter(prefix="/notes")

    @inner.get("")
    def list_notes():
        return []

    @inner.delete("/{note_id}")
    def delete_note(note_id: str):
        return {}

    outer = APIRouter(prefix="/v1")

    @outer.post("/notes")
    def create_note():
        return {}

    outer.include_router(inner)
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(outer)
    client = TestClient(app)

    resp = client.put("/v1/notes")
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed", "allowed": ["GET", "POST"]}
    assert resp.headers["allow"] == "GET, POST"
    assert client.get("/v1/notes/abc").json()["allowed"] == ["DELETE"]


def test_unknown_time_zone_is_a_configuration_error(monkeypatch):
    """Test that an unknown CALORA_TIMEZONE raises ConfigurationError."""
    monkeypatch.setenv("CALORA_TIMEZONE", "Mars/Olympus_Mons")
    with pytest.raises(ConfigurationError):
        Settings().timezone


def test_bad_numeric_setting_is_a_configuration_error(monkeypatch):
    """Test that a non-numeric setting raises ConfigurationError naming the key."""
    monkeypatch.setenv("CALORA_STATS_WINDOW_DAYS", "thirty")
    with pytest.raises(ConfigurationError) as exc_info:
        Settings()
    assert exc_info.value.details == {"config_key": "CALORA_STATS_WINDOW_DAYS"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
