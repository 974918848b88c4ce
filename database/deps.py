"""Dependency helpers that expose read/write DB sessions.

These wrappers provide application-friendly names for injection into FastAPI
endpoints: `get_db_write` for routes that write and `get_db_read` for
read-only routes. Sessions come from the `StoreClient` placed on
`app.state.store` by the lifespan handler.
"""

from fastapi import Request

from core.exceptions import DatabaseError
from .database import StoreClient


def get_store(request: Request) -> StoreClient:
    """Return the store client attached to the running application."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise DatabaseError("Store client is not initialized", operation="connect")
    return store


def get_db_write(request: Request):
    """Yield a write-capable DB session for FastAPI dependency injection."""
    yield from get_store(request).write_session()


def get_db_read(request: Request):
    """Yield a read-only DB session for FastAPI dependency injection."""
    yield from get_store(request).read_session()
