"""Caller identity for request handlers.

There is no login flow; callers identify themselves with the `X-User-Id`
header. A request without it is rejected instead of falling back to a
default user.
"""

from typing import Optional

from fastapi import Header

from core.exceptions import AuthenticationError
from services.entry_store import validate_id


def require_caller_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Return the caller's user id from the `X-User-Id` header.

    Raises:
        AuthenticationError: If the header is missing or blank.
        ValidationError: If the header is not a well-formed id.
    """
    if x_user_id is None or not x_user_id.strip():
        raise AuthenticationError()
    return validate_id(x_user_id.strip(), "X-User-Id")


def optional_caller_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Like `require_caller_id` but returns None when the header is absent."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return validate_id(x_user_id.strip(), "X-User-Id")
