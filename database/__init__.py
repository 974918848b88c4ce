"""Database package: ORM models and the store client."""

from .database import StoreClient, build_engine
from . import models

__all__ = [
    "StoreClient",
    "build_engine",
    "models",
]
