"""Repository pattern base class for database operations.

Provides the single-record CRUD operations and the transaction handling the
entry and user stores build on. Every write commits exactly one record, so a
failed commit is rolled back and surfaced without partial state.
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import TypeVar, Generic, Type, Optional, Any
from core.exceptions import ConflictError, DatabaseError
from core.logger import get_logger
from database.models import Base

T = TypeVar('T', bound=Base)

logger = get_logger("core.repository")


class BaseRepository(Generic[T]):
    """Generic repository for common database operations.

    Attributes:
        model: SQLAlchemy model class to operate on.
        session: Database session for executing queries.
    """

    def __init__(self, model: Type[T], session: Session):
        """Initialize repository with model and session.

        Args:
            model: SQLAlchemy model class.
            session: Database session.
        """
        self.model = model
        self.session = session

    def _commit(self, operation: str) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("%s %s violated a constraint: %s", operation, self.model.__name__, exc.orig)
            raise ConflictError(f"{self.model.__name__} conflicts with an existing record")
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("%s %s failed", operation, self.model.__name__)
            raise DatabaseError(f"Failed to {operation} {self.model.__name__}", operation=operation)

    def create(self, obj: T) -> T:
        """Add, commit and refresh a new object.

        Args:
            obj: Model instance to persist.

        Returns:
            The persisted object with refreshed attributes.
        """
        self.session.add(obj)
        self._commit("create")
        self.session.refresh(obj)
        return obj

    def get_by_id(self, id: Any) -> Optional[T]:
        """Retrieve an object by its primary key.

        Args:
            id: Primary key value.

        Returns:
            Model instance or None if not found.
        """
        return self.session.get(self.model, id)

    def update(self, obj: T) -> T:
        """Commit changes to an existing object and refresh.

        Args:
            obj: Model instance with modified attributes.

        Returns:
            The updated object with refreshed attributes.
        """
        self._commit("update")
        self.session.refresh(obj)
        return obj

    def delete(self, obj: T) -> None:
        """Delete an object and commit.

        Args:
            obj: Model instance to delete.
        """
        self.session.delete(obj)
        self._commit("delete")

    def count(self) -> int:
        """Count total number of records.

        Returns:
            Total count of model instances.
        """
        return self.session.query(self.model).count()
