"""Generic base repository with reusable CRUD operations."""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from hakikisha.database import Base
from hakikisha.errors import NotFoundError

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Thin data-access layer over SQLAlchemy.

    Subclasses add domain-specific queries.
    Repositories only modify the session (add/flush) - the calling service
    controls when to commit or rollback, so one workflow step is one
    transaction. Claims and verdicts are never deleted, hence no ``delete``.
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model

    # ── reads ────────────────────────────────────────────────────────

    def get(self, id: int) -> Optional[T]:
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_or_raise(self, id: int) -> T:
        obj = self.get(id)
        if obj is None:
            raise NotFoundError(self.model.__name__.removesuffix("Model"), id)
        return obj

    def count(self) -> int:
        return self.db.query(self.model).count()

    # ── writes ───────────────────────────────────────────────────────

    def create(self, obj: T) -> T:
        """Add object to session (caller must commit)."""
        self.db.add(obj)
        self.db.flush()  # Assigns ID without committing
        return obj

    def update(self, obj: T) -> T:
        """Flush pending changes on an attached object (caller must commit)."""
        self.db.flush()
        return obj
