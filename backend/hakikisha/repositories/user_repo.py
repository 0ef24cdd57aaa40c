"""User repository (read-mostly; accounts are managed elsewhere)."""

from typing import Iterator, List

from sqlalchemy.orm import Session

from hakikisha.models.user import UserModel
from hakikisha.repositories.base import BaseRepository

FACT_CHECKER_ROLES = ("fact_checker", "admin")


class UserRepository(BaseRepository[UserModel]):
    def __init__(self, db: Session):
        super().__init__(db, UserModel)

    def get_active_fact_checkers(self) -> List[UserModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.role == "fact_checker", self.model.is_active.is_(True))
            .order_by(self.model.id)
            .all()
        )

    def get_admins(self) -> List[UserModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.role == "admin", self.model.is_active.is_(True))
            .order_by(self.model.id)
            .all()
        )

    def iter_active_ids(self, batch_size: int = 100) -> Iterator[List[int]]:
        """Active user ids in id order, ``batch_size`` at a time."""
        last_id = 0
        while True:
            rows = (
                self.db.query(self.model.id)
                .filter(self.model.is_active.is_(True), self.model.id > last_id)
                .order_by(self.model.id)
                .limit(batch_size)
                .all()
            )
            if not rows:
                return
            ids = [r[0] for r in rows]
            yield ids
            last_id = ids[-1]
