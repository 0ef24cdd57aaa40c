"""Human verdict repository."""

from typing import List

from sqlalchemy.orm import Session

from hakikisha.models.verdict import VerdictModel
from hakikisha.repositories.base import BaseRepository


class VerdictRepository(BaseRepository[VerdictModel]):
    def __init__(self, db: Session):
        super().__init__(db, VerdictModel)

    def get_for_claim(self, claim_id: int) -> List[VerdictModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.claim_id == claim_id)
            .order_by(self.model.id)
            .all()
        )

    def supersede_for_claim(self, claim_id: int) -> int:
        """Mark every existing verdict for the claim as no longer final."""
        updated = (
            self.db.query(self.model)
            .filter(self.model.claim_id == claim_id, self.model.is_final.is_(True))
            .update({self.model.is_final: False}, synchronize_session="fetch")
        )
        self.db.flush()
        return updated

    def count_by_fact_checker(self, fact_checker_id: int) -> int:
        return self.db.query(self.model).filter(self.model.fact_checker_id == fact_checker_id).count()
