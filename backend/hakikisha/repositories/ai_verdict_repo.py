"""AI verdict repository (insert and read only)."""

from typing import List, Optional

from sqlalchemy.orm import Session

from hakikisha.models.ai_verdict import AIVerdictModel
from hakikisha.repositories.base import BaseRepository


class AIVerdictRepository(BaseRepository[AIVerdictModel]):
    def __init__(self, db: Session):
        super().__init__(db, AIVerdictModel)

    def get_for_claim(self, claim_id: int) -> List[AIVerdictModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.claim_id == claim_id)
            .order_by(self.model.id)
            .all()
        )

    def get_latest_for_claim(self, claim_id: int) -> Optional[AIVerdictModel]:
        return (
            self.db.query(self.model)
            .filter(self.model.claim_id == claim_id)
            .order_by(self.model.id.desc())
            .first()
        )
