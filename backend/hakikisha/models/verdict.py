"""Human verdict ORM model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from hakikisha.database import Base, utcnow


class VerdictModel(Base):
    __tablename__ = "verdicts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    claim_id = Column(Integer, ForeignKey("claims.id"), nullable=False, index=True)
    fact_checker_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    verdict = Column(String, nullable=False)  # VerdictLabel enum value
    explanation = Column(Text, nullable=False)
    evidence_sources = Column(JSON, default=list)

    ai_verdict_id = Column(Integer, ForeignKey("ai_verdicts.id"))
    based_on_ai_verdict = Column(Boolean, nullable=False, default=False)
    responsibility = Column(String, nullable=False, default="fact_checker")  # Responsibility enum value

    time_spent_seconds = Column(Integer, nullable=False, default=0)
    is_final = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    claim = relationship("ClaimModel", foreign_keys=[claim_id], back_populates="verdicts")

    def __repr__(self) -> str:
        return f"<Verdict claim_id={self.claim_id} verdict={self.verdict} final={self.is_final}>"
