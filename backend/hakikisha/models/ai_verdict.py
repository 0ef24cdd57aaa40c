"""AI verdict ORM model. Rows are never updated after insert."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.types import JSON

from hakikisha.database import Base, utcnow


class AIVerdictModel(Base):
    __tablename__ = "ai_verdicts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    claim_id = Column(Integer, ForeignKey("claims.id"), nullable=False, index=True)

    verdict = Column(String, nullable=False)  # VerdictLabel enum value
    confidence_score = Column(Float, nullable=False)
    explanation = Column(Text, nullable=False)
    evidence_sources = Column(JSON, default=list)

    model_version = Column(String, nullable=False)
    parse_fallback = Column(String)  # why the keyword heuristic was needed, if it was
    disclaimer = Column(Text)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<AIVerdict claim_id={self.claim_id} verdict={self.verdict} conf={self.confidence_score}>"
