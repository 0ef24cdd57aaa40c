"""Review session ORM model (time tracking per claim and reviewer)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from hakikisha.database import Base, utcnow


class ReviewSessionModel(Base):
    __tablename__ = "review_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    claim_id = Column(Integer, ForeignKey("claims.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    started_at = Column(DateTime, nullable=False, default=utcnow)
    ended_at = Column(DateTime)
    duration_seconds = Column(Integer)
    outcome = Column(String)  # SessionOutcome enum value

    def __repr__(self) -> str:
        return f"<ReviewSession claim_id={self.claim_id} reviewer={self.reviewer_id} outcome={self.outcome}>"
