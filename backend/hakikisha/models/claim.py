"""Claim ORM model."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from hakikisha.database import Base, utcnow


class ClaimModel(Base):
    __tablename__ = "claims"

    id = Column(Integer, primary_key=True, autoincrement=True)
    submitter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)

    media_type = Column(String, nullable=False, default="text")  # MediaType enum value
    media_url = Column(String)
    source_url = Column(String)

    status = Column(String, nullable=False, default="pending", index=True)  # ClaimStatus enum value
    priority = Column(String, nullable=False, default="medium")  # ClaimPriority enum value

    submission_count = Column(Integer, nullable=False, default=1)
    similarity_hash = Column(String(64), index=True)

    ai_verdict_id = Column(Integer, ForeignKey("ai_verdicts.id", use_alter=True))
    human_verdict_id = Column(Integer, ForeignKey("verdicts.id", use_alter=True))

    assigned_fact_checker_id = Column(Integer, ForeignKey("users.id"), index=True)
    assigned_at = Column(DateTime)

    is_trending = Column(Boolean, nullable=False, default=False)
    trending_score = Column(Float, nullable=False, default=0.0)

    rejection_reason = Column(Text)
    published_at = Column(DateTime)
    verdict_read_at = Column(DateTime)
    verdict_notified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    ai_verdict = relationship("AIVerdictModel", foreign_keys=[ai_verdict_id], post_update=True)
    human_verdict = relationship("VerdictModel", foreign_keys=[human_verdict_id], post_update=True)
    verdicts = relationship(
        "VerdictModel",
        foreign_keys="VerdictModel.claim_id",
        back_populates="claim",
        order_by="VerdictModel.id",
    )

    @property
    def fact_check_text(self) -> str:
        """Title and description joined, as sent to the model."""
        return f"{self.title} {self.description}"

    def __repr__(self) -> str:
        return f"<Claim id={self.id} status={self.status} count={self.submission_count}>"
