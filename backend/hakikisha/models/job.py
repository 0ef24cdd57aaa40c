"""Work-queue ORM models: queued jobs and per-claim advisory locks."""

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.types import JSON

from hakikisha.database import Base, utcnow


class JobModel(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String, nullable=False, index=True)  # JobKind enum value
    payload = Column(JSON, nullable=False)

    status = Column(String, nullable=False, default="queued", index=True)  # JobStatus enum value
    attempts = Column(Integer, nullable=False, default=0)
    available_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    leased_until = Column(DateTime)
    leased_by = Column(String)
    last_error = Column(Text)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Job id={self.id} kind={self.kind} status={self.status} attempts={self.attempts}>"


class ClaimLockModel(Base):
    __tablename__ = "claim_locks"

    claim_id = Column(Integer, primary_key=True)
    owner = Column(String, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<ClaimLock claim_id={self.claim_id} owner={self.owner}>"
