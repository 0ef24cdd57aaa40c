"""Points ledger ORM model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from hakikisha.database import Base, utcnow


class PointsEntryModel(Base):
    __tablename__ = "points_ledger"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    action = Column(String, nullable=False)
    description = Column(Text)
    claim_id = Column(Integer, ForeignKey("claims.id"))
    event_key = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<PointsEntry user_id={self.user_id} points={self.points} action={self.action}>"
