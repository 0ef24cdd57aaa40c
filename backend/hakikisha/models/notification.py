"""Notification ORM model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from hakikisha.database import Base, utcnow


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    type = Column(String, nullable=False)  # NotificationType enum value
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)

    related_entity_type = Column(String)
    related_entity_id = Column(Integer)

    priority = Column(String, nullable=False, default="medium")
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime)

    # One row per triggering event and recipient
    event_key = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Notification user_id={self.user_id} type={self.type} read={self.is_read}>"
