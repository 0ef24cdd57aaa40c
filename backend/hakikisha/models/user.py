"""User ORM model.

Accounts are owned by the authentication module; this workflow only reads
them (roles, contact address, notification flags) and bumps the points total.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.types import JSON

from hakikisha.database import Base, utcnow


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    username = Column(String)
    role = Column(String, nullable=False, default="user")  # user | fact_checker | admin
    is_active = Column(Boolean, nullable=False, default=True)

    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=True)
    notification_preferences = Column(JSON)

    total_points = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role}>"
