"""
Authorization profile attached to a user
"""
from enum import Enum

from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from content_organiser.core.database import Base


class UserRole(str, Enum):
    """User role enumeration"""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class UserProfile(Base):
    """One row per user; holds the role used by route guards"""
    __tablename__ = "profiles"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    display_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.VIEWER.value)

    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<UserProfile(user_id={self.user_id}, role={self.role})>"
