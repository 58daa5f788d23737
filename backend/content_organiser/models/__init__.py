"""
SQLAlchemy models
"""
from content_organiser.core.database import Base  # noqa: F401
from content_organiser.models.content_item import (  # noqa: F401
    ContentItemRecord, ContentPlatform, ContentStage)
from content_organiser.models.profile import UserProfile, UserRole  # noqa: F401
from content_organiser.models.user import User, UserSession  # noqa: F401
