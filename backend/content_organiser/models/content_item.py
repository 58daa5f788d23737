"""
Content item model and its closed enumerations
"""
from enum import Enum
from uuid import uuid4

from sqlalchemy import (CheckConstraint, Column, Date, DateTime, Integer,
                        String, Text)

from content_organiser.core.database import Base
from content_organiser.utils.datetime_utils import utc_now_naive


class ContentStage(str, Enum):
    """Position in the production pipeline, in pipeline order"""
    IDEA = "idea"
    SCRIPT = "script"
    SHOOTING = "shooting"
    EDITING = "editing"
    SCHEDULED = "scheduled"
    POSTED = "posted"


class ContentPlatform(str, Enum):
    """Where a piece of content is published"""
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    YOUTUBE_SHORTS = "youtube_shorts"
    TIKTOK = "tiktok"
    PODCAST = "podcast"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    OTHER = "other"


class ContentItemRecord(Base):
    """A planned piece of content.

    scheduled_date is NULL for backlog items. stage and scheduled_date are
    independent columns.
    """
    __tablename__ = "content_items"
    __table_args__ = (
        CheckConstraint("timeline_days >= 0", name="ck_content_items_timeline_days"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    platform = Column(String(50), nullable=False, default=ContentPlatform.OTHER.value)
    stage = Column(String(50), nullable=False, default=ContentStage.IDEA.value, index=True)
    category_id = Column(String(36), nullable=True)
    scheduled_date = Column(Date, nullable=True, index=True)
    timeline_days = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utc_now_naive, nullable=False, index=True)
    updated_at = Column(DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    def __repr__(self):
        return f"<ContentItemRecord(id={self.id}, stage={self.stage}, scheduled_date={self.scheduled_date})>"
