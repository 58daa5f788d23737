"""
Pydantic contracts for content items
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from content_organiser.models.content_item import ContentPlatform, ContentStage


def _clean_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("title must not be blank")
    return value


class ContentItem(BaseModel):
    """Content item as surfaced to pages, the API and the content store"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    platform: ContentPlatform
    stage: ContentStage
    category_id: Optional[str] = None
    scheduled_date: Optional[date] = None
    timeline_days: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime

    @property
    def is_backlog(self) -> bool:
        return self.scheduled_date is None


class ContentItemCreate(BaseModel):
    """Fields accepted when creating an item; id and timestamps are server-assigned"""
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    platform: ContentPlatform
    stage: ContentStage = ContentStage.IDEA
    category_id: Optional[str] = None
    scheduled_date: Optional[date] = None
    timeline_days: int = Field(default=0, ge=0)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _clean_title(v)


class ContentItemUpdate(BaseModel):
    """Partial update; only fields that were explicitly set are applied"""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    platform: Optional[ContentPlatform] = None
    stage: Optional[ContentStage] = None
    category_id: Optional[str] = None
    scheduled_date: Optional[date] = None
    timeline_days: Optional[int] = Field(None, ge=0)

    @field_validator("title", "platform", "stage", "timeline_days")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v) if v is not None else v


class ScheduleRequest(BaseModel):
    """Move an item onto the calendar, or back to the backlog with null"""
    scheduled_date: Optional[date] = None


class StageRequest(BaseModel):
    stage: ContentStage


class CleanupRequest(BaseModel):
    """Retention for cleanup; omitted means the configured default"""
    keep_days: Optional[int] = Field(None, ge=1)
