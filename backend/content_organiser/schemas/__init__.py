"""
Pydantic request/response contracts
"""
from content_organiser.schemas.content import (CleanupRequest,  # noqa: F401
                                               ContentItem,
                                               ContentItemCreate,
                                               ContentItemUpdate,
                                               ScheduleRequest, StageRequest)
