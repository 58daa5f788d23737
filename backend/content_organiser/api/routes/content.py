"""
Content item API routes
"""
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from content_organiser.core.auth import require_api_role, require_api_session
from content_organiser.core.config import get_settings
from content_organiser.core.database import get_db
from content_organiser.core.exceptions import (ContentItemNotFoundError,
                                               ContentOrganiserError,
                                               ContentValidationError,
                                               GatewayError)
from content_organiser.core.guards import ADMIN_ROLES, EDITOR_ROLES
from content_organiser.core.identity import AuthState
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.planning.pipeline import group_by_stage
from content_organiser.planning.timeline import compute_timeline
from content_organiser.schemas.content import (CleanupRequest, ContentItem,
                                               ContentItemCreate,
                                               ContentItemUpdate,
                                               ScheduleRequest, StageRequest)
from content_organiser.services.content_repository import ContentRepository
from content_organiser.services.content_store import (ContentStore,
                                                      get_content_store)

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["content"])

require_editor = require_api_role(*EDITOR_ROLES)
require_admin = require_api_role(*ADMIN_ROLES)


def get_repository(db: Session = Depends(get_db)) -> ContentRepository:
    return ContentRepository(db)


def _http_error(error: ContentOrganiserError) -> HTTPException:
    """Map repository errors onto HTTP status codes"""
    if isinstance(error, ContentItemNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, ContentValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error.message)
    logger.error(f"Content gateway error: {error.message}", extra=error.metadata)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Content storage is unavailable"
    )


async def _call(func, *args):
    try:
        return await run_in_threadpool(func, *args)
    except ContentOrganiserError as e:
        raise _http_error(e) from e


def _board(items) -> List[Dict[str, Any]]:
    return [
        {
            "stage": bucket.stage.key.value,
            "label": bucket.stage.label,
            "color": bucket.stage.color,
            "count": bucket.count,
            "items": [item.model_dump(mode="json") for item in bucket.items],
        }
        for bucket in group_by_stage(items)
    ]


@router.get("/items", response_model=List[ContentItem])
async def list_items(
    start: date = Query(..., description="First day of the range (inclusive)"),
    end: date = Query(..., description="Last day of the range (inclusive)"),
    _: AuthState = Depends(require_api_session),
    repository: ContentRepository = Depends(get_repository),
):
    """Backlog items plus items scheduled within [start, end]"""
    return await _call(repository.fetch_range, start, end)


@router.post("/items", response_model=ContentItem, status_code=status.HTTP_201_CREATED)
async def create_item(
    request: ContentItemCreate,
    _: AuthState = Depends(require_editor),
    repository: ContentRepository = Depends(get_repository),
    store: ContentStore = Depends(get_content_store),
):
    """Create a content item"""
    item = await _call(repository.create, request)
    store.apply_saved(item)
    return item


@router.get("/items/backlog", response_model=List[ContentItem])
async def list_backlog(
    _: AuthState = Depends(require_api_session),
    repository: ContentRepository = Depends(get_repository),
    store: ContentStore = Depends(get_content_store),
):
    """Refresh and return the cached backlog, newest first"""
    try:
        return list(await store.refresh_backlog(repository))
    except GatewayError as e:
        raise _http_error(e) from e


@router.get("/items/board")
async def stage_board(
    _: AuthState = Depends(require_api_session),
    repository: ContentRepository = Depends(get_repository),
    store: ContentStore = Depends(get_content_store),
):
    """Backlog grouped into one column per stage"""
    try:
        items = await store.refresh_backlog(repository)
    except GatewayError as e:
        raise _http_error(e) from e
    return {"columns": _board(items), "total": len(items)}


@router.get("/items/{item_id}", response_model=ContentItem)
async def get_item(
    item_id: str,
    _: AuthState = Depends(require_api_session),
    repository: ContentRepository = Depends(get_repository),
):
    return await _call(repository.get, item_id)


@router.patch("/items/{item_id}", response_model=ContentItem)
async def update_item(
    item_id: str,
    request: ContentItemUpdate,
    _: AuthState = Depends(require_editor),
    repository: ContentRepository = Depends(get_repository),
    store: ContentStore = Depends(get_content_store),
):
    """Apply a partial update"""
    item = await _call(repository.update, item_id, request)
    store.apply_saved(item)
    return item


@router.get("/items/{item_id}/timeline")
async def get_item_timeline(
    item_id: str,
    _: AuthState = Depends(require_api_session),
    repository: ContentRepository = Depends(get_repository),
) -> Optional[Dict[str, Any]]:
    """Production window of an item, or null while it sits in the backlog"""
    item = await _call(repository.get, item_id)
    block = compute_timeline(item)
    if block is None:
        return None
    return {
        "item_id": block.item_id,
        "start_date": block.start_date.isoformat(),
        "scheduled_date": block.scheduled_date.isoformat(),
        "days": block.days,
    }


@router.put("/items/{item_id}/schedule", response_model=ContentItem)
async def schedule_item(
    item_id: str,
    request: ScheduleRequest,
    _: AuthState = Depends(require_editor),
    repository: ContentRepository = Depends(get_repository),
    store: ContentStore = Depends(get_content_store),
):
    """Set the publish date; null moves the item back to the backlog"""
    item = await _call(repository.set_scheduled_date, item_id, request.scheduled_date)
    store.apply_saved(item)
    return item


@router.put("/items/{item_id}/stage", response_model=ContentItem)
async def move_item_stage(
    item_id: str,
    request: StageRequest,
    _: AuthState = Depends(require_editor),
    repository: ContentRepository = Depends(get_repository),
    store: ContentStore = Depends(get_content_store),
):
    """Move an item to another pipeline stage"""
    item = await _call(repository.set_stage, item_id, request.stage)
    store.apply_saved(item)
    return item


@router.post("/admin/cleanup")
async def cleanup_items(
    request: CleanupRequest,
    _: AuthState = Depends(require_admin),
    repository: ContentRepository = Depends(get_repository),
    store: ContentStore = Depends(get_content_store),
):
    """Delete items created more than keep_days ago"""
    keep_days = request.keep_days or get_settings().cleanup_default_keep_days
    result = await _call(repository.cleanup, keep_days)
    try:
        await store.refresh_backlog(repository)
    except GatewayError as e:
        logger.warning(f"Backlog refresh after cleanup failed: {e.message}")
    return result
