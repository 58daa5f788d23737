"""
Page routes for the dashboard web interface
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from starlette.concurrency import run_in_threadpool

from content_organiser.api.routes.content import get_repository
from content_organiser.core.auth import require_role, require_session
from content_organiser.core.config import get_settings
from content_organiser.core.exceptions import (ContentItemNotFoundError,
                                               GatewayError)
from content_organiser.core.guards import (ADMIN_ROLES, CATEGORY_ROLES,
                                           EDITOR_ROLES)
from content_organiser.core.identity import AuthState
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.core.templates import render_template
from content_organiser.models.content_item import ContentPlatform
from content_organiser.planning.calendar import (WEEKDAY_LABELS,
                                                 build_month_grid,
                                                 grid_bounds, month_title,
                                                 shift_month)
from content_organiser.planning.pipeline import (STAGES, group_by_stage,
                                                 platform_badge,
                                                 stage_definition)
from content_organiser.planning.timeline import (compute_timeline,
                                                 split_backlog_and_scheduled)
from content_organiser.services.content_repository import ContentRepository
from content_organiser.services.content_store import (ContentStore,
                                                      get_content_store)
from content_organiser.utils.datetime_utils import local_today

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(tags=["pages"])

# Shown until categories are persisted
PLACEHOLDER_CATEGORIES = (
    {"name": "Tutorials", "color": "#3b82f6"},
    {"name": "Behind the Scenes", "color": "#ec4899"},
    {"name": "Product Reviews", "color": "#f59e0b"},
    {"name": "Vlogs", "color": "#10b981"},
    {"name": "Collaborations", "color": "#8b5cf6"},
    {"name": "Announcements", "color": "#ef4444"},
)


def _base_context(state: AuthState, active: str) -> dict:
    profile = state.profile
    return {
        "app_name": get_settings().app_name,
        "active_page": active,
        "profile": profile,
        "role": profile.role.value if profile else None,
        "can_edit": profile is not None and profile.role in EDITOR_ROLES,
        "is_admin": profile is not None and profile.role in ADMIN_ROLES,
        "platform_badge": platform_badge,
        "stage_definition": stage_definition,
    }


@router.get("/", response_class=HTMLResponse)
async def calendar_page(
    request: Request,
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    state: AuthState = Depends(require_session),
    repository: ContentRepository = Depends(get_repository),
):
    """Month calendar with scheduled items, production windows and the backlog"""
    today = local_today()
    year = year or today.year
    month = month or today.month
    start, end = grid_bounds(year, month)

    error = None
    items = []
    try:
        items = await run_in_threadpool(repository.fetch_range, start, end)
    except GatewayError as e:
        logger.error(f"Error loading calendar: {e.message}")
        error = "Could not load content. Please try again."

    split = split_backlog_and_scheduled(items)
    prev_year, prev_month = shift_month(year, month, -1)
    next_year, next_month = shift_month(year, month, 1)

    context = _base_context(state, "calendar")
    context.update({
        "title": month_title(year, month),
        "weekdays": WEEKDAY_LABELS,
        "days": build_month_grid(year, month, split.scheduled, today),
        "backlog": split.backlog,
        "prev": {"year": prev_year, "month": prev_month},
        "next": {"year": next_year, "month": next_month},
        "stages": STAGES,
        "platforms": list(ContentPlatform),
        "error": error,
    })
    return render_template("calendar.html", context, request)


@router.get("/backlog", response_class=HTMLResponse)
async def backlog_page(
    request: Request,
    state: AuthState = Depends(require_session),
    repository: ContentRepository = Depends(get_repository),
    store: ContentStore = Depends(get_content_store),
):
    """Unscheduled items as a stage pipeline board"""
    error = None
    try:
        await store.refresh_backlog(repository)
    except GatewayError as e:
        logger.error(f"Error refreshing backlog: {e.message}")
        error = "Could not refresh the backlog. Showing the last loaded items."

    context = _base_context(state, "backlog")
    context.update({
        "columns": group_by_stage(store.items),
        "total": len(store),
        "error": error,
    })
    return render_template("backlog.html", context, request)


@router.get("/item/{item_id}", response_class=HTMLResponse)
async def item_detail_page(
    request: Request,
    item_id: str,
    state: AuthState = Depends(require_session),
    repository: ContentRepository = Depends(get_repository),
):
    """Full details of one content item with its production window"""
    context = _base_context(state, "backlog")
    context.update({
        "item_id": item_id,
        "item": None,
        "timeline": None,
        "stages": STAGES,
        "platforms": list(ContentPlatform),
        "error": None,
    })

    status_code = 200
    try:
        item = await run_in_threadpool(repository.get, item_id)
        context["item"] = item
        context["timeline"] = compute_timeline(item)
    except ContentItemNotFoundError:
        context["error"] = "This content item does not exist."
        status_code = 404
    except GatewayError as e:
        logger.error(f"Error loading item {item_id}: {e.message}")
        context["error"] = "Could not load this item. Please try again."
        status_code = 503
    return render_template("item_detail.html", context, request, status_code=status_code)


@router.get("/categories", response_class=HTMLResponse)
async def categories_page(
    request: Request,
    state: AuthState = Depends(require_role(*CATEGORY_ROLES)),
):
    """Category overview (editors and admins)"""
    context = _base_context(state, "categories")
    context["categories"] = PLACEHOLDER_CATEGORIES
    return render_template("categories.html", context, request)


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(
    request: Request,
    state: AuthState = Depends(require_role(*ADMIN_ROLES)),
):
    """Maintenance page (admins only)"""
    settings = get_settings()
    context = _base_context(state, "admin")
    context.update({
        "keep_days": settings.cleanup_default_keep_days,
        "min_keep_days": settings.cleanup_min_keep_days,
        "max_keep_days": settings.cleanup_max_keep_days,
    })
    return render_template("admin.html", context, request)
