"""
Health check endpoints
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from content_organiser import __version__
from content_organiser.core.config import get_settings
from content_organiser.core.database import get_db
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.models.content_item import ContentItemRecord
from content_organiser.utils.datetime_utils import utc_now

logger = LoggingConfig.get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": get_settings().app_name,
    }


@router.get("/health/detailed")
async def detailed_health_check(request: Request, db: Session = Depends(get_db)):
    """
    Detailed health check with component status

    Returns:
        dict: Detailed health status of all components
    """
    settings = get_settings()
    health_status = {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": settings.app_name,
        "version": __version__,
        "environment": settings.app_env,
        "components": {}
    }

    overall_healthy = True

    # Check database
    try:
        db.execute(text("SELECT 1"))
        item_count = db.query(func.count(ContentItemRecord.id)).scalar()
        health_status["components"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful",
            "content_items": item_count,
        }
    except SQLAlchemyError as e:
        db.rollback()
        overall_healthy = False
        logger.error(f"Health check database failure: {e}")
        health_status["components"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}",
            "error": type(e).__name__
        }

    # Check backlog cache
    store = getattr(request.app.state, "content_store", None)
    if store is None:
        overall_healthy = False
        health_status["components"]["content_store"] = {
            "status": "unhealthy",
            "message": "Content store not initialised",
        }
    else:
        health_status["components"]["content_store"] = {
            "status": "healthy",
            "cached_items": len(store),
            "loading": store.loading,
        }

    if not overall_healthy:
        health_status["status"] = "unhealthy"
    return health_status
