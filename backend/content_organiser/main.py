"""
Main FastAPI application entry point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from content_organiser import __version__
from content_organiser.api.routes import (auth, auth_pages, content, health,
                                          metrics, pages)
from content_organiser.core.config import get_settings
from content_organiser.core.database import init_db
from content_organiser.core.exceptions import GuardRedirect
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.core.middleware import LoggingContextMiddleware
from content_organiser.core.middleware_metrics import MetricsMiddleware
from content_organiser.services.content_store import ContentStore

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    # Startup
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode...")

    if settings.auto_create_tables:
        init_db()

    # One backlog cache per application
    app.state.content_store = ContentStore()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    del app.state.content_store


async def guard_redirect_handler(request: Request, exc: GuardRedirect):
    """Page guards redirect instead of erroring"""
    logger.debug(
        "Guard redirect",
        extra={"path": request.url.path, "location": exc.location, "reason": exc.reason}
    )
    return RedirectResponse(url=exc.location, status_code=status.HTTP_303_SEE_OTHER)


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__
        }
    )


def create_app() -> FastAPI:
    """Build the application with middleware, handlers and routers"""
    # Configure logging first
    LoggingConfig.configure()
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Content planning dashboard: calendar, backlog pipeline and production timelines",
        version=__version__,
        lifespan=lifespan,
    )

    # Add logging context middleware (before CORS to capture all requests)
    app.add_middleware(LoggingContextMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GuardRedirect, guard_redirect_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Include routers
    app.include_router(auth_pages.router)
    app.include_router(pages.router)
    app.include_router(auth.router)
    app.include_router(content.router)
    app.include_router(health.router)
    app.include_router(metrics.router)

    return app


app = create_app()
