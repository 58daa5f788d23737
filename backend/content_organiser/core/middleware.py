"""
Request logging middleware
"""
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from content_organiser.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

# Polled by health checks and scrapers; kept out of the info log
QUIET_PATHS = frozenset({"/health", "/health/detailed", "/metrics"})


def _resolved_user_id(request: Request):
    """User id of the request's identity resolver, if one ran and found a session"""
    resolver = getattr(request.state, "identity", None)
    if resolver is None:
        return None
    session = resolver.state.session
    return session.user_id if session else None


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the log context and logs one line per request"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        LoggingConfig.set_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                exc_info=True,
                extra={
                    "error_type": type(e).__name__,
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                }
            )
            raise
        else:
            level = logger.debug if request.url.path in QUIET_PATHS else logger.info
            level(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "status_code": response.status_code,
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                    "user_id": _resolved_user_id(request),
                }
            )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            LoggingConfig.clear_context()
