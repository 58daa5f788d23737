"""
Middleware for collecting HTTP request metrics
"""
import re
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from content_organiser.core.metrics import (http_errors_total,
                                            http_request_duration_seconds,
                                            http_requests_total)

_UUID_SEGMENT = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def normalize_endpoint(path: str) -> str:
    """Collapse item ids so paths aggregate into one label value"""
    parts = path.split("/")
    return "/".join("{id}" if _UUID_SEGMENT.match(part) else part for part in parts)


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect HTTP request metrics for Prometheus
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        # Skip metrics endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        status_code = 500
        error_type = None
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            duration = time.time() - start_time
            endpoint = normalize_endpoint(request.url.path)
            method = request.method
            status_code_str = str(status_code)

            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status_code=status_code_str
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint,
                status_code=status_code_str
            ).observe(duration)

            if status_code >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status_code=status_code_str,
                    error_type=error_type or f"http_{status_code}"
                ).inc()

        return response
