"""
Prometheus metrics configuration
"""
from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Gauge, Histogram,
                               Info, generate_latest)
from prometheus_client.registry import REGISTRY

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_errors_total = Counter(
    'http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# Identity and Access Metrics
# ============================================================================

identity_transitions_total = Counter(
    'identity_transitions_total',
    'Identity resolver state transitions',
    ['state']  # state: 'unauthenticated', 'pending_profile', 'complete'
)

guard_decisions_total = Counter(
    'guard_decisions_total',
    'Route guard decisions',
    ['guard', 'outcome']  # guard: 'session', 'role'
)

# ============================================================================
# Content Gateway Metrics
# ============================================================================

content_gateway_errors_total = Counter(
    'content_gateway_errors_total',
    'Content repository failures',
    ['operation']
)

cleanup_deleted_items_total = Counter(
    'cleanup_deleted_items_total',
    'Content items removed by the cleanup maintenance operation'
)

backlog_cached_items = Gauge(
    'backlog_cached_items',
    'Items held in the backlog cache, sampled at scrape time'
)

backlog_refreshing = Gauge(
    'backlog_refreshing',
    'Backlog refreshes queued or in flight, sampled at scrape time'
)

# ============================================================================
# Database Metrics
# ============================================================================

db_queries_total = Counter(
    'db_queries_total',
    'Total number of database queries',
    ['operation']  # operation: 'select', 'insert', 'update', 'delete'
)

db_query_duration_seconds = Histogram(
    'db_query_duration_seconds',
    'Database query duration in seconds',
    ['operation'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
)

# ============================================================================
# Application Info
# ============================================================================

app_info = Info(
    'content_organiser_app',
    'Application information'
)

try:
    from content_organiser import __version__
    from content_organiser.core.config import get_settings
    settings = get_settings()
    app_info.info({
        'app_name': settings.app_name,
        'app_env': settings.app_env,
        'version': __version__
    })
except ValueError:
    pass  # Invalid settings surface later, when the app starts


def get_metrics():
    """
    Get Prometheus metrics in text format

    Returns:
        bytes: Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_metrics_content_type():
    """Content type for the metrics endpoint"""
    return CONTENT_TYPE_LATEST
