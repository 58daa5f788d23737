"""
Prometheus scrape endpoint
"""
from fastapi import APIRouter, Request
from fastapi.responses import Response

from content_organiser.core.metrics import (backlog_cached_items,
                                            backlog_refreshing, get_metrics,
                                            get_metrics_content_type)

router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def metrics(request: Request):
    """Prometheus text exposition; backlog cache gauges are sampled per scrape"""
    store = getattr(request.app.state, "content_store", None)
    if store is not None:
        backlog_cached_items.set(len(store))
        backlog_refreshing.set(store.refreshing)
    return Response(content=get_metrics(), media_type=get_metrics_content_type())
