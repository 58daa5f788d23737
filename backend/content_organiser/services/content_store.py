"""
In-memory cache of the backlog (unscheduled) item set.

The store performs no writes of its own: callers persist a change through
the repository first and then mirror it here with upsert_item/remove_item.
All mutation happens on the event loop thread. Refreshes run one at a time,
and `loading` stays True while any refresh is queued or in flight.
"""
import asyncio
from typing import List, Optional, Tuple

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from content_organiser.core.exceptions import ProviderScopeError
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.schemas.content import ContentItem
from content_organiser.services.content_repository import ContentRepository

logger = LoggingConfig.get_logger(__name__)


class ContentStore:
    """Backlog cache with optimistic local mutation"""

    def __init__(self):
        self._items: List[ContentItem] = []
        self._refreshing = 0
        self._refresh_lock = asyncio.Lock()

    @property
    def items(self) -> Tuple[ContentItem, ...]:
        return tuple(self._items)

    @property
    def refreshing(self) -> int:
        """Refreshes queued or in flight"""
        return self._refreshing

    @property
    def loading(self) -> bool:
        return self._refreshing > 0

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id: str) -> Optional[ContentItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    async def refresh_backlog(self, repository: ContentRepository) -> Tuple[ContentItem, ...]:
        """Replace the cache with the gateway's backlog (newest first).

        Overlapping calls are serialised. The loading flag is released on
        every exit path; a failed fetch leaves the previous contents in place
        and re-raises.
        """
        self._refreshing += 1
        try:
            async with self._refresh_lock:
                items = await run_in_threadpool(repository.fetch_backlog)
                self._items = list(items)
            logger.debug("Backlog refreshed", extra={"count": len(self._items)})
        finally:
            self._refreshing -= 1
        return self.items

    def upsert_item(self, item: ContentItem) -> None:
        for index, existing in enumerate(self._items):
            if existing.id == item.id:
                self._items[index] = item
                return
        self._items.insert(0, item)

    def remove_item(self, item_id: str) -> None:
        self._items = [item for item in self._items if item.id != item_id]

    def apply_saved(self, item: ContentItem) -> None:
        """Mirror a persisted item: backlog items are cached, scheduled ones dropped."""
        if item.scheduled_date is None:
            self.upsert_item(item)
        else:
            self.remove_item(item.id)


def get_content_store(request: Request) -> ContentStore:
    """FastAPI dependency for the application's content store"""
    store = getattr(request.app.state, "content_store", None)
    if store is None:
        raise ProviderScopeError("ContentStore used outside the application lifespan")
    return store
