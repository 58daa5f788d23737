"""
Tests for the in-memory backlog store
"""
import asyncio
import threading
from datetime import date, datetime
from types import SimpleNamespace

import pytest
from content_organiser.core.exceptions import GatewayError, ProviderScopeError
from content_organiser.models.content_item import ContentPlatform, ContentStage
from content_organiser.schemas.content import ContentItem
from content_organiser.services.content_store import (ContentStore,
                                                      get_content_store)


def _item(item_id, title="Item", scheduled_date=None, stage=ContentStage.IDEA):
    now = datetime(2024, 6, 1, 12, 0)
    return ContentItem(
        id=item_id,
        title=title,
        platform=ContentPlatform.YOUTUBE,
        stage=stage,
        scheduled_date=scheduled_date,
        created_at=now,
        updated_at=now,
    )


class FakeRepository:
    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error
        self.calls = 0

    def fetch_backlog(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.items)


@pytest.mark.asyncio
async def test_refresh_backlog_replaces_contents():
    store = ContentStore()
    store.upsert_item(_item("stale"))

    items = await store.refresh_backlog(FakeRepository([_item("b"), _item("a")]))

    assert [i.id for i in items] == ["b", "a"]
    assert [i.id for i in store.items] == ["b", "a"]
    assert store.loading is False


@pytest.mark.asyncio
async def test_refresh_failure_keeps_items_and_clears_loading():
    """loading is released on the error path too"""
    store = ContentStore()
    store.upsert_item(_item("kept"))

    with pytest.raises(GatewayError):
        await store.refresh_backlog(FakeRepository(error=GatewayError("fetch_backlog failed")))

    assert store.loading is False
    assert [i.id for i in store.items] == ["kept"]


def test_upsert_prepends_new_items():
    store = ContentStore()
    store.upsert_item(_item("a"))
    store.upsert_item(_item("b"))

    assert [i.id for i in store.items] == ["b", "a"]


def test_upsert_replaces_in_place_and_is_idempotent():
    store = ContentStore()
    store.upsert_item(_item("a"))
    store.upsert_item(_item("b"))

    renamed = _item("a", title="Renamed")
    store.upsert_item(renamed)
    store.upsert_item(renamed)

    assert [i.id for i in store.items] == ["b", "a"]
    assert store.get("a").title == "Renamed"
    assert len(store) == 2


def test_remove_item():
    store = ContentStore()
    store.upsert_item(_item("a"))

    store.remove_item("missing")
    assert len(store) == 1

    store.remove_item("a")
    assert len(store) == 0
    assert store.get("a") is None


def test_apply_saved_mirrors_backlog_membership():
    """Scheduling an item takes it out of the backlog cache"""
    store = ContentStore()
    store.apply_saved(_item("a"))
    assert store.get("a") is not None

    store.apply_saved(_item("a", scheduled_date=date(2024, 6, 10)))
    assert store.get("a") is None


def test_items_snapshot_is_read_only():
    store = ContentStore()
    store.upsert_item(_item("a"))

    snapshot = store.items
    store.remove_item("a")

    assert isinstance(snapshot, tuple)
    assert [i.id for i in snapshot] == ["a"]


def test_store_outside_application_scope():
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))

    with pytest.raises(ProviderScopeError):
        get_content_store(request)


class GatedRepository:
    """Each fetch blocks (in the worker thread) until its own gate opens"""

    def __init__(self, *results):
        self.results = list(results)
        self.gates = [threading.Event() for _ in results]
        self.calls = 0

    def fetch_backlog(self):
        index = self.calls
        self.calls += 1
        self.gates[index].wait(timeout=5)
        return list(self.results[index])


@pytest.mark.asyncio
async def test_overlapping_refreshes_keep_loading_until_the_last_finishes():
    store = ContentStore()
    repository = GatedRepository([_item("first")], [_item("second")])

    first = asyncio.ensure_future(store.refresh_backlog(repository))
    second = asyncio.ensure_future(store.refresh_backlog(repository))
    try:
        await asyncio.sleep(0.05)
        assert store.loading is True

        repository.gates[0].set()
        await asyncio.wait_for(first, timeout=2)

        assert store.loading is True
        assert [i.id for i in store.items] == ["first"]

        repository.gates[1].set()
        await asyncio.wait_for(second, timeout=2)
    finally:
        for gate in repository.gates:
            gate.set()

    assert store.loading is False
    assert [i.id for i in store.items] == ["second"]
