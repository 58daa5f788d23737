"""
Tests for the content item API
"""
from datetime import date

import pytest


class TestAccessControl:
    """401 without a session, 403 for a role that may not mutate"""

    def test_list_requires_session(self, client):
        response = client.get("/api/items", params={"start": "2024-06-01", "end": "2024-06-30"})

        assert response.status_code == 401

    def test_viewer_can_read(self, client, login, make_item):
        make_item("Visible")
        login(role="viewer")

        response = client.get("/api/items/backlog")

        assert response.status_code == 200
        assert [i["title"] for i in response.json()] == ["Visible"]

    @pytest.mark.parametrize("method,path,body", [
        ("POST", "/api/items", {"title": "x", "platform": "tiktok"}),
        ("PATCH", "/api/items/some-id", {"title": "x"}),
        ("PUT", "/api/items/some-id/schedule", {"scheduled_date": "2024-06-10"}),
        ("PUT", "/api/items/some-id/stage", {"stage": "posted"}),
        ("POST", "/api/admin/cleanup", {"keep_days": 120}),
    ])
    def test_viewer_cannot_mutate(self, client, login, method, path, body):
        login(role="viewer")

        response = client.request(method, path, json=body)

        assert response.status_code == 403

    def test_editor_cannot_cleanup(self, client, login):
        login(role="editor")

        response = client.post("/api/admin/cleanup", json={"keep_days": 120})

        assert response.status_code == 403

    def test_account_without_profile_is_unauthenticated(self, client, login, db):
        from content_organiser.models.profile import UserProfile

        login(role="editor", email="noprofile@example.com")
        db.query(UserProfile).delete()
        db.commit()

        response = client.post("/api/items", json={"title": "x", "platform": "tiktok"})

        assert response.status_code == 401


class TestItemLifecycle:
    def test_create_list_and_fetch(self, client, login):
        login(role="editor")

        created = client.post("/api/items", json={
            "title": "Launch video",
            "platform": "youtube",
            "scheduled_date": "2024-06-10",
            "timeline_days": 5,
        })

        assert created.status_code == 201
        item = created.json()
        assert item["stage"] == "idea"

        listed = client.get("/api/items", params={"start": "2024-06-01", "end": "2024-06-30"})
        assert [i["id"] for i in listed.json()] == [item["id"]]

        fetched = client.get(f"/api/items/{item['id']}")
        assert fetched.json()["title"] == "Launch video"

    def test_timeline_endpoint(self, client, login):
        login(role="editor")
        item = client.post("/api/items", json={
            "title": "Launch video",
            "platform": "youtube",
            "scheduled_date": "2024-06-10",
            "timeline_days": 5,
        }).json()

        response = client.get(f"/api/items/{item['id']}/timeline")

        assert response.status_code == 200
        assert response.json() == {
            "item_id": item["id"],
            "start_date": "2024-06-05",
            "scheduled_date": "2024-06-10",
            "days": 5,
        }

    def test_timeline_of_backlog_item_is_null(self, client, login, make_item):
        row = make_item("Idea")
        login(role="viewer")

        response = client.get(f"/api/items/{row.id}/timeline")

        assert response.status_code == 200
        assert response.json() is None

    def test_create_rejects_unknown_platform(self, client, login):
        login(role="editor")

        response = client.post("/api/items", json={"title": "x", "platform": "myspace"})

        assert response.status_code == 422

    def test_create_rejects_negative_timeline(self, client, login):
        login(role="editor")

        response = client.post("/api/items", json={"title": "x", "platform": "tiktok", "timeline_days": -1})

        assert response.status_code == 422

    def test_patch_partial_update(self, client, login, make_item):
        row = make_item("Draft", description="keep")
        login(role="editor")

        response = client.patch(f"/api/items/{row.id}", json={"title": "Final"})

        assert response.status_code == 200
        assert response.json()["title"] == "Final"
        assert response.json()["description"] == "keep"

    def test_patch_rejects_blank_title(self, client, login, make_item):
        row = make_item("Draft")
        login(role="editor")

        response = client.patch(f"/api/items/{row.id}", json={"title": "   "})

        assert response.status_code == 422
        assert client.get(f"/api/items/{row.id}").json()["title"] == "Draft"

    def test_patch_strips_title(self, client, login, make_item):
        row = make_item("Draft")
        login(role="editor")

        response = client.patch(f"/api/items/{row.id}", json={"title": "  Final cut  "})

        assert response.json()["title"] == "Final cut"

    def test_missing_item_is_404(self, client, login):
        login(role="editor")

        assert client.get("/api/items/nope").status_code == 404
        assert client.patch("/api/items/nope", json={"title": "x"}).status_code == 404

    def test_range_with_start_after_end(self, client, login):
        login(role="viewer")

        response = client.get("/api/items", params={"start": "2024-07-01", "end": "2024-06-01"})

        assert response.status_code == 422


class TestBacklogSync:
    """Mutations keep the cached backlog in step with storage"""

    def test_scheduling_removes_from_backlog(self, client, login, make_item, app):
        row = make_item("Clip")
        login(role="editor")
        assert [i["id"] for i in client.get("/api/items/backlog").json()] == [row.id]

        response = client.put(f"/api/items/{row.id}/schedule", json={"scheduled_date": "2024-06-10"})

        assert response.status_code == 200
        assert app.state.content_store.get(row.id) is None

        client.put(f"/api/items/{row.id}/schedule", json={"scheduled_date": None})
        assert app.state.content_store.get(row.id) is not None

    def test_create_unscheduled_lands_in_store(self, client, login, app):
        login(role="editor")

        item = client.post("/api/items", json={"title": "Idea", "platform": "podcast"}).json()

        assert app.state.content_store.get(item["id"]).title == "Idea"

    def test_stage_move_updates_board(self, client, login, make_item):
        row = make_item("Clip")
        login(role="editor")

        response = client.put(f"/api/items/{row.id}/stage", json={"stage": "editing"})
        assert response.status_code == 200

        board = client.get("/api/items/board").json()
        columns = {c["stage"]: c for c in board["columns"]}
        assert len(board["columns"]) == 6
        assert columns["editing"]["count"] == 1
        assert columns["idea"]["count"] == 0
        assert columns["editing"]["items"][0]["id"] == row.id
        assert board["total"] == 1


class TestCleanup:
    def test_admin_cleanup(self, client, login, make_item, days_ago):
        make_item("ancient", created_at=days_ago(400))
        make_item("recent", created_at=days_ago(5))
        login(role="admin")

        response = client.post("/api/admin/cleanup", json={"keep_days": 120})

        assert response.status_code == 200
        assert response.json()["deleted_items"] == 1
        assert [i["title"] for i in client.get("/api/items/backlog").json()] == ["recent"]

    def test_cleanup_default_keep_days(self, client, login):
        login(role="admin")

        response = client.post("/api/admin/cleanup", json={})

        assert response.status_code == 200
        assert response.json()["keep_days"] == 120

    def test_cleanup_out_of_bounds(self, client, login):
        login(role="admin")

        response = client.post("/api/admin/cleanup", json={"keep_days": 10})

        assert response.status_code == 422


def test_range_includes_backlog(client, login, make_item):
    """Unscheduled items are part of every range"""
    make_item("backlog")
    make_item("scheduled", scheduled_date=date(2024, 6, 10))
    make_item("elsewhere", scheduled_date=date(2025, 1, 1))
    login(role="viewer")

    response = client.get("/api/items", params={"start": "2024-06-01", "end": "2024-06-30"})

    assert sorted(i["title"] for i in response.json()) == ["backlog", "scheduled"]
