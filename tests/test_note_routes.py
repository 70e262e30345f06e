"""
Tests for note and action item routes.
"""
import pytest


@pytest.fixture
def session_id(manager, couple):
    return str(manager.start(couple.id).id)


class TestNoteRoutes:
    """Test note endpoints apply the privacy rule for the caller."""

    async def test_create_note(self, client, session_id):
        """Test the author sees the full note."""
        r = await client.post("/api/notes", json={
            "content": "We did great today", "privacy": "private",
            "tags": ["win"], "session_id": session_id, "is_favorite": True,
        })

        assert r.status_code == 201
        data = r.json()
        assert data["content"] == "We did great today"
        assert data["can_edit"] is True
        assert data["is_private"] is True
        assert data["is_favorite"] is True
        assert data["word_count"] == 4
        assert data["author_name"] == "Alice"

    async def test_partner_sees_masked_private_note(self, client, session_id, identity, another_user_id):
        """Test partner view of a private note."""
        note = (await client.post("/api/notes", json={"content": "secret", "privacy": "private"})).json()

        identity["user_id"] = str(another_user_id)
        data = (await client.get(f"/api/notes/{note['id']}")).json()

        assert data["content"] == "[Private Note]"
        assert data["tags"] == []
        assert data["can_view"] is False
        assert data["is_favorite"] is None

    async def test_outsider_sees_shared_note_without_tags(self, client, identity, outsider_id):
        """Test outsider view of a shared note."""
        note = (await client.post("/api/notes", json={
            "content": "shared", "privacy": "shared", "tags": ["a"],
        })).json()

        identity["user_id"] = str(outsider_id)
        data = (await client.get(f"/api/notes/{note['id']}")).json()

        assert data["content"] == "shared"
        assert data["tags"] == []
        assert data["can_edit"] is False
        assert data["can_view"] is True

    async def test_only_author_edits(self, client, identity, another_user_id):
        """Test partners cannot edit or delete."""
        note = (await client.post("/api/notes", json={"content": "mine", "privacy": "shared"})).json()

        identity["user_id"] = str(another_user_id)
        r = await client.patch(f"/api/notes/{note['id']}", json={"content": "ours"})
        assert r.status_code == 403
        assert (await client.delete(f"/api/notes/{note['id']}")).status_code == 403

    async def test_update_and_delete(self, client):
        """Test the author can share and remove a note."""
        note = (await client.post("/api/notes", json={"content": "draft"})).json()
        assert note["is_draft"] is True

        r = await client.patch(f"/api/notes/{note['id']}", json={"privacy": "shared"})
        assert r.json()["is_shared"] is True
        assert r.json()["published_at"] is not None

        r = await client.patch(f"/api/notes/{note['id']}", json={"is_favorite": True})
        assert r.json()["is_favorite"] is True
        r = await client.patch(f"/api/notes/{note['id']}", json={"is_favorite": None})
        assert r.json()["is_favorite"] is True

        assert (await client.delete(f"/api/notes/{note['id']}")).status_code == 204
        assert (await client.get(f"/api/notes/{note['id']}")).status_code == 404

    async def test_session_notes(self, client, session_id, identity, another_user_id):
        """Test session listings are filtered per note."""
        await client.post("/api/notes", json={"content": "open", "privacy": "shared", "session_id": session_id})
        await client.post("/api/notes", json={"content": "wip", "session_id": session_id})

        identity["user_id"] = str(another_user_id)
        data = (await client.get(f"/api/checkins/{session_id}/notes")).json()

        assert [n["content"] for n in data] == ["open", "[Draft]"]

    async def test_session_notes_forbidden_for_outsider(self, client, session_id, identity, outsider_id):
        """Test outsiders cannot list a couple's session notes."""
        identity["user_id"] = str(outsider_id)
        r = await client.get(f"/api/checkins/{session_id}/notes")

        assert r.status_code == 403

    async def test_empty_content_rejected(self, client):
        """Test request validation."""
        r = await client.post("/api/notes", json={"content": ""})
        assert r.status_code == 422


class TestActionItemRoutes:
    """Test action item endpoints."""

    async def test_create_complete_reopen(self, client, session_id, another_user_id):
        """Test the action item lifecycle."""
        r = await client.post(f"/api/checkins/{session_id}/action-items", json={
            "title": "Plan a date", "assignee_id": str(another_user_id), "priority": "high",
        })
        assert r.status_code == 201
        item = r.json()
        assert item["completed"] is False
        assert item["is_overdue"] is False

        r = await client.post(f"/api/action-items/{item['id']}/complete")
        assert r.json()["completed"] is True

        r = await client.post(f"/api/action-items/{item['id']}/reopen")
        assert r.json()["completed"] is False

        r = await client.patch(f"/api/action-items/{item['id']}", json={"title": "Plan two dates"})
        assert r.json()["title"] == "Plan two dates"

        items = (await client.get(f"/api/checkins/{session_id}/action-items")).json()
        assert [i["id"] for i in items] == [item["id"]]

    async def test_assignee_outside_couple(self, client, session_id, outsider_id):
        """Test assignment is limited to the couple."""
        r = await client.post(f"/api/checkins/{session_id}/action-items", json={
            "title": "x", "assignee_id": str(outsider_id),
        })

        assert r.status_code == 422
        assert r.json()["error_code"] == "VALIDATION_ERROR"
