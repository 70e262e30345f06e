"""
Tests for check-in and statistics routes.
"""
import pytest
from uuid import uuid4


@pytest.fixture
def base(couple):
    return f"/api/couples/{couple.id}/checkins"


async def start(client, base):
    response = await client.post(base)
    assert response.status_code == 201
    return response.json()


class TestCheckinRoutes:
    """Test the check-in flow over HTTP."""

    async def test_start_session(self, client, base, couple):
        """Test starting a session returns the welcome step."""
        data = await start(client, base)

        assert data["couple_id"] == str(couple.id)
        assert data["current_step"] == "welcome"
        assert data["status"] == "in_progress"
        assert data["step_title"] == "Welcome"
        assert data["can_advance"] is True

    async def test_second_start_conflicts(self, client, base):
        """Test single active session per couple."""
        await start(client, base)
        response = await client.post(base)

        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    async def test_full_flow(self, client, base, couple):
        """Test walking every step to completion."""
        s = await start(client, base)
        url = f"{base}/{s['id']}"

        r = await client.post(f"{url}/advance")
        assert r.json()["event"] == "advanced"

        r = await client.post(f"{url}/advance")
        assert r.json()["event"] == "blocked"
        assert r.json()["session"]["current_step"] == "categorySelection"

        r = await client.post(f"{url}/categories", json={"category_id": str(couple.categories[0].id)})
        assert r.status_code == 200
        assert r.json()["session"]["category_ids"] == [str(couple.categories[0].id)]

        events = []
        for _ in range(4):
            events.append((await client.post(f"{url}/advance")).json()["event"])
        assert events == ["advanced", "advanced", "advanced", "completed"]

        r = await client.get(url)
        data = r.json()
        assert data["status"] == "completed"
        assert data["percentage_complete"] == 1.0
        assert data["current_step"] == "completion"

        r = await client.post(f"{url}/advance")
        assert r.status_code == 409
        assert r.json()["error_code"] == "INVALID_STATE"

    async def test_two_topics_with_notes_and_action_item(self, client, base, couple, identity, another_user_id):
        """Test a full evening: two topics, a private and a shared note, one action item."""
        s = await start(client, base)
        url = f"{base}/{s['id']}"

        assert (await client.post(f"{url}/advance")).json()["session"]["current_step"] == "categorySelection"
        picked = [str(couple.categories[0].id), str(couple.categories[2].id)]
        for category_id in picked:
            await client.post(f"{url}/categories", json={"category_id": category_id})
        r = await client.post(f"{url}/advance")
        assert r.json()["session"]["current_step"] == "categoryDiscussion"
        assert r.json()["session"]["category_ids"] == picked

        private = (await client.post("/api/notes", json={
            "content": "I still feel unheard about money", "privacy": "private",
            "session_id": s["id"], "category_id": picked[1],
        })).json()
        shared = (await client.post("/api/notes", json={
            "content": "We agreed to a weekly budget talk", "privacy": "shared",
            "tags": ["budget"], "session_id": s["id"], "category_id": picked[1],
        })).json()
        item = (await client.post(f"/api/checkins/{s['id']}/action-items", json={
            "title": "Set up the budget spreadsheet", "priority": "high",
            "assignee_id": str(another_user_id),
        })).json()
        assert item["priority"] == "high"

        steps = []
        for _ in range(3):
            r = (await client.post(f"{url}/advance")).json()
            steps.append((r["event"], r["session"]["current_step"]))
        assert steps == [
            ("advanced", "reflection"),
            ("advanced", "actionItems"),
            ("completed", "completion"),
        ]

        done = (await client.get(url)).json()
        assert done["status"] == "completed"
        assert done["percentage_complete"] == 1.0
        assert done["completed_at"] is not None
        assert set(done["note_ids"]) == {private["id"], shared["id"]}
        assert done["action_item_ids"] == [item["id"]]

        identity["user_id"] = str(another_user_id)
        seen = {n["id"]: n for n in (await client.get(f"/api/checkins/{s['id']}/notes")).json()}
        assert seen[private["id"]]["content"] == "[Private Note]"
        assert seen[private["id"]]["can_view"] is False
        assert seen[private["id"]]["tags"] == []
        assert seen[shared["id"]]["content"] == "We agreed to a weekly budget talk"
        assert seen[shared["id"]]["can_view"] is True
        assert seen[shared["id"]]["can_edit"] is False
        assert seen[shared["id"]]["tags"] == ["budget"]

        stats = (await client.get(f"/api/couples/{couple.id}/statistics")).json()
        assert stats["completed_sessions"] == 1

    async def test_client_can_hold_the_gate(self, client, base):
        """Test can_proceed=false blocks an ungated step."""
        s = await start(client, base)
        r = await client.post(f"{base}/{s['id']}/advance", json={"can_proceed": False})

        assert r.json()["event"] == "blocked"
        assert r.json()["session"]["current_step"] == "welcome"

    async def test_back_from_welcome(self, client, base):
        """Test back at the first step asks for cancellation."""
        s = await start(client, base)
        r = await client.post(f"{base}/{s['id']}/back")

        assert r.json()["event"] == "cancel_requested"

    async def test_category_from_other_couple(self, client, base, db_session, users):
        """Test categories must belong to the couple."""
        from qc_api.repositories import couple_repo
        other = couple_repo.create_couple(db_session, "Carol", users["carol"])
        s = await start(client, base)

        r = await client.post(f"{base}/{s['id']}/categories", json={"category_id": str(other.categories[0].id)})
        assert r.status_code == 404

    async def test_patch_reflection_and_mood(self, client, base):
        """Test reflection and mood updates."""
        s = await start(client, base)
        r = await client.patch(f"{base}/{s['id']}", json={"reflection": "Calm talk", "mood_rating": 4})

        assert r.status_code == 200
        assert r.json()["session"]["reflection"] == "Calm talk"
        assert r.json()["session"]["mood_rating"] == 4

    async def test_patch_mood_out_of_range(self, client, base):
        """Test mood validation."""
        s = await start(client, base)
        r = await client.patch(f"{base}/{s['id']}", json={"mood_rating": 7})

        assert r.status_code == 422

    async def test_progress(self, client, base):
        """Test the progress payload."""
        s = await start(client, base)
        r = await client.get(f"{base}/{s['id']}/progress")

        data = r.json()
        assert data["current_step_index"] == 0
        assert data["total_steps"] == 6
        assert data["title"] == "Welcome"

    async def test_current_and_abandon(self, client, base):
        """Test current session lookup and abandoning."""
        s = await start(client, base)
        assert (await client.get(f"{base}/current")).json()["id"] == s["id"]

        r = await client.post(f"{base}/{s['id']}/abandon")
        assert r.json()["event"] == "abandoned"
        assert r.json()["session"]["abandoned_at"] is not None

        r = await client.get(f"{base}/current")
        assert r.status_code == 404
        assert r.json()["error_code"] == "NOT_FOUND"

    async def test_list_and_delete(self, client, base):
        """Test listing and deleting sessions."""
        s = await start(client, base)
        assert len((await client.get(base)).json()) == 1

        assert (await client.delete(f"{base}/{s['id']}")).status_code == 204
        assert (await client.get(f"{base}/{s['id']}")).status_code == 404

    async def test_unknown_session(self, client, base):
        """Test unknown ids are 404."""
        r = await client.get(f"{base}/{uuid4()}")
        assert r.status_code == 404

    async def test_outsider_forbidden(self, client, base, identity, outsider_id):
        """Test non-members cannot touch the couple's sessions."""
        identity["user_id"] = str(outsider_id)
        r = await client.post(base)

        assert r.status_code == 403
        assert r.json()["error_code"] == "FORBIDDEN"

    async def test_statistics(self, client, base, couple):
        """Test couple statistics."""
        s = await start(client, base)
        await client.post(f"{base}/{s['id']}/complete")

        r = await client.get(f"/api/couples/{couple.id}/statistics")
        data = r.json()
        assert data["total_sessions"] == 1
        assert data["completed_sessions"] == 1
        assert data["current_streak"] == 1
