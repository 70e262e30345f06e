"""
Unit tests for qc_api.services.notes and qc_api.services.action_items.
"""
import pytest
from datetime import date
from uuid import uuid4
from qc_api.domain.entities import PrivacyLevel, Priority
from qc_api.domain.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from qc_api.services.action_items import ActionItemService
from qc_api.services.notes import MAX_TAGS, NoteService


@pytest.fixture
def notes(db_session, manager):
    return NoteService(db_session, manager)


@pytest.fixture
def items(db_session, manager):
    return ActionItemService(db_session, manager)


@pytest.fixture
def session(manager, couple):
    return manager.start(couple.id)


class TestNoteService:
    """Test note authoring and privacy-aware reads."""

    def test_create_standalone_draft(self, notes, users):
        """Test notes default to draft."""
        note = notes.create(users["alice"].id, "First thoughts", tags=[" a ", "a", "b", ""])

        assert note.privacy is PrivacyLevel.DRAFT
        assert note.tags == ["a", "b"]
        assert note.session_id is None

    def test_create_in_session(self, notes, session, users, manager):
        """Test a session note is attached to the session."""
        note = notes.create(users["bob"].id, "Loved this", privacy=PrivacyLevel.SHARED, session_id=session.id)

        assert note.session_id == session.id
        assert note.first_shared_at is not None
        assert manager.repo.find(session.id).note_ids == [note.id]

    def test_outsider_cannot_add_to_session(self, notes, session, users):
        """Test only couple members write into a session."""
        with pytest.raises(AuthorizationError):
            notes.create(users["carol"].id, "Hi there", session_id=session.id)

    def test_note_on_finished_session_rejected(self, notes, session, users, manager):
        """Test completed sessions take no new notes."""
        manager.complete(session)

        with pytest.raises(InvalidStateError):
            notes.create(users["alice"].id, "Too late", session_id=session.id)

    def test_empty_content_rejected(self, notes, users):
        """Test blank notes are refused."""
        with pytest.raises(ValidationError):
            notes.create(users["alice"].id, "   ")

    def test_too_many_tags_rejected(self, notes, users):
        """Test the tag cap."""
        with pytest.raises(ValidationError):
            notes.create(users["alice"].id, "tags", tags=[f"t{i}" for i in range(MAX_TAGS + 1)])

    def test_partner_view_of_private_note(self, notes, couple, users):
        """Test the partner gets the masked projection."""
        note = notes.create(users["alice"].id, "Secret", privacy=PrivacyLevel.PRIVATE)
        view = notes.view(note, users["bob"].id)

        assert view.content == "[Private Note]"
        assert view.author_name == "Alice"
        assert view.can_view is False

    def test_partner_view_of_shared_note(self, notes, couple, users):
        """Test the partner reads shared notes."""
        note = notes.create(users["alice"].id, "Open book", privacy=PrivacyLevel.SHARED, tags=["x"])
        view = notes.view(note, users["bob"].id)

        assert view.content == "Open book"
        assert view.tags == ["x"]
        assert view.can_edit is False

    def test_outside_policy_mask(self, db_session, manager, couple, users):
        """Test the mask policy hides shared notes from outsiders."""
        svc = NoteService(db_session, manager, outside_policy="mask")
        note = svc.create(users["alice"].id, "Open book", privacy=PrivacyLevel.SHARED)

        assert svc.view(note, users["carol"].id).content == "[Private Note]"

    def test_update_by_author(self, notes, users):
        """Test the author can edit and share."""
        note = notes.create(users["alice"].id, "v1")
        updated = notes.update(note.id, users["alice"].id, content="v2", privacy=PrivacyLevel.SHARED)

        assert updated.content == "v2"
        assert updated.privacy is PrivacyLevel.SHARED
        assert updated.published_at is not None

    def test_null_favorite_keeps_flag(self, notes, users):
        """Test an explicit null is_favorite leaves the favourite flag alone."""
        note = notes.create(users["alice"].id, "keep me", is_favorite=True)
        updated = notes.update(note.id, users["alice"].id, is_favorite=None, content="still keep me")

        assert updated.is_favorite is True
        assert updated.content == "still keep me"

    def test_update_by_partner_rejected(self, notes, couple, users):
        """Test only the author can edit, even shared notes."""
        note = notes.create(users["alice"].id, "mine", privacy=PrivacyLevel.SHARED)

        with pytest.raises(AuthorizationError):
            notes.update(note.id, users["bob"].id, content="ours")

    def test_update_unknown_field_rejected(self, notes, users):
        """Test author_id cannot be rewritten."""
        note = notes.create(users["alice"].id, "mine")

        with pytest.raises(ValidationError):
            notes.update(note.id, users["alice"].id, author_id=users["bob"].id)

    def test_delete(self, notes, users):
        """Test the author can delete."""
        note = notes.create(users["alice"].id, "bye")
        notes.delete(note.id, users["alice"].id)

        with pytest.raises(NotFoundError):
            notes.get(note.id)

    def test_views_for_session(self, notes, session, users):
        """Test session listings apply privacy per note."""
        notes.create(users["alice"].id, "shared", privacy=PrivacyLevel.SHARED, session_id=session.id)
        notes.create(users["alice"].id, "draft", session_id=session.id)

        contents = [v.content for v in notes.views_for_session(session.id, users["bob"].id)]
        assert contents == ["shared", "[Draft]"]


class TestActionItemService:
    """Test action items attached to sessions."""

    def test_create(self, items, session, users, manager):
        """Test a new item lands on the session."""
        item = items.create(
            session.id, users["alice"].id, " Plan trip ",
            assignee_id=users["bob"].id, due_date=date(2030, 1, 1), priority=Priority.HIGH,
        )

        assert item.title == "Plan trip"
        assert item.priority is Priority.HIGH
        assert item.created_by_id == users["alice"].id
        assert manager.repo.find(session.id).action_item_ids == [item.id]

    def test_assignee_must_be_member(self, items, session, users):
        """Test items cannot be assigned outside the couple."""
        with pytest.raises(ValidationError):
            items.create(session.id, users["alice"].id, "x", assignee_id=users["carol"].id)

    def test_outsider_rejected(self, items, session, users):
        """Test outsiders cannot add items."""
        with pytest.raises(AuthorizationError):
            items.create(session.id, users["carol"].id, "x")

    def test_complete_and_reopen(self, items, session, users):
        """Test completion toggles."""
        item = items.create(session.id, users["alice"].id, "Walk")

        done = items.complete(item.id, users["bob"].id)
        assert done.completed is True
        assert done.completed_by_id == users["bob"].id

        reopened = items.reopen(item.id, users["alice"].id)
        assert reopened.completed is False

    def test_complete_after_session_finished(self, items, session, users, manager):
        """Test items stay actionable once the check-in is over."""
        item = items.create(session.id, users["alice"].id, "Follow up")
        manager.complete(session)

        assert items.complete(item.id, users["alice"].id).completed is True

    def test_update(self, items, session, users):
        """Test partial updates."""
        item = items.create(session.id, users["alice"].id, "Walk")
        updated = items.update(item.id, users["alice"].id, priority=Priority.LOW, description="30 minutes")

        assert updated.priority is Priority.LOW
        assert updated.description == "30 minutes"
        assert updated.title == "Walk"

    def test_list_requires_membership(self, items, session, users):
        """Test outsiders cannot list items."""
        with pytest.raises(AuthorizationError):
            items.list_for_session(session.id, users["carol"].id)

    def test_unknown_session(self, items, users):
        """Test a missing session is a NotFoundError."""
        with pytest.raises(NotFoundError):
            items.create(uuid4(), users["alice"].id, "x")
