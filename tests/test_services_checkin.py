"""
Unit tests for qc_api.services.checkin module.
"""
import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4
from unittest.mock import Mock
from sqlalchemy.exc import OperationalError
from qc_api.domain.entities import CheckInSession, Note, ActionItem, SessionStatus
from qc_api.domain.errors import ConflictError, InvalidStateError, PersistenceError, ValidationError
from qc_api.domain.steps import CheckInStep
from qc_api.db.models import Couple
from qc_api.services.checkin import SessionEvent, SessionLifecycleManager, progress_view
from qc_api.services.stats import CoupleStatsObserver


class StepClock:
    """Deterministic clock that moves forward a fixed amount per call."""

    def __init__(self, step_seconds=60):
        self.now = datetime(2024, 5, 1, 19, 0, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step_seconds)

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


def run_to_completion(manager, session, category_id):
    manager.advance(session)
    manager.select_category(session, category_id)
    result = None
    for _ in range(4):
        result = manager.advance(session)
    return result


class TestStart:
    """Test session creation."""

    def test_start_creates_welcome_session(self, manager, couple):
        """Test a new session is persisted at the first step."""
        s = manager.start(couple.id)

        assert s.current_step is CheckInStep.WELCOME
        assert s.status is SessionStatus.IN_PROGRESS
        assert s.percentage_complete == pytest.approx(1 / 6)
        assert manager.repo.find(s.id).id == s.id

    def test_second_active_session_conflicts(self, manager, couple):
        """Test only one in-progress session per couple by default."""
        manager.start(couple.id)

        with pytest.raises(ConflictError):
            manager.start(couple.id)

    def test_multiple_sessions_when_not_enforced(self, checkin_repo, couple):
        """Test single-active policy can be switched off."""
        m = SessionLifecycleManager(checkin_repo, single_active=False)
        first = m.start(couple.id)
        second = m.start(couple.id)

        assert first.id != second.id

    def test_new_session_after_previous_finished(self, manager, couple):
        """Test abandoning frees the couple to start again."""
        first = manager.start(couple.id)
        manager.abandon(first)

        assert manager.start(couple.id).id != first.id


class TestAdvance:
    """Test forward transitions."""

    def test_advance_from_welcome(self, manager, couple):
        """Test welcome moves to category selection."""
        s = manager.start(couple.id)
        result = manager.advance(s)

        assert result.event is SessionEvent.ADVANCED
        assert result.changed is True
        assert s.current_step is CheckInStep.CATEGORY_SELECTION
        assert s.completed_steps == ["welcome"]
        assert s.percentage_complete == pytest.approx(2 / 6)

    def test_blocked_without_category(self, manager, couple):
        """Test category selection gates on a chosen category."""
        s = manager.start(couple.id)
        manager.advance(s)
        result = manager.advance(s)

        assert result.event is SessionEvent.BLOCKED
        assert result.changed is False
        assert s.current_step is CheckInStep.CATEGORY_SELECTION
        assert manager.repo.find(s.id).current_step is CheckInStep.CATEGORY_SELECTION

    def test_caller_predicate_overrides_default(self, manager, couple):
        """Test a caller-supplied predicate decides."""
        s = manager.start(couple.id)

        assert manager.advance(s, lambda _s: False).event is SessionEvent.BLOCKED
        assert s.current_step is CheckInStep.WELCOME

    def test_full_flow_completes(self, manager, couple):
        """Test five advances reach completion."""
        s = manager.start(couple.id)
        result = run_to_completion(manager, s, couple.categories[0].id)

        assert result.event is SessionEvent.COMPLETED
        assert s.status is SessionStatus.COMPLETED
        assert s.current_step is CheckInStep.COMPLETION
        assert s.percentage_complete == 1.0
        assert s.completed_at is not None
        assert s.duration_seconds is not None
        assert s.completed_steps == [
            "welcome", "categorySelection", "categoryDiscussion", "reflection", "actionItems",
        ]

    def test_advance_after_completion_rejected(self, manager, couple):
        """Test a completed session refuses further advances."""
        s = manager.start(couple.id)
        run_to_completion(manager, s, couple.categories[0].id)
        snapshot = (s.status, s.current_step, list(s.completed_steps), s.completed_at)

        with pytest.raises(InvalidStateError):
            manager.advance(s)

        assert (s.status, s.current_step, list(s.completed_steps), s.completed_at) == snapshot

    def test_step_durations_recorded(self, checkin_repo, couple):
        """Test time spent per step accumulates."""
        m = SessionLifecycleManager(checkin_repo, clock=StepClock(step_seconds=90))
        s = m.start(couple.id)
        m.advance(s)

        assert s.step_durations == {"welcome": 90}


class TestGoBack:
    """Test backward transitions."""

    def test_back_from_welcome_requests_cancel(self, manager, couple):
        """Test going back from the first step asks to cancel."""
        s = manager.start(couple.id)
        result = manager.go_back(s)

        assert result.event is SessionEvent.CANCEL_REQUESTED
        assert result.changed is False
        assert s.current_step is CheckInStep.WELCOME
        assert s.status is SessionStatus.IN_PROGRESS

    def test_back_reopens_previous_step(self, manager, couple):
        """Test the previous step is no longer counted complete."""
        s = manager.start(couple.id)
        manager.advance(s)
        manager.select_category(s, couple.categories[0].id)
        manager.advance(s)

        result = manager.go_back(s)

        assert result.event is SessionEvent.WENT_BACK
        assert s.current_step is CheckInStep.CATEGORY_SELECTION
        assert s.completed_steps == ["welcome"]
        assert s.percentage_complete == pytest.approx(2 / 6)


class TestCompleteAndAbandon:
    """Test terminal transitions."""

    def test_complete_early(self, manager, couple):
        """Test complete() finishes from any step."""
        s = manager.start(couple.id)
        result = manager.complete(s)

        assert result.event is SessionEvent.COMPLETED
        assert s.current_step is CheckInStep.COMPLETION
        assert s.percentage_complete == 1.0
        assert "welcome" in s.completed_steps

    def test_completion_updates_couple(self, manager, couple, db_session):
        """Test the stats observer refreshes the couple counters."""
        s = manager.start(couple.id)
        manager.complete(s)

        row = db_session.get(Couple, couple.id)
        assert row.total_check_ins == 1
        assert row.current_streak == 1
        assert row.last_check_in_at is not None

    def test_observers_notified_once(self, checkin_repo, couple):
        """Test observers see each terminal event exactly once."""
        observer = Mock()
        m = SessionLifecycleManager(checkin_repo, observers=[observer])
        done = m.start(couple.id)
        m.complete(done)
        dropped = m.start(couple.id)
        m.abandon(dropped)
        m.abandon(dropped)

        observer.on_complete.assert_called_once_with(done)
        observer.on_cancel.assert_called_once_with(dropped)

    def test_abandon(self, manager, couple):
        """Test abandoning stamps abandoned_at."""
        s = manager.start(couple.id)
        result = manager.abandon(s)

        assert result.event is SessionEvent.ABANDONED
        assert s.status is SessionStatus.ABANDONED
        assert s.abandoned_at is not None
        assert s.completed_at is None

    def test_abandon_is_idempotent(self, manager, couple):
        """Test a second abandon is a no-op."""
        s = manager.start(couple.id)
        manager.abandon(s)
        stamp = s.abandoned_at

        assert manager.abandon(s).event is SessionEvent.ABANDONED
        assert s.abandoned_at == stamp

    def test_abandon_completed_rejected(self, manager, couple):
        """Test a completed session cannot be abandoned."""
        s = manager.start(couple.id)
        manager.complete(s)

        with pytest.raises(InvalidStateError):
            manager.abandon(s)
        assert s.status is SessionStatus.COMPLETED

    @pytest.mark.parametrize("operation", ["advance", "go_back", "complete"])
    def test_operations_on_abandoned_rejected(self, manager, couple, operation):
        """Test abandoned sessions reject every transition."""
        s = manager.start(couple.id)
        manager.abandon(s)

        with pytest.raises(InvalidStateError):
            getattr(manager, operation)(s)
        assert s.status is SessionStatus.ABANDONED


class TestContent:
    """Test categories, reflection, mood and attachments."""

    def test_select_and_deselect_category(self, manager, couple):
        """Test category selection is a set."""
        s = manager.start(couple.id)
        cat = couple.categories[0].id
        manager.select_category(s, cat)
        manager.select_category(s, cat)

        assert s.category_ids == [cat]
        manager.deselect_category(s, cat)
        assert s.category_ids == []

    def test_reflection_and_mood(self, manager, couple):
        """Test reflection is trimmed and mood stored."""
        s = manager.start(couple.id)
        manager.set_reflection(s, "  We listened better  ")
        manager.set_mood(s, 4)

        stored = manager.repo.find(s.id)
        assert stored.reflection == "We listened better"
        assert stored.mood_rating == 4

    def test_mood_out_of_range(self, manager, couple):
        """Test mood is limited to 1..5."""
        s = manager.start(couple.id)

        with pytest.raises(ValidationError):
            manager.set_mood(s, 6)
        assert s.mood_rating is None

    def test_attach_note_and_action_item(self, manager, couple, users):
        """Test attachments show up on the session."""
        s = manager.start(couple.id)
        note = manager.attach_note(s, Note(content="Proud of us", author_id=users["alice"].id))
        item = manager.add_action_item(s, ActionItem(session_id=s.id, title="Plan budget"))

        assert note.session_id == s.id
        assert s.note_ids == [note.id]
        assert s.action_item_ids == [item.id]

    def test_attach_to_completed_rejected(self, manager, couple, users):
        """Test finished sessions take no new notes."""
        s = manager.start(couple.id)
        manager.complete(s)

        with pytest.raises(InvalidStateError):
            manager.attach_note(s, Note(content="late", author_id=users["alice"].id))


class TestPersistenceFailure:
    """Test the session is untouched when a write fails."""

    def test_failed_save_leaves_session_unchanged(self):
        """Test copy-on-write around repo.save."""
        repo = Mock()
        repo.save.side_effect = PersistenceError("Could not save check-in session")
        m = SessionLifecycleManager(repo)
        s = CheckInSession(couple_id=uuid4())

        with pytest.raises(PersistenceError):
            m.advance(s)

        assert s.current_step is CheckInStep.WELCOME
        assert s.completed_steps == []
        assert s.step_durations == {}

    def test_failed_complete_skips_observers(self):
        """Test observers are not told about a completion that was not stored."""
        repo = Mock()
        repo.save.side_effect = PersistenceError()
        observer = Mock()
        m = SessionLifecycleManager(repo, observers=[observer])
        s = CheckInSession(couple_id=uuid4())

        with pytest.raises(PersistenceError):
            m.complete(s)

        assert s.status is SessionStatus.IN_PROGRESS
        observer.on_complete.assert_not_called()

    def test_failing_observer_does_not_undo_completion(self, checkin_repo, couple):
        """Test the final advance still reports completion when an observer raises."""
        broken = Mock()
        broken.on_complete.side_effect = PersistenceError("Could not update couple statistics")
        witness = Mock()
        m = SessionLifecycleManager(checkin_repo, observers=[broken, witness])
        s = m.start(couple.id)

        result = run_to_completion(m, s, couple.categories[0].id)

        assert result.event is SessionEvent.COMPLETED
        assert s.status is SessionStatus.COMPLETED
        assert checkin_repo.find(s.id).status is SessionStatus.COMPLETED
        witness.on_complete.assert_called_once_with(s)
        with pytest.raises(InvalidStateError):
            m.advance(s)

    def test_failing_stats_update_is_logged(self, checkin_repo, couple, caplog):
        """Test a storage failure inside the stats observer is logged, not raised."""
        stats_db = Mock()
        stats_db.execute.side_effect = OperationalError("SELECT check_ins", {}, Exception("database is locked"))
        m = SessionLifecycleManager(checkin_repo, observers=[CoupleStatsObserver(stats_db)])
        s = m.start(couple.id)

        with caplog.at_level("ERROR", logger="qc_api.services.checkin"):
            result = m.complete(s)

        assert result.event is SessionEvent.COMPLETED
        assert checkin_repo.find(s.id).status is SessionStatus.COMPLETED
        assert "CoupleStatsObserver failed in on_complete" in caplog.text

    def test_failing_cancel_observer(self, checkin_repo, couple):
        """Test abandon still succeeds when an observer raises."""
        broken = Mock()
        broken.on_cancel.side_effect = RuntimeError("broadcast unavailable")
        m = SessionLifecycleManager(checkin_repo, observers=[broken])
        s = m.start(couple.id)

        assert m.abandon(s).event is SessionEvent.ABANDONED
        assert checkin_repo.find(s.id).status is SessionStatus.ABANDONED


class TestProgressView:
    """Test the polled progress payload."""

    def test_progress_view(self, manager, couple):
        """Test index, title and counts."""
        s = manager.start(couple.id)
        manager.advance(s)
        manager.select_category(s, couple.categories[0].id)
        manager.advance(s)

        view = progress_view(s)

        assert view["current_step"] == "categoryDiscussion"
        assert view["current_step_index"] == 2
        assert view["total_steps"] == 6
        assert view["percentage"] == pytest.approx(0.5)
        assert view["title"] == "Discuss"
        assert view["categories_selected"] == 1
        assert view["notes_count"] == 0
