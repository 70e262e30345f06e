"""
Check-in session lifecycle.

``SessionLifecycleManager`` is the only code that mutates a session. Every
mutation is applied to a working copy, written through the repository and
copied back onto the caller's object only once the write succeeded, so a
``PersistenceError`` leaves the caller's session as it was.

Observers run after the terminal write has committed. Their failures are
logged and never change the transition result.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Protocol
from uuid import UUID

from qc_api.domain.entities import ActionItem, CheckInSession, Note, SessionStatus
from qc_api.domain.errors import ConflictError, InvalidStateError, ValidationError
from qc_api.domain.steps import (
    TERMINAL_STEP,
    TOTAL_STEPS,
    CheckInStep,
    next_step,
    position,
    previous_step,
    progress_for,
)
from qc_api.repositories.checkin_repo import CheckInRepository
from qc_api.utils.time import humanize_delta, seconds_between, utcnow

logger = logging.getLogger(__name__)

MIN_MOOD = 1
MAX_MOOD = 5

CanProceed = Callable[[CheckInSession], bool]


class SessionEvent(str, Enum):
    STARTED = "started"
    ADVANCED = "advanced"
    BLOCKED = "blocked"
    WENT_BACK = "went_back"
    CANCEL_REQUESTED = "cancel_requested"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    UPDATED = "updated"


@dataclass(slots=True)
class TransitionResult:
    session: CheckInSession
    event: SessionEvent

    @property
    def changed(self) -> bool:
        return self.event not in (SessionEvent.BLOCKED, SessionEvent.CANCEL_REQUESTED)


class SessionObserver(Protocol):
    """Notified once when a session reaches completion or is abandoned."""

    def on_complete(self, session: CheckInSession) -> None: ...
    def on_cancel(self, session: CheckInSession) -> None: ...


def _copy_into(target: CheckInSession, source: CheckInSession) -> None:
    for f in fields(source):
        setattr(target, f.name, getattr(source, f.name))


class SessionLifecycleManager:
    def __init__(
        self,
        repo: CheckInRepository,
        *,
        note_repo: Any = None,
        action_item_repo: Any = None,
        observers: Iterable[SessionObserver] = (),
        single_active: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = repo
        self.note_repo = note_repo
        self.action_item_repo = action_item_repo
        self.observers = list(observers)
        self.single_active = single_active
        self.clock = clock

    # -- creation ---------------------------------------------------------

    def start(self, couple_id: UUID) -> CheckInSession:
        if self.single_active:
            active = self.repo.find_active(couple_id)
            if active is not None:
                raise ConflictError(f"Couple {couple_id} already has an active check-in session ({active.id})")
        now = self.clock()
        session = CheckInSession(couple_id=couple_id, started_at=now, step_started_at=now)
        created = self.repo.create(session)
        logger.info("Started check-in session %s for couple %s", created.id, couple_id)
        return created

    # -- step transitions -------------------------------------------------

    def advance(self, session: CheckInSession, can_proceed: Optional[CanProceed] = None) -> TransitionResult:
        self._require_open(session, "advance")
        allowed = can_proceed(session) if can_proceed is not None else session.can_advance
        target = next_step(session.current_step)
        if not allowed or target is None:
            logger.debug("Session %s cannot leave step %s yet", session.id, session.current_step.value)
            return TransitionResult(session, SessionEvent.BLOCKED)

        now = self.clock()

        def mutate(draft: CheckInSession) -> None:
            self._leave_step(draft, now)
            draft.current_step = target
            draft.percentage_complete = progress_for(target)
            if target is TERMINAL_STEP:
                self._finish(draft, now)

        self._write(session, mutate)
        if session.status is SessionStatus.COMPLETED:
            logger.info("Check-in session %s completed", session.id)
            self._notify_complete(session)
            return TransitionResult(session, SessionEvent.COMPLETED)
        logger.info("Check-in session %s advanced to %s", session.id, target.value)
        return TransitionResult(session, SessionEvent.ADVANCED)

    def go_back(self, session: CheckInSession) -> TransitionResult:
        self._require_open(session, "go back in")
        target = previous_step(session.current_step)
        if target is None:
            # Leaving from the first step is a cancellation the caller must confirm
            return TransitionResult(session, SessionEvent.CANCEL_REQUESTED)

        now = self.clock()

        def mutate(draft: CheckInSession) -> None:
            self._record_step_time(draft, now)
            if target.value in draft.completed_steps:
                draft.completed_steps.remove(target.value)
            draft.current_step = target
            draft.percentage_complete = progress_for(target)

        self._write(session, mutate)
        logger.info("Check-in session %s went back to %s", session.id, target.value)
        return TransitionResult(session, SessionEvent.WENT_BACK)

    def complete(self, session: CheckInSession) -> TransitionResult:
        self._require_open(session, "complete")
        now = self.clock()

        def mutate(draft: CheckInSession) -> None:
            if draft.current_step is not TERMINAL_STEP:
                self._leave_step(draft, now)
            self._finish(draft, now)

        self._write(session, mutate)
        logger.info("Check-in session %s completed", session.id)
        self._notify_complete(session)
        return TransitionResult(session, SessionEvent.COMPLETED)

    def abandon(self, session: CheckInSession) -> TransitionResult:
        if session.status is SessionStatus.ABANDONED:
            return TransitionResult(session, SessionEvent.ABANDONED)
        self._require_open(session, "abandon")
        now = self.clock()

        def mutate(draft: CheckInSession) -> None:
            self._record_step_time(draft, now)
            draft.status = SessionStatus.ABANDONED
            draft.abandoned_at = now

        self._write(session, mutate)
        logger.info("Check-in session %s abandoned at step %s", session.id, session.current_step.value)
        self._notify("on_cancel", session)
        return TransitionResult(session, SessionEvent.ABANDONED)

    # -- content ----------------------------------------------------------

    def select_category(self, session: CheckInSession, category_id: UUID) -> TransitionResult:
        self._require_open(session, "select a category for")
        if category_id in session.category_ids:
            return TransitionResult(session, SessionEvent.UPDATED)
        self._write(session, lambda d: d.category_ids.append(category_id))
        return TransitionResult(session, SessionEvent.UPDATED)

    def deselect_category(self, session: CheckInSession, category_id: UUID) -> TransitionResult:
        self._require_open(session, "deselect a category for")
        if category_id not in session.category_ids:
            return TransitionResult(session, SessionEvent.UPDATED)
        self._write(session, lambda d: d.category_ids.remove(category_id))
        return TransitionResult(session, SessionEvent.UPDATED)

    def set_reflection(self, session: CheckInSession, reflection: Optional[str]) -> TransitionResult:
        self._require_open(session, "edit the reflection of")
        text = reflection.strip() if reflection else None

        def mutate(draft: CheckInSession) -> None:
            draft.reflection = text or None

        self._write(session, mutate)
        return TransitionResult(session, SessionEvent.UPDATED)

    def set_mood(self, session: CheckInSession, rating: Optional[int]) -> TransitionResult:
        self._require_open(session, "rate the mood of")
        if rating is not None and not MIN_MOOD <= rating <= MAX_MOOD:
            raise ValidationError(f"Mood rating must be between {MIN_MOOD} and {MAX_MOOD}")

        def mutate(draft: CheckInSession) -> None:
            draft.mood_rating = rating

        self._write(session, mutate)
        return TransitionResult(session, SessionEvent.UPDATED)

    def attach_note(self, session: CheckInSession, note: Note) -> Note:
        self._require_open(session, "attach a note to")
        if self.note_repo is None:
            raise RuntimeError("No note repository configured")
        saved = self.note_repo.create(replace(note, session_id=session.id))
        _copy_into(session, self.repo.find(session.id))
        return saved

    def add_action_item(self, session: CheckInSession, item: ActionItem) -> ActionItem:
        self._require_open(session, "add an action item to")
        if self.action_item_repo is None:
            raise RuntimeError("No action item repository configured")
        saved = self.action_item_repo.create(replace(item, session_id=session.id))
        _copy_into(session, self.repo.find(session.id))
        return saved

    # -- internals --------------------------------------------------------

    def _require_open(self, session: CheckInSession, action: str) -> None:
        if session.is_terminal:
            logger.warning(
                "Rejected attempt to %s check-in session %s with status %s",
                action, session.id, session.status.value,
            )
            raise InvalidStateError(f"Cannot {action} a {session.status.value} check-in session")

    def _write(self, session: CheckInSession, mutate: Callable[[CheckInSession], None]) -> CheckInSession:
        draft = copy.deepcopy(session)
        mutate(draft)
        saved = self.repo.save(draft)
        _copy_into(session, saved)
        return session

    def _record_step_time(self, draft: CheckInSession, now: datetime) -> None:
        key = draft.current_step.value
        spent = seconds_between(draft.step_started_at or draft.started_at, now)
        draft.step_durations[key] = draft.step_durations.get(key, 0) + spent
        draft.step_started_at = now

    def _leave_step(self, draft: CheckInSession, now: datetime) -> None:
        self._record_step_time(draft, now)
        if draft.current_step.value not in draft.completed_steps:
            draft.completed_steps.append(draft.current_step.value)

    def _finish(self, draft: CheckInSession, now: datetime) -> None:
        draft.status = SessionStatus.COMPLETED
        draft.completed_at = now
        draft.current_step = TERMINAL_STEP
        draft.duration_seconds = seconds_between(draft.started_at, now)
        draft.percentage_complete = 1.0
        draft.step_started_at = now

    def _notify_complete(self, session: CheckInSession) -> None:
        self._notify("on_complete", session)

    def _notify(self, hook: str, session: CheckInSession) -> None:
        # The session is already committed; an observer failure must not
        # turn a finished transition into an error for the caller.
        for obs in self.observers:
            try:
                getattr(obs, hook)(session)
            except Exception:
                logger.exception(
                    "Observer %s failed in %s for check-in session %s",
                    type(obs).__name__, hook, session.id,
                )


def progress_view(session: CheckInSession, *, now: Optional[datetime] = None) -> dict:
    """
    What the presentation layer polls while rendering the flow.
    """
    step = CheckInStep(session.current_step)
    in_step = 0
    if not session.is_terminal and session.step_started_at is not None:
        in_step = seconds_between(session.step_started_at, now)
    return {
        "session_id": session.id,
        "status": session.status.value,
        "current_step": step.value,
        "current_step_index": position(step),
        "total_steps": TOTAL_STEPS,
        "percentage": session.percentage_complete,
        "title": session.step_title,
        "description": session.step_description,
        "can_advance": session.can_advance,
        "completed_steps": list(session.completed_steps),
        "step_durations": dict(session.step_durations),
        "time_in_current_step": humanize_delta(in_step),
        "categories_selected": len(session.category_ids),
        "notes_count": len(session.note_ids),
        "action_items_count": len(session.action_item_ids),
    }
