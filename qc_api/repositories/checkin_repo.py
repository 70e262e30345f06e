from __future__ import annotations

from typing import Optional, Protocol
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from qc_api.db.models import CheckIn
from qc_api.domain.entities import CheckInSession, SessionStatus
from qc_api.domain.errors import NotFoundError
from qc_api.domain.steps import CheckInStep
from qc_api.repositories.base import committing, reading
from qc_api.utils.time import as_utc


class CheckInRepository(Protocol):
    """Persistence contract used by the session lifecycle manager."""

    def create(self, session: CheckInSession) -> CheckInSession: ...
    def save(self, session: CheckInSession) -> CheckInSession: ...
    def find(self, session_id: UUID) -> CheckInSession: ...
    def find_active(self, couple_id: UUID) -> Optional[CheckInSession]: ...
    def delete(self, session_id: UUID) -> None: ...


def _to_entity(row: CheckIn) -> CheckInSession:
    return CheckInSession(
        id=row.id,
        couple_id=row.couple_id,
        started_at=as_utc(row.started_at),
        completed_at=as_utc(row.completed_at),
        abandoned_at=as_utc(row.abandoned_at),
        duration_seconds=row.duration_seconds,
        current_step=CheckInStep(row.current_step),
        completed_steps=list(row.completed_steps or []),
        status=SessionStatus(row.status),
        percentage_complete=row.percentage_complete,
        category_ids=[UUID(str(c)) for c in (row.category_ids or [])],
        note_ids=[n.id for n in row.notes],
        action_item_ids=[a.id for a in row.action_items],
        mood_rating=row.mood_rating,
        reflection=row.reflection,
        step_started_at=as_utc(row.step_started_at),
        step_durations=dict(row.step_durations or {}),
    )


def _apply(row: CheckIn, session: CheckInSession) -> None:
    # note_ids / action_item_ids are derived from the child tables
    row.couple_id = session.couple_id
    row.status = SessionStatus(session.status).value
    row.current_step = CheckInStep(session.current_step).value
    row.completed_steps = list(session.completed_steps)
    row.percentage_complete = session.percentage_complete
    row.category_ids = [str(c) for c in session.category_ids]
    row.step_durations = dict(session.step_durations)
    row.mood_rating = session.mood_rating
    row.reflection = session.reflection
    row.started_at = session.started_at
    row.step_started_at = session.step_started_at
    row.completed_at = session.completed_at
    row.abandoned_at = session.abandoned_at
    row.duration_seconds = session.duration_seconds


class SqlAlchemyCheckInRepository:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, session_id: UUID) -> Optional[CheckIn]:
        q = (
            select(CheckIn)
            .options(selectinload(CheckIn.notes), selectinload(CheckIn.action_items))
            .where(CheckIn.id == session_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(q).scalar_one_or_none()

    def create(self, session: CheckInSession) -> CheckInSession:
        row = CheckIn(id=session.id)
        _apply(row, session)
        with committing(self.db, "create check-in session"):
            self.db.add(row)
        return self.find(session.id)

    def save(self, session: CheckInSession) -> CheckInSession:
        with committing(self.db, "save check-in session"):
            row = self._load(session.id)
            if row is None:
                raise NotFoundError("CheckInSession", session.id)
            _apply(row, session)
        return self.find(session.id)

    def find(self, session_id: UUID) -> CheckInSession:
        with reading(self.db, "load check-in session"):
            row = self._load(session_id)
        if row is None:
            raise NotFoundError("CheckInSession", session_id)
        return _to_entity(row)

    def find_active(self, couple_id: UUID) -> Optional[CheckInSession]:
        q = (
            select(CheckIn.id)
            .where(CheckIn.couple_id == couple_id, CheckIn.status == SessionStatus.IN_PROGRESS.value)
            .order_by(CheckIn.started_at.desc())
            .limit(1)
        )
        with reading(self.db, "look up active check-in session"):
            session_id = self.db.execute(q).scalar_one_or_none()
        if session_id is None:
            return None
        return self.find(session_id)

    def delete(self, session_id: UUID) -> None:
        with committing(self.db, "delete check-in session"):
            row = self.db.get(CheckIn, session_id)
            if row is None:
                raise NotFoundError("CheckInSession", session_id)
            self.db.delete(row)

    def list_for_couple(self, couple_id: UUID, *, limit: int = 20, offset: int = 0) -> list[CheckInSession]:
        q = (
            select(CheckIn)
            .options(selectinload(CheckIn.notes), selectinload(CheckIn.action_items))
            .where(CheckIn.couple_id == couple_id)
            .order_by(CheckIn.started_at.desc())
            .limit(limit)
            .offset(offset)
        )
        with reading(self.db, "list check-in sessions"):
            rows = self.db.execute(q).scalars().all()
        return [_to_entity(r) for r in rows]

    def recent_completed(self, couple_id: UUID, limit: int = 10) -> list[CheckInSession]:
        q = (
            select(CheckIn)
            .options(selectinload(CheckIn.notes), selectinload(CheckIn.action_items))
            .where(CheckIn.couple_id == couple_id, CheckIn.status == SessionStatus.COMPLETED.value)
            .order_by(CheckIn.completed_at.desc())
            .limit(limit)
        )
        with reading(self.db, "list completed check-in sessions"):
            rows = self.db.execute(q).scalars().all()
        return [_to_entity(r) for r in rows]

    def count_by_status(self, couple_id: UUID) -> dict[str, int]:
        q = (
            select(CheckIn.status, func.count(CheckIn.id))
            .where(CheckIn.couple_id == couple_id)
            .group_by(CheckIn.status)
        )
        with reading(self.db, "count check-in sessions"):
            rows = self.db.execute(q).all()
        counts = {s.value: 0 for s in SessionStatus}
        counts.update({status: n for status, n in rows})
        return counts
