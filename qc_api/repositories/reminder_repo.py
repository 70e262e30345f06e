from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from qc_api.db.models import Reminder as ReminderRow
from qc_api.domain.entities import Priority, Reminder, ReminderCategory, ReminderFrequency
from qc_api.domain.errors import NotFoundError
from qc_api.repositories.base import committing, reading
from qc_api.utils.time import as_utc


def _to_entity(row: ReminderRow) -> Reminder:
    return Reminder(
        id=row.id,
        title=row.title,
        message=row.message,
        created_by_id=row.created_by_id,
        assigned_to_id=row.assigned_to_id,
        couple_id=row.couple_id,
        related_check_in_id=row.related_check_in_id,
        category=ReminderCategory(row.category),
        frequency=ReminderFrequency(row.frequency),
        priority=Priority(row.priority),
        scheduled_for=as_utc(row.scheduled_for),
        is_active=bool(row.is_active),
        is_snoozed=bool(row.is_snoozed),
        snooze_until=as_utc(row.snooze_until),
        completed_at=as_utc(row.completed_at),
        completion_count=row.completion_count or 0,
        skip_count=row.skip_count or 0,
        snooze_count=row.snooze_count or 0,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _apply(row: ReminderRow, reminder: Reminder) -> None:
    row.title = reminder.title
    row.message = reminder.message
    row.created_by_id = reminder.created_by_id
    row.assigned_to_id = reminder.assigned_to_id
    row.couple_id = reminder.couple_id
    row.related_check_in_id = reminder.related_check_in_id
    row.category = ReminderCategory(reminder.category).value
    row.frequency = ReminderFrequency(reminder.frequency).value
    row.priority = Priority(reminder.priority).value
    row.scheduled_for = reminder.scheduled_for
    row.is_active = reminder.is_active
    row.is_snoozed = reminder.is_snoozed
    row.snooze_until = reminder.snooze_until
    row.completed_at = reminder.completed_at
    row.completion_count = reminder.completion_count
    row.skip_count = reminder.skip_count
    row.snooze_count = reminder.snooze_count
    row.created_at = reminder.created_at
    row.updated_at = reminder.updated_at


class SqlAlchemyReminderRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, reminder: Reminder) -> Reminder:
        row = ReminderRow(id=reminder.id)
        _apply(row, reminder)
        with committing(self.db, "create reminder"):
            self.db.add(row)
        return self.find(reminder.id)

    def save(self, reminder: Reminder) -> Reminder:
        with committing(self.db, "save reminder"):
            row = self.db.get(ReminderRow, reminder.id)
            if row is None:
                raise NotFoundError("Reminder", reminder.id)
            _apply(row, reminder)
        return self.find(reminder.id)

    def find(self, reminder_id: UUID) -> Reminder:
        with reading(self.db, "load reminder"):
            row = self.db.get(ReminderRow, reminder_id, populate_existing=True)
        if row is None:
            raise NotFoundError("Reminder", reminder_id)
        return _to_entity(row)

    def delete(self, reminder_id: UUID) -> None:
        with committing(self.db, "delete reminder"):
            row = self.db.get(ReminderRow, reminder_id)
            if row is None:
                raise NotFoundError("Reminder", reminder_id)
            self.db.delete(row)

    def list_for_user(self, user_id: UUID) -> list[Reminder]:
        """Reminders the user created or was assigned, soonest first."""
        q = (
            select(ReminderRow)
            .where(or_(ReminderRow.created_by_id == user_id, ReminderRow.assigned_to_id == user_id))
            .order_by(ReminderRow.scheduled_for, ReminderRow.created_at)
        )
        with reading(self.db, "list reminders"):
            rows = self.db.execute(q).scalars().all()
        return [_to_entity(r) for r in rows]
