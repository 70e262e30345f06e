"""
Personal and partner reminders.

A reminder is visible to its creator and its assignee. Assignees are
limited to people the creator shares a couple with; the creator is the
default assignee.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from qc_api.domain.entities import Priority, Reminder, ReminderCategory, ReminderFrequency
from qc_api.domain.errors import AuthorizationError, ConflictError, ValidationError
from qc_api.repositories import couple_repo
from qc_api.repositories.checkin_repo import SqlAlchemyCheckInRepository
from qc_api.repositories.reminder_repo import SqlAlchemyReminderRepository
from qc_api.utils.time import ensure_aware, utc_day, utcnow

logger = logging.getLogger(__name__)

TITLE_MIN, TITLE_MAX = 2, 100
MESSAGE_MAX = 500
MAX_SNOOZE_MINUTES = 24 * 60
MAX_SCHEDULE_AHEAD = timedelta(days=5 * 365)
EDITABLE_FIELDS = {"title", "message", "category", "frequency", "priority", "assigned_to_id"}
VIEWS = ("all", "upcoming", "overdue", "completed", "snoozed")


@dataclass(slots=True)
class ReminderStatistics:
    total: int
    active: int
    completed_today: int
    overdue: int
    snoozed: int
    completion_rate: int


def _clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not TITLE_MIN <= len(title) <= TITLE_MAX:
        raise ValidationError(f"Reminder title must be {TITLE_MIN} to {TITLE_MAX} characters")
    return title


def _check_message(message: Optional[str]) -> Optional[str]:
    if message is not None and len(message) > MESSAGE_MAX:
        raise ValidationError(f"Reminder message cannot exceed {MESSAGE_MAX} characters")
    return message


def _check_schedule(when: datetime, now: datetime) -> datetime:
    when = ensure_aware(when)
    if when < now:
        raise ValidationError("Reminders cannot be scheduled in the past")
    if when > now + MAX_SCHEDULE_AHEAD:
        raise ValidationError("Reminders cannot be scheduled more than 5 years ahead")
    return when


def matches(reminder: Reminder, view: str, now: datetime) -> bool:
    if view == "all":
        return reminder.is_active
    if view == "upcoming":
        return reminder.is_active and reminder.due_at > now
    if view == "overdue":
        return reminder.overdue_at(now)
    if view == "completed":
        return not reminder.is_active or reminder.completed_at is not None
    if view == "snoozed":
        return reminder.is_active and reminder.is_snoozed
    return False


class ReminderService:
    def __init__(self, db: Session, *, default_snooze_minutes: int = 15):
        self.db = db
        self.repo = SqlAlchemyReminderRepository(db)
        self.default_snooze_minutes = default_snooze_minutes

    def _check_assignee(self, creator_id: UUID, assignee_id: UUID) -> None:
        if assignee_id not in couple_repo.partner_member_ids(self.db, creator_id):
            raise ValidationError("Reminders can only be assigned to yourself or your partner")

    def _accessible(self, reminder_id: UUID, user_id: UUID) -> Reminder:
        reminder = self.repo.find(reminder_id)
        if user_id not in (reminder.created_by_id, reminder.assigned_to_id):
            raise AuthorizationError("Only the creator or assignee can access this reminder")
        return reminder

    def _active(self, reminder_id: UUID, user_id: UUID) -> Reminder:
        reminder = self._accessible(reminder_id, user_id)
        if not reminder.is_active:
            raise ConflictError("Reminder is no longer active")
        return reminder

    def create(
        self,
        user_id: UUID,
        title: str,
        scheduled_for: datetime,
        *,
        message: Optional[str] = None,
        category: ReminderCategory = ReminderCategory.CHECK_IN,
        frequency: ReminderFrequency = ReminderFrequency.ONCE,
        priority: Priority = Priority.MEDIUM,
        assigned_to_id: Optional[UUID] = None,
        couple_id: Optional[UUID] = None,
        related_check_in_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Reminder:
        now = now or utcnow()
        assignee = assigned_to_id or user_id
        if assignee != user_id:
            self._check_assignee(user_id, assignee)
        if couple_id is not None and user_id not in couple_repo.member_ids(self.db, couple_id):
            raise AuthorizationError("You are not a member of this couple")
        if related_check_in_id is not None:
            session = SqlAlchemyCheckInRepository(self.db).find(related_check_in_id)
            if user_id not in couple_repo.member_ids(self.db, session.couple_id):
                raise AuthorizationError("Only members of the couple can link this check-in")
            couple_id = couple_id or session.couple_id
        reminder = Reminder(
            title=_clean_title(title),
            message=_check_message(message),
            created_by_id=user_id,
            assigned_to_id=assignee,
            couple_id=couple_id,
            related_check_in_id=related_check_in_id,
            scheduled_for=_check_schedule(scheduled_for, now),
            category=ReminderCategory(category),
            frequency=ReminderFrequency(frequency),
            priority=Priority(priority),
            created_at=now,
            updated_at=now,
        )
        saved = self.repo.create(reminder)
        logger.info("Reminder %s (%s) scheduled for %s", saved.id, saved.frequency.value, saved.scheduled_for)
        return saved

    def get(self, reminder_id: UUID, user_id: UUID) -> Reminder:
        return self._accessible(reminder_id, user_id)

    def list_for_user(
        self,
        user_id: UUID,
        *,
        view: str = "all",
        category: Optional[ReminderCategory] = None,
        now: Optional[datetime] = None,
    ) -> list[Reminder]:
        if view not in VIEWS:
            raise ValidationError(f"Unknown reminder filter '{view}'")
        now = now or utcnow()
        reminders = [r for r in self.repo.list_for_user(user_id) if matches(r, view, now)]
        if category is not None:
            reminders = [r for r in reminders if r.category is ReminderCategory(category)]
        return reminders

    def update(self, reminder_id: UUID, user_id: UUID, **changes) -> Reminder:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update reminder fields: {', '.join(sorted(unknown))}")
        reminder = self._accessible(reminder_id, user_id)
        if "title" in changes:
            reminder.title = _clean_title(changes["title"])
        if "message" in changes:
            reminder.message = _check_message(changes["message"])
        if changes.get("category") is not None:
            reminder.category = ReminderCategory(changes["category"])
        if changes.get("frequency") is not None:
            reminder.frequency = ReminderFrequency(changes["frequency"])
        if changes.get("priority") is not None:
            reminder.priority = Priority(changes["priority"])
        if changes.get("assigned_to_id") is not None:
            self._check_assignee(reminder.created_by_id, changes["assigned_to_id"])
            reminder.assigned_to_id = changes["assigned_to_id"]
        reminder.updated_at = utcnow()
        return self.repo.save(reminder)

    def delete(self, reminder_id: UUID, user_id: UUID) -> None:
        reminder = self.repo.find(reminder_id)
        if reminder.created_by_id != user_id:
            raise AuthorizationError("Only the creator can delete a reminder")
        self.repo.delete(reminder_id)
        logger.info("Reminder %s deleted", reminder_id)

    def complete(self, reminder_id: UUID, user_id: UUID, *, now: Optional[datetime] = None) -> Reminder:
        reminder = self._active(reminder_id, user_id)
        reminder.complete(now=now)
        return self.repo.save(reminder)

    def skip(self, reminder_id: UUID, user_id: UUID, *, now: Optional[datetime] = None) -> Reminder:
        reminder = self._active(reminder_id, user_id)
        reminder.skip(now=now)
        return self.repo.save(reminder)

    def snooze(
        self,
        reminder_id: UUID,
        user_id: UUID,
        minutes: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Reminder:
        minutes = self.default_snooze_minutes if minutes is None else minutes
        if not 1 <= minutes <= MAX_SNOOZE_MINUTES:
            raise ValidationError(f"Snooze must be between 1 and {MAX_SNOOZE_MINUTES} minutes")
        reminder = self._active(reminder_id, user_id)
        reminder.snooze(minutes, now=now)
        return self.repo.save(reminder)

    def unsnooze(self, reminder_id: UUID, user_id: UUID) -> Reminder:
        reminder = self._accessible(reminder_id, user_id)
        if not reminder.is_snoozed:
            return reminder
        reminder.unsnooze()
        return self.repo.save(reminder)

    def reschedule(self, reminder_id: UUID, user_id: UUID, when: datetime, *, now: Optional[datetime] = None) -> Reminder:
        now = now or utcnow()
        reminder = self._accessible(reminder_id, user_id)
        reminder.reschedule(_check_schedule(when, now), now=now)
        return self.repo.save(reminder)

    def statistics(self, user_id: UUID, *, now: Optional[datetime] = None) -> ReminderStatistics:
        now = now or utcnow()
        reminders = self.repo.list_for_user(user_id)
        today = utc_day(now)
        completed = [r for r in reminders if r.completed_at is not None]
        total = len(reminders)
        return ReminderStatistics(
            total=total,
            active=sum(1 for r in reminders if r.is_active),
            completed_today=sum(1 for r in completed if utc_day(r.completed_at) == today),
            overdue=sum(1 for r in reminders if r.overdue_at(now)),
            snoozed=sum(1 for r in reminders if r.is_active and r.is_snoozed),
            completion_rate=round(len(completed) * 100 / total) if total else 0,
        )
