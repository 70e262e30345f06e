"""Check-in, reminder and milestone domain entities."""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from qc_api.domain.steps import (
    FIRST_STEP,
    CheckInStep,
    default_can_proceed,
    progress_for,
    step_info,
)
from qc_api.utils.time import utcnow


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class PrivacyLevel(str, Enum):
    PRIVATE = "private"
    SHARED = "shared"
    DRAFT = "draft"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


TERMINAL_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.ABANDONED})


@dataclass(slots=True)
class CheckInSession:
    couple_id: UUID
    id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    abandoned_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    current_step: CheckInStep = FIRST_STEP
    completed_steps: list[str] = field(default_factory=list)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    percentage_complete: float = field(default_factory=lambda: progress_for(FIRST_STEP))
    category_ids: list[UUID] = field(default_factory=list)
    note_ids: list[UUID] = field(default_factory=list)
    action_item_ids: list[UUID] = field(default_factory=list)
    mood_rating: Optional[int] = None
    reflection: Optional[str] = None
    step_started_at: Optional[datetime] = None
    step_durations: dict[str, int] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def progress(self) -> float:
        return self.percentage_complete

    @property
    def can_advance(self) -> bool:
        if self.is_terminal:
            return False
        return default_can_proceed(self.current_step, len(self.category_ids))

    @property
    def step_title(self) -> str:
        return step_info(self.current_step).title

    @property
    def step_description(self) -> str:
        return step_info(self.current_step).description


@dataclass(slots=True)
class Note:
    content: str
    author_id: UUID
    privacy: PrivacyLevel = PrivacyLevel.DRAFT
    id: UUID = field(default_factory=uuid4)
    category_id: Optional[UUID] = None
    session_id: Optional[UUID] = None
    tags: list[str] = field(default_factory=list)
    is_favorite: bool = False
    published_at: Optional[datetime] = None
    first_shared_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    def change_privacy(self, privacy: PrivacyLevel, *, now: Optional[datetime] = None) -> None:
        """
        Switch privacy level. The first switch to shared stamps the
        publication timestamps; later switches keep them.
        """
        now = now or utcnow()
        self.privacy = PrivacyLevel(privacy)
        if self.privacy is PrivacyLevel.SHARED:
            if self.first_shared_at is None:
                self.first_shared_at = now
            self.published_at = now
        self.updated_at = now


@dataclass(slots=True)
class ActionItem:
    session_id: UUID
    title: str
    id: UUID = field(default_factory=uuid4)
    description: Optional[str] = None
    assignee_id: Optional[UUID] = None
    due_date: Optional[date] = None
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    completed_at: Optional[datetime] = None
    completed_by_id: Optional[UUID] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def mark_complete(self, by: Optional[UUID] = None, *, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        self.completed = True
        self.completed_at = now
        self.completed_by_id = by
        self.updated_at = now

    def reopen(self, *, now: Optional[datetime] = None) -> None:
        self.completed = False
        self.completed_at = None
        self.completed_by_id = None
        self.updated_at = now or utcnow()

    @property
    def is_overdue(self) -> bool:
        if self.completed or self.due_date is None:
            return False
        return self.due_date < utcnow().date()


class ReminderCategory(str, Enum):
    CHECK_IN = "check_in"
    HABIT = "habit"
    ACTION_ITEM = "action_item"
    PARTNER_MOMENT = "partner_moment"
    SPECIAL_OCCASION = "special_occasion"


class ReminderFrequency(str, Enum):
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


# frequency -> (days, months) added per occurrence
_RECURRENCE = {
    ReminderFrequency.DAILY: (1, 0),
    ReminderFrequency.WEEKLY: (7, 0),
    ReminderFrequency.BIWEEKLY: (14, 0),
    ReminderFrequency.MONTHLY: (0, 1),
    ReminderFrequency.QUARTERLY: (0, 3),
    ReminderFrequency.YEARLY: (0, 12),
}


def _add_months(dt: datetime, months: int) -> datetime:
    month_index = dt.month - 1 + months
    year, month = dt.year + month_index // 12, month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def next_occurrence(when: datetime, frequency: ReminderFrequency, *, after: Optional[datetime] = None) -> Optional[datetime]:
    """
    The first occurrence of a `frequency` schedule anchored at `when` that
    falls strictly after `after` (default: `when` itself). None for one-off
    reminders.
    """
    step = _RECURRENCE.get(ReminderFrequency(frequency))
    if step is None:
        return None
    days, months = step
    floor = after or when
    n = 1
    candidate = when
    while candidate <= floor:
        candidate = _add_months(when, months * n) + timedelta(days=days * n)
        n += 1
    return candidate


@dataclass(slots=True)
class Reminder:
    title: str
    created_by_id: UUID
    scheduled_for: datetime
    id: UUID = field(default_factory=uuid4)
    message: Optional[str] = None
    category: ReminderCategory = ReminderCategory.CHECK_IN
    frequency: ReminderFrequency = ReminderFrequency.ONCE
    priority: Priority = Priority.MEDIUM
    assigned_to_id: Optional[UUID] = None
    couple_id: Optional[UUID] = None
    related_check_in_id: Optional[UUID] = None
    is_active: bool = True
    is_snoozed: bool = False
    snooze_until: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completion_count: int = 0
    skip_count: int = 0
    snooze_count: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_recurring(self) -> bool:
        return self.frequency is not ReminderFrequency.ONCE

    @property
    def due_at(self) -> datetime:
        if self.is_snoozed and self.snooze_until is not None:
            return self.snooze_until
        return self.scheduled_for

    def overdue_at(self, now: datetime) -> bool:
        return self.is_active and self.due_at <= now

    @property
    def is_overdue(self) -> bool:
        return self.overdue_at(utcnow())

    def _roll_forward(self, now: datetime) -> None:
        upcoming = next_occurrence(self.scheduled_for, self.frequency, after=now)
        if upcoming is None:
            self.is_active = False
        else:
            self.scheduled_for = upcoming
        self.is_snoozed = False
        self.snooze_until = None
        self.updated_at = now

    def complete(self, *, now: Optional[datetime] = None) -> None:
        """
        One-off reminders are retired; recurring ones move to their next
        occurrence and stay active.
        """
        now = now or utcnow()
        self.completed_at = now
        self.completion_count += 1
        self._roll_forward(now)

    def skip(self, *, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        self.skip_count += 1
        self._roll_forward(now)

    def snooze(self, minutes: int, *, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        self.is_snoozed = True
        self.snooze_until = now + timedelta(minutes=minutes)
        self.snooze_count += 1
        self.updated_at = now

    def unsnooze(self, *, now: Optional[datetime] = None) -> None:
        self.is_snoozed = False
        self.snooze_until = None
        self.updated_at = now or utcnow()

    def reschedule(self, when: datetime, *, now: Optional[datetime] = None) -> None:
        self.scheduled_for = when
        self.is_active = True
        self.is_snoozed = False
        self.snooze_until = None
        self.updated_at = now or utcnow()


@dataclass(slots=True)
class Milestone:
    couple_id: UUID
    title: str
    id: UUID = field(default_factory=uuid4)
    description: Optional[str] = None
    category: str = "custom"
    key: Optional[str] = None
    icon: Optional[str] = None
    points: int = 0
    target_date: Optional[date] = None
    achieved_at: Optional[datetime] = None
    achieved_by_id: Optional[UUID] = None
    achievement_notes: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_achieved(self) -> bool:
        return self.achieved_at is not None

    def achieve(self, by: Optional[UUID] = None, *, notes: Optional[str] = None, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        self.achieved_at = now
        self.achieved_by_id = by
        self.achievement_notes = notes
        self.updated_at = now

    def unachieve(self, *, now: Optional[datetime] = None) -> None:
        self.achieved_at = None
        self.achieved_by_id = None
        self.achievement_notes = None
        self.updated_at = now or utcnow()
