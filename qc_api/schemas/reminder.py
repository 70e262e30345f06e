from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime

from qc_api.domain.entities import Priority, ReminderCategory, ReminderFrequency

class ReminderCreate(BaseModel):
    title: str = Field(min_length=2, max_length=100)
    message: str | None = Field(default=None, max_length=500)
    scheduled_for: datetime
    category: ReminderCategory = ReminderCategory.CHECK_IN
    frequency: ReminderFrequency = ReminderFrequency.ONCE
    priority: Priority = Priority.MEDIUM
    assigned_to_id: UUID | None = None
    couple_id: UUID | None = None
    related_check_in_id: UUID | None = None

class ReminderUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=2, max_length=100)
    message: str | None = Field(default=None, max_length=500)
    category: ReminderCategory | None = None
    frequency: ReminderFrequency | None = None
    priority: Priority | None = None
    assigned_to_id: UUID | None = None

class SnoozeIn(BaseModel):
    minutes: int | None = Field(default=None, ge=1, le=1440)

class RescheduleIn(BaseModel):
    scheduled_for: datetime

class ReminderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    message: str | None = None
    category: ReminderCategory
    frequency: ReminderFrequency
    priority: Priority
    scheduled_for: datetime
    created_by_id: UUID
    assigned_to_id: UUID | None = None
    couple_id: UUID | None = None
    related_check_in_id: UUID | None = None
    is_active: bool
    is_snoozed: bool
    snooze_until: datetime | None = None
    completed_at: datetime | None = None
    completion_count: int
    skip_count: int
    snooze_count: int
    is_recurring: bool
    is_overdue: bool
    created_at: datetime
    updated_at: datetime

class ReminderStatisticsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    active: int
    completed_today: int
    overdue: int
    snoozed: int
    completion_rate: int
