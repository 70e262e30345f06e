from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import date, datetime

from qc_api.domain.entities import Priority

class ActionItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    assignee_id: UUID | None = None
    due_date: date | None = None
    priority: Priority = Priority.MEDIUM

class ActionItemUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    assignee_id: UUID | None = None
    due_date: date | None = None
    priority: Priority | None = None

class ActionItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    title: str
    description: str | None = None
    assignee_id: UUID | None = None
    due_date: date | None = None
    priority: Priority
    completed: bool
    completed_at: datetime | None = None
    completed_by_id: UUID | None = None
    created_by_id: UUID | None = None
    is_overdue: bool
    created_at: datetime
    updated_at: datetime
