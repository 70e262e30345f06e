from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime

from qc_api.domain.entities import SessionStatus
from qc_api.domain.steps import CheckInStep

class CheckinOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    couple_id: UUID
    status: SessionStatus
    current_step: CheckInStep
    completed_steps: list[str]
    percentage_complete: float
    category_ids: list[UUID]
    note_ids: list[UUID]
    action_item_ids: list[UUID]
    mood_rating: int | None = None
    reflection: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    abandoned_at: datetime | None = None
    duration_seconds: int | None = None
    step_durations: dict[str, int]
    step_title: str
    step_description: str
    can_advance: bool

class TransitionOut(BaseModel):
    event: str
    session: CheckinOut

class AdvanceIn(BaseModel):
    # Lets the client force the gate shut (e.g. required fields still empty)
    can_proceed: bool | None = None

class CategorySelectIn(BaseModel):
    category_id: UUID

class CheckinPatchIn(BaseModel):
    reflection: str | None = None
    mood_rating: int | None = Field(default=None, ge=1, le=5)

class ProgressOut(BaseModel):
    session_id: UUID
    status: SessionStatus
    current_step: CheckInStep
    current_step_index: int
    total_steps: int
    percentage: float
    title: str
    description: str
    can_advance: bool
    completed_steps: list[str]
    step_durations: dict[str, int]
    time_in_current_step: str
    categories_selected: int
    notes_count: int
    action_items_count: int

class StatisticsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_sessions: int
    completed_sessions: int
    abandoned_sessions: int
    in_progress_sessions: int
    current_streak: int
    average_duration_seconds: int
    last_check_in_at: datetime | None = None
