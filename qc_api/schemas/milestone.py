from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import date, datetime

class MilestoneCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str | None = None
    category: str = Field(default="custom", min_length=1, max_length=32)
    target_date: date | None = None
    points: int = Field(default=0, ge=0)
    icon: str | None = Field(default=None, max_length=16)

class MilestoneUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    category: str | None = Field(default=None, min_length=1, max_length=32)
    target_date: date | None = None
    points: int | None = Field(default=None, ge=0)
    icon: str | None = Field(default=None, max_length=16)

class AchieveIn(BaseModel):
    notes: str | None = None
    achieved_at: datetime | None = None

class MilestoneOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    couple_id: UUID
    key: str | None = None
    title: str
    description: str | None = None
    category: str
    icon: str | None = None
    points: int
    target_date: date | None = None
    is_achieved: bool
    achieved_at: datetime | None = None
    achieved_by_id: UUID | None = None
    achievement_notes: str | None = None
    created_at: datetime
    updated_at: datetime

class MilestoneStatisticsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    achieved: int
    pending: int
    achievement_rate: float
    recent_achievements: list[MilestoneOut]
    categories: dict[str, int]
