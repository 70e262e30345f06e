from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime

class UserIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str | None = None

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str | None = None

class CoupleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)

class MemberAdd(BaseModel):
    user_id: UUID

class CategoryIn(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    icon: str = Field(min_length=1, max_length=16)
    description: str | None = None

class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    icon: str
    description: str | None = None
    order: int
    is_custom: bool

class CoupleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    total_check_ins: int
    current_streak: int
    last_check_in_at: datetime | None = None
    members: list[UserOut]
