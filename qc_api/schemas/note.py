from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime

from qc_api.domain.entities import PrivacyLevel

class NoteCreate(BaseModel):
    content: str = Field(min_length=1)
    privacy: PrivacyLevel = PrivacyLevel.DRAFT
    tags: list[str] = Field(default_factory=list)
    category_id: UUID | None = None
    session_id: UUID | None = None
    is_favorite: bool = False

class NoteUpdate(BaseModel):
    content: str | None = Field(default=None, min_length=1)
    privacy: PrivacyLevel | None = None
    tags: list[str] | None = None
    category_id: UUID | None = None
    is_favorite: bool | None = None

class NoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    privacy: PrivacyLevel
    created_at: datetime
    updated_at: datetime
    author_id: UUID
    author_name: str
    category_id: UUID | None = None
    session_id: UUID | None = None
    content: str
    tags: list[str]
    can_edit: bool
    can_view: bool
    is_private: bool
    is_shared: bool
    is_draft: bool
    is_favorite: bool | None = None
    word_count: int | None = None
    published_at: datetime | None = None
    first_shared_at: datetime | None = None
