from pydantic import BaseModel
from uuid import UUID

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class RefreshIn(BaseModel):
    refresh_token: str

class LogoutIn(BaseModel):
    refresh_token: str | None = None

class DevTokenIn(BaseModel):
    user_id: UUID
