from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    APP_NAME: str = "Quality Control API"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str
    DB_CONNECT_ATTEMPTS: int = 5

    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "quality-control"
    JWT_AUDIENCE: str = "authenticated"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    DEV_USER_ID: str = "123e4567-e89b-12d3-a456-426614174000"

    # Check-in policy
    SINGLE_ACTIVE_SESSION: bool = True
    SHARED_NOTE_OUTSIDE_COUPLE: Literal["show", "mask"] = "show"

    # Reminders
    REMINDER_SNOOZE_MINUTES: int = 15

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

settings = Settings()  # type: ignore
