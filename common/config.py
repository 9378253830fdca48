"""Booking service settings, read from the environment and an optional ``.env``."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    database_url: str = Field(
        default="sqlite:///./roombooking.db",
        description="Where bookings and the room registry live. PostgreSQL enables room row locks.",
    )
    run_db_migrations: bool = Field(
        default=False,
        description="Create the rooms and bookings tables when the app starts.",
    )
    jwt_secret: str = Field(default="super-secret", description="Key shared with the identity provider")
    jwt_algorithm: str = Field(default="HS256", description="Algorithm of caller tokens")
    access_token_expire_minutes: int = Field(default=60, description="Lifetime of tokens minted by create_access_token")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Origins allowed to call the booking API")
    default_rate_limit: str = Field(default="30/minute", description="Limit for routes without their own rule")
    room_cache_ttl: int = Field(default=60, description="Seconds a found room is remembered before it is looked up again")
    rate_limiting_enabled: bool = Field(default=True, description="Turn SlowAPI limits off, e.g. for the test suite")
    log_dir: str = Field(default="logs", description="Directory receiving the per-service audit log")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reset_settings_cache() -> None:
    """Drop the cached settings so the next call re-reads the environment."""

    get_settings.cache_clear()
