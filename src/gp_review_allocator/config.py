from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings read from the environment (or a local .env file).

    DATABASE_URL is read separately by ``db.get_database_url`` so commands that
    never touch the database do not require it.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False, frozen=True)

    max_ratings_per_app: int = Field(10, ge=1)
    default_ratings_per_app: int = 2
    review_base_url: str = "http://localhost:3000"

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_secure: bool = False
    email_from: str = "no-reply@localhost"
    email_from_name: str = "GP Platform"

    log_level: str | None = None

    @field_validator("smtp_user", "smtp_pass", "log_level", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def review_link(self) -> str:
        return f"{self.review_base_url.rstrip('/')}/reviewer/assignments"


def load_settings() -> Settings:
    return Settings()
