"""Runtime settings loaded from environment variables."""

import logging
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
PortNumber = Annotated[int, Field(ge=1, le=65535)]
PositiveInt = Annotated[int, Field(gt=0)]

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host: NonEmptyStr = Field(default="0.0.0.0", validation_alias="HOST")
    port: PortNumber = Field(default=3000, validation_alias="PORT")
    database_url: NonEmptyStr = Field(
        default="sqlite+aiosqlite:///./data.db",
        validation_alias="DATABASE_URL",
    )
    database_password: str | None = Field(default=None, validation_alias="DATABASE_PASSWORD")
    environment: Literal["development", "production"] = Field(
        default="development",
        validation_alias="ENVIRONMENT",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["text", "json"] = Field(default="text", validation_alias="LOG_FORMAT")
    # Requests per minute; accepted and validated but not enforced.
    rate_limit: PositiveInt = Field(default=100, validation_alias="RATE_LIMIT")

    @model_validator(mode="after")
    def _require_database_password_in_production(self) -> "Settings":
        if self.database_password:
            return self
        if self.environment == "production":
            raise ValueError("DATABASE_PASSWORD is required when ENVIRONMENT=production")
        logger.warning("database_password_unset environment=%s", self.environment)
        return self


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()
