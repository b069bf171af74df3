from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    backend_url: str = Field(
        default="http://localhost:3000",  # Default for local dev; the backend serves the API on :3000
        validation_alias="BACKEND_URL",
    )
    api_timeout_seconds: float = Field(default=10.0, validation_alias="API_TIMEOUT_SECONDS")
    stats_poll_interval_seconds: float = Field(
        default=30.0,
        validation_alias="STATS_POLL_INTERVAL_SECONDS",
        description="Seconds between stats refreshes",
    )
    b1_plus_goal_hours: float = Field(
        default=200.0,
        validation_alias="B1_PLUS_GOAL_HOURS",
        description="B1+ goal shown while the first stats snapshot is loading",
    )
    b2_goal_hours: float = Field(
        default=320.0,
        validation_alias="B2_GOAL_HOURS",
        description="B2 goal shown while the first stats snapshot is loading",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("backend_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Normalize BACKEND_URL so paths can be appended directly."""
        return value.rstrip("/")

    @field_validator("stats_poll_interval_seconds", "api_timeout_seconds", "b1_plus_goal_hours", "b2_goal_hours")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value


settings = Settings()
