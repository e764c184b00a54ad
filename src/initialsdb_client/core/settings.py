"""Client settings and configuration.

This module defines all configuration options for the initialsDB client.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Board server location
    board_base_url: str = Field(default="http://localhost:8080", alias="BOARD_BASE_URL")
    board_challenge_path: str = Field(default="/pow/challenge", alias="BOARD_CHALLENGE_PATH")
    board_search_path: str = Field(default="/api/listings/search", alias="BOARD_SEARCH_PATH")
    board_create_path: str = Field(default="/api/listings/create", alias="BOARD_CREATE_PATH")
    board_count_path: str = Field(default="/api/listings/count", alias="BOARD_COUNT_PATH")

    # Requests rely on cancellation alone unless a timeout is configured
    board_http_timeout_seconds: float | None = Field(
        default=None,
        alias="BOARD_HTTP_TIMEOUT_SECONDS",
    )

    # First entry of the status log
    board_status_greeting: str = Field(
        default="For sale: baby shoes, never worn.\nErnest@Hemingway.com",
        alias="BOARD_STATUS_GREETING",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )


settings = Settings()
