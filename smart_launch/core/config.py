"""Configuration management for the SMART launch client."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``SMART_``-prefixed environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SMART_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Launch state
    state_key_length: int = Field(
        default=16, ge=16, description="Length of the random per-launch state key"
    )
    state_storage_path: Path = Field(
        default=Path.home() / ".smart_launch" / "state",
        description="Directory used by FileStorage for persisted launch state",
    )
    state_encryption_key: str | None = Field(
        default=None, description="Fernet key for encrypting persisted launch state"
    )

    # Transport
    request_timeout: float = Field(
        default=30.0, description="Timeout in seconds for discovery and token requests"
    )

    # Token handling
    default_token_lifetime: int = Field(
        default=300,
        description="Assumed access token lifetime in seconds when the server "
        "reports neither expires_in nor a JWT exp claim",
    )

    # Cross-window handshake
    handshake_timeout: float | None = Field(
        default=None,
        description="Seconds to wait for a popup or frame to post completeAuth. "
        "None waits indefinitely.",
    )
    popup_width: int = Field(default=800, description="Width of the authorization popup")
    popup_height: int = Field(default=720, description="Height of the authorization popup")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# Global settings instance
settings = Settings()
