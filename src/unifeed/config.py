"""Configuration management using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Parser settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="UNIFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sniffing
    sniff_limit_bytes: int = 8192

    # Parsing
    max_input_bytes: int = 10 * 1024 * 1024  # 10MB
    max_markup_depth: int = 256

    # Fetching (CLI harness)
    fetch_timeout_seconds: float = 20.0
    fetch_max_attempts: int = 3
    user_agent: str = "unifeed/0.1 (+https://github.com/unifeed/unifeed)"


settings = Settings()
