from dataclasses import dataclass
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class CharityAPIConfig:
    """Immutable connection settings for the CharityAPI client.

    Attributes:
        base_url: Upstream API base URL
        api_key: Optional API key sent in the ``apikey`` header
        timeout_ms: Per-request timeout in milliseconds
        max_retries: Retries after the first attempt for transient failures
        retry_delay_ms: Base delay for exponential backoff in milliseconds
    """

    base_url: str
    api_key: Optional[str] = None
    timeout_ms: int = 10000
    max_retries: int = 3
    retry_delay_ms: int = 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # CharityAPI upstream settings (timeouts and delays in milliseconds)
    charity_api_base_url: str = "https://api.charityapi.org"
    charity_api_key: Optional[str] = None
    charity_api_timeout: int = 10000
    charity_api_max_retries: int = 3
    charity_api_retry_delay: int = 1000

    # Rate limiting settings (one bucket per tool)
    rate_limit_max_requests: int = 100
    rate_limit_window_ms: int = 60000
    rate_limit_sweep_interval_seconds: float = 300.0

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("charity_api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the upstream base URL is present."""
        if not v or not v.strip():
            raise ValueError("CHARITY_API_BASE_URL is required")
        return v.strip()

    @field_validator("charity_api_key")
    @classmethod
    def blank_key_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("charity_api_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is at least one second."""
        if v < 1000:
            raise ValueError("Timeout must be at least 1000ms")
        return v

    @field_validator("charity_api_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """Validate retry count is within a sane range."""
        if v < 0 or v > 10:
            raise ValueError("maxRetries must be between 0 and 10")
        return v

    @field_validator("charity_api_retry_delay", "rate_limit_max_requests")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    @field_validator("rate_limit_window_ms")
    @classmethod
    def validate_window(cls, v: int) -> int:
        """Validate the rate limit window is at least one millisecond."""
        if v < 1:
            raise ValueError("rate_limit_window_ms must be at least 1")
        return v

    @field_validator("rate_limit_sweep_interval_seconds")
    @classmethod
    def validate_sweep_interval(cls, v: float) -> float:
        """Validate sweep interval is positive."""
        if v <= 0:
            raise ValueError("rate_limit_sweep_interval_seconds must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    def to_api_config(self) -> CharityAPIConfig:
        """Build the client configuration from these settings."""
        return CharityAPIConfig(
            base_url=self.charity_api_base_url,
            api_key=self.charity_api_key,
            timeout_ms=self.charity_api_timeout,
            max_retries=self.charity_api_max_retries,
            retry_delay_ms=self.charity_api_retry_delay,
        )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
