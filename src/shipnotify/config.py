"""Configuration management for the shipment notifier."""

from typing import Optional

from pydantic_settings import BaseSettings

from shipnotify.delivery.breaker import BreakerConfig
from shipnotify.delivery.retry import RetryPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Order store
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "shipnotify"
    db_password: str = "localdev"
    db_name: str = "orders"
    db_url: Optional[str] = None  # Overrides the host/port/user fields

    # Messaging gateway
    whatsapp_api_url: str = "http://localhost:3009"
    whatsapp_api_key: str = ""
    whatsapp_timeout_s: float = 30.0

    # Retry with backoff
    retry_max_retries: int = 3
    retry_initial_delay_ms: int = 1000
    retry_max_delay_ms: int = 10000
    retry_backoff_multiplier: float = 2.0

    # Circuit breaker
    circuit_breaker_failure_threshold: int = 5
    circuit_breaker_reset_timeout_ms: int = 30000

    # OCR
    ocr_language: str = "spa"

    # Notification copy
    store_name: str = "TechAura"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    structured_logging: bool = True

    @property
    def database_url(self) -> str:
        """Construct async database URL."""
        if self.db_url:
            return self.db_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    def retry_policy(self) -> RetryPolicy:
        """Build the per-operation retry policy."""
        return RetryPolicy(
            max_retries=self.retry_max_retries,
            initial_delay_ms=self.retry_initial_delay_ms,
            max_delay_ms=self.retry_max_delay_ms,
            backoff_multiplier=self.retry_backoff_multiplier,
        )

    def breaker_config(self) -> BreakerConfig:
        """Build the circuit breaker thresholds."""
        return BreakerConfig(
            failure_threshold=self.circuit_breaker_failure_threshold,
            reset_timeout_ms=self.circuit_breaker_reset_timeout_ms,
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
