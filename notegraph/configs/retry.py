"""
Embedding retry queue configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Retry policy for vector index synchronization
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseSettings):
    """Backoff and dead-letter policy for failed embedding syncs."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_RETRY_",
        case_sensitive=False,
        extra="ignore",
    )

    max_attempts: int = Field(default=3, description="Attempts before dead-letter", ge=1)
    backoff_base: int = Field(default=2, description="Exponential backoff base (seconds)", ge=2)
    batch_size: int = Field(default=10, description="Items processed per sweep", ge=1)
    sweep_interval_seconds: int = Field(
        default=60,
        description="Interval between periodic retry sweeps",
    )
    claim_timeout_seconds: int = Field(
        default=300,
        description="Seconds a claimed item may stay retrying before a later sweep reclaims it",
        ge=1,
    )
