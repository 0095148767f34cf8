"""
Embedding provider configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Embedding model configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingSettings(BaseSettings):
    """Embedding model configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    model: str = Field(
        default="models/gemini-embedding-001",
        description="Google embedding model ID",
    )
    dimension: int = Field(
        default=1536,
        description="Fixed output dimensionality requested from the model",
    )
    max_chunks_per_batch: int = Field(
        default=100,
        description="Maximum chunks sent in a single batch embedding call",
    )
