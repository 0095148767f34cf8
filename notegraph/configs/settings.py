"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from notegraph.configs.base import BaseSettings
from notegraph.configs.celery_config import CelerySettings
from notegraph.configs.database import DatabaseSettings
from notegraph.configs.embedding import EmbeddingSettings
from notegraph.configs.rag import RagSettings
from notegraph.configs.retry import RetrySettings
from notegraph.configs.search import ChunkingSettings, SearchSettings
from notegraph.configs.vector_store import VectorStoreSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    rag: RagSettings = Field(default_factory=RagSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    celery: CelerySettings = Field(default_factory=CelerySettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from notegraph.configs import get_settings
        settings = get_settings()
    """
    return Settings()
