"""
Chunking and hybrid search configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Retrieval tuning parameters
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingSettings(BaseSettings):
    """Sliding-window chunker configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHUNKING_",
        case_sensitive=False,
        extra="ignore",
    )

    chunk_size_tokens: int = Field(default=512, description="Chunk size in tokens", gt=0)
    overlap_ratio: float = Field(
        default=0.2,
        description="Overlap ratio between consecutive chunks",
        ge=0.0,
        lt=1.0,
    )


class SearchSettings(BaseSettings):
    """Hybrid (lexical + semantic) search configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        case_sensitive=False,
        extra="ignore",
    )

    rrf_k: int = Field(default=60, description="Reciprocal Rank Fusion constant")
    overfetch_factor: int = Field(
        default=2,
        description="Multiplier applied to the requested limit for each engine",
        ge=1,
    )
    default_limit: int = Field(default=10, description="Default number of merged results", ge=1)
