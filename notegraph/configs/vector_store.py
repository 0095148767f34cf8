"""
Vector store configuration settings.

Selects the vector store backend and carries the limits the index
adapter enforces (metadata byte budget, stale-chunk scan size).

Dependencies: pydantic, pydantic_settings
System role: Vector database configuration for RAG retrieval
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorStoreSettings(BaseSettings):
    """Vector store configuration (in-memory for dev, S3 Vectors for prod)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VECTOR_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: str = Field(
        default="memory",
        description="Vector store type: 'memory' for local dev, 's3' for production",
    )
    vectors_bucket: str = Field(
        default="notegraph-dev-vectors",
        description="S3 Vectors bucket name",
    )
    index_name: str = Field(default="work-notes", description="S3 Vectors index name")
    aws_region: str = Field(default="ap-northeast-2", description="AWS region for S3 Vectors")

    dimension: int = Field(
        default=1536,
        description="Embedding vector dimension of the index",
    )
    metadata_max_bytes: int = Field(
        default=60,
        description="Byte budget for each string metadata field (store limit is 64)",
    )
    stale_scan_limit: int = Field(
        default=500,
        description="Maximum chunk candidates fetched when scanning a note for stale chunks",
    )
