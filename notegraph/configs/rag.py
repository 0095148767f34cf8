"""
RAG configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Retrieval-augmented generation configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RagSettings(BaseSettings):
    """RAG retrieval and generation configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RAG_",
        case_sensitive=False,
        extra="ignore",
    )

    similarity_threshold: float = Field(
        default=0.5,
        description="Minimum similarity score for a chunk to be used as context",
        ge=0.0,
        le=1.0,
    )
    default_top_k: int = Field(default=5, description="Default number of contexts", ge=1)
    person_overfetch_factor: int = Field(
        default=3,
        description="Overfetch multiplier for scopes filtered client-side",
        ge=1,
    )
    snippet_max_chars: int = Field(
        default=500,
        description="Maximum snippet length returned to callers",
    )

    chat_model: str = Field(
        default="gemini-2.5-flash",
        description="Chat model used for answer generation",
    )
    temperature: float = Field(default=0.7, description="Generation temperature")
    max_output_tokens: int = Field(default=500, description="Generation token cap")
