"""
Embedding provider.

Adapts any LangChain ``Embeddings`` to the two calls the index needs and
classifies provider failures: rate limits become EmbeddingRateLimitError,
anything else EmbeddingError.

Dependencies: langchain_core
System role: Text-to-vector boundary
"""

import logging

from langchain_core.embeddings import Embeddings

from notegraph.core.exceptions import EmbeddingError, EmbeddingRateLimitError

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = ("429", "rate limit", "ratelimit", "resource_exhausted", "quota")


def is_rate_limit_error(exc: BaseException) -> bool:
    """Best-effort detection of provider rate-limit errors across SDKs."""
    for attr in ("status_code", "code", "status"):
        if getattr(exc, attr, None) == 429:
            return True
    response = getattr(exc, "response", None)
    if getattr(response, "status_code", None) == 429:
        return True
    text = f"{type(exc).__name__} {exc}".lower()
    return any(marker in text for marker in _RATE_LIMIT_MARKERS)


class LangChainEmbeddingProvider:
    """EmbeddingProvider backed by a LangChain Embeddings model."""

    def __init__(self, embeddings: Embeddings) -> None:
        self._embeddings = embeddings

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single query text.

        Raises:
            EmbeddingRateLimitError: Provider rate limit hit
            EmbeddingError: Any other provider failure
        """
        try:
            return await self._embeddings.aembed_query(text)
        except Exception as e:
            raise self._wrap(e, "embed", 1) from e

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Embed several texts in one provider call.

        Raises:
            EmbeddingRateLimitError: Provider rate limit hit
            EmbeddingError: Any other provider failure
        """
        if not texts:
            return []
        try:
            return await self._embeddings.aembed_documents(texts)
        except Exception as e:
            raise self._wrap(e, "embed_batch", len(texts)) from e

    @staticmethod
    def _wrap(exc: Exception, operation: str, count: int) -> EmbeddingError:
        details = {"operation": operation, "text_count": count, "error_type": type(exc).__name__}
        if is_rate_limit_error(exc):
            logger.warning(f"{__name__}:{operation} - Rate limited by embedding provider")
            return EmbeddingRateLimitError("Embedding provider rate limit exceeded", details=details)
        logger.error(f"{__name__}:{operation} - {type(exc).__name__}: {exc}")
        return EmbeddingError(f"Embedding failed: {exc}", details=details)
