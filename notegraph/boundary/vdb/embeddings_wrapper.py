"""
Google Generative AI Embeddings wrapper with fixed output dimensionality.

Wraps GoogleGenerativeAIEmbeddings so every embed call (sync and async)
requests the same dimension as the vector index.

Dependencies: langchain_google_genai
System role: Embedding dimension consistency for the vector index
"""

import logging
from typing import List

from langchain_google_genai import GoogleGenerativeAIEmbeddings

logger = logging.getLogger(__name__)


class FixedDimensionEmbeddings(GoogleGenerativeAIEmbeddings):
    """
    GoogleGenerativeAIEmbeddings with a fixed output dimensionality.

    The base class ignores output_dimensionality in the constructor; this
    wrapper injects it into every call unless the caller overrides it.
    """

    _output_dimensionality: int = 1536

    def __init__(
        self,
        model: str = "models/gemini-embedding-001",
        output_dimensionality: int = 1536,
        **kwargs,
    ) -> None:
        """
        Initialize embeddings with fixed output dimensionality.

        Args:
            model: Google embedding model ID
            output_dimensionality: Dimension for all embeddings
            **kwargs: Additional arguments for GoogleGenerativeAIEmbeddings
        """
        super().__init__(model=model, **kwargs)
        self._output_dimensionality = output_dimensionality
        logger.info(
            f"{__name__}:__init__ - Initialized with model={model}, "
            f"output_dimensionality={output_dimensionality}"
        )

    def embed_documents(
        self,
        texts: List[str],
        *,
        batch_size: int = 100,
        task_type: str | None = None,
        titles: List[str] | None = None,
        output_dimensionality: int | None = None,
    ) -> List[List[float]]:
        return super().embed_documents(
            texts,
            batch_size=batch_size,
            task_type=task_type,
            titles=titles,
            output_dimensionality=output_dimensionality or self._output_dimensionality,
        )

    def embed_query(
        self,
        text: str,
        task_type: str | None = None,
        title: str | None = None,
        output_dimensionality: int | None = None,
    ) -> List[float]:
        return super().embed_query(
            text,
            task_type=task_type,
            title=title,
            output_dimensionality=output_dimensionality or self._output_dimensionality,
        )

    async def aembed_documents(
        self,
        texts: List[str],
        *,
        batch_size: int = 100,
        task_type: str | None = None,
        titles: List[str] | None = None,
        output_dimensionality: int | None = None,
    ) -> List[List[float]]:
        return await super().aembed_documents(
            texts,
            batch_size=batch_size,
            task_type=task_type,
            titles=titles,
            output_dimensionality=output_dimensionality or self._output_dimensionality,
        )

    async def aembed_query(
        self,
        text: str,
        task_type: str | None = None,
        title: str | None = None,
        output_dimensionality: int | None = None,
    ) -> List[float]:
        return await super().aembed_query(
            text,
            task_type=task_type,
            title=title,
            output_dimensionality=output_dimensionality or self._output_dimensionality,
        )
