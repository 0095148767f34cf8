"""
Text generator.

Wraps a LangChain chat model behind a single ``complete(prompt)`` call and
maps provider rate limits to GenerationRateLimitError.

Dependencies: langchain_core, langchain_google_genai
System role: Generation hand-off for RAG answers
"""

import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from notegraph.boundary.vdb.embedding_provider import is_rate_limit_error
from notegraph.configs import Settings, get_settings
from notegraph.core.exceptions import GenerationError, GenerationRateLimitError

logger = logging.getLogger(__name__)


def get_chat_model(settings: Settings | None = None) -> BaseChatModel:
    """
    Build the default chat model from RAG settings.

    Returns:
        BaseChatModel: Gemini chat model
    """
    rag = (settings or get_settings()).rag
    return ChatGoogleGenerativeAI(
        model=rag.chat_model,
        temperature=rag.temperature,
        max_output_tokens=rag.max_output_tokens,
    )


class LangChainGenerator:
    """Generator backed by a LangChain chat model."""

    def __init__(self, chat_model: BaseChatModel) -> None:
        self._chat_model = chat_model

    async def complete(self, prompt: str) -> str:
        """
        Generate a completion for a single user prompt.

        Args:
            prompt: Full prompt text

        Returns:
            str: Model answer

        Raises:
            GenerationRateLimitError: Provider rate limit hit
            GenerationError: Provider failure or empty answer
        """
        try:
            response = await self._chat_model.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            if is_rate_limit_error(e):
                logger.warning(f"{__name__}:complete - Rate limited by generation provider")
                raise GenerationRateLimitError(
                    "Generation rate limit exceeded, try again shortly",
                    details={"error_type": type(e).__name__},
                ) from e
            logger.error(f"{__name__}:complete - {type(e).__name__}: {e}")
            raise GenerationError(
                f"Generation failed: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        content = response.content
        if isinstance(content, list):
            # Multi-part content: keep the text blocks.
            content = "".join(
                block if isinstance(block, str) else str(block.get("text", ""))
                for block in content
            )
        if not content:
            raise GenerationError("Generator returned an empty answer")
        return content
