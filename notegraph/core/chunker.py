"""
Sliding-window chunker for work notes.

Splits ``title + "\\n\\n" + content`` into overlapping windows measured in
approximate tokens (4 characters per token, which holds reasonably for both
Latin and CJK text). The same boundary formula backs ``get_chunk_text`` so a
chunk's text can be rebuilt from the source note at retrieval time instead
of being stored twice.

Dependencies: notegraph.models.chunk
System role: Turns work notes into embeddable units
"""

import math
import re
from typing import Any

from notegraph.core.decoding import DecodeResult
from notegraph.core.exceptions import ValidationError
from notegraph.models.chunk import ChunkMetadata, TextChunk

CHARS_PER_TOKEN = 4
# Trailing windows shorter than this fraction of a full window are dropped.
MIN_CHUNK_RATIO = 0.1
DEFAULT_CHUNK_SIZE_TOKENS = 512
DEFAULT_OVERLAP_RATIO = 0.2

_CHUNK_ID_PATTERN = re.compile(r"^(.+?)#chunk(\d+)$")


def build_full_text(title: str, content: str) -> str:
    """Join title and body the way chunks are cut from."""
    return f"{title}\n\n{content}"


def generate_chunk_id(work_id: str, chunk_index: int) -> str:
    return f"{work_id}#chunk{chunk_index}"


def parse_chunk_id(chunk_id: str) -> DecodeResult[tuple[str, int]]:
    """
    Split a chunk ID into ``(work_id, chunk_index)``.

    Args:
        chunk_id: ID in ``{work_id}#chunk{index}`` form

    Returns:
        DecodeResult carrying the pair, or an error for malformed IDs
    """
    match = _CHUNK_ID_PATTERN.match(chunk_id or "")
    if match is None:
        return DecodeResult.failure(f"Malformed chunk id: {chunk_id!r}")
    return DecodeResult.success((match.group(1), int(match.group(2))))


def estimate_token_count(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def truncate_for_display(text: str, max_chars: int = 500) -> str:
    """Cap snippet text at ``max_chars`` with a trailing ellipsis."""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars - 3]}..."


class Chunker:
    """
    Deterministic sliding-window text segmentation.

    Attributes:
        chunk_chars: Window size in characters
        step_chars: Distance between consecutive window starts
    """

    def __init__(
        self,
        chunk_size_tokens: int = DEFAULT_CHUNK_SIZE_TOKENS,
        overlap_ratio: float = DEFAULT_OVERLAP_RATIO,
    ) -> None:
        """
        Initialize chunker with window configuration.

        Args:
            chunk_size_tokens: Window size in approximate tokens
            overlap_ratio: Fraction of a window shared with the next one

        Raises:
            ValidationError: If chunk size is not positive or overlap is outside [0, 1)
        """
        if chunk_size_tokens <= 0:
            raise ValidationError(
                "chunk_size_tokens must be positive", field="chunk_size_tokens"
            )
        if not 0 <= overlap_ratio < 1:
            raise ValidationError(
                "overlap_ratio must be in [0, 1)", field="overlap_ratio"
            )

        self.chunk_size_tokens = chunk_size_tokens
        self.overlap_ratio = overlap_ratio
        self.chunk_chars = chunk_size_tokens * CHARS_PER_TOKEN
        self.step_chars = max(1, math.floor(self.chunk_chars * (1 - overlap_ratio)))

    def chunk_work_note(
        self,
        work_id: str,
        title: str,
        content: str,
        metadata: dict[str, Any],
    ) -> list[TextChunk]:
        """
        Chunk a work note into overlapping segments.

        Args:
            work_id: Work note ID
            title: Work note title
            content: Work note body
            metadata: person_ids, dept_name, category and created_at_bucket

        Returns:
            list[TextChunk]: Ordered chunks, index 0 first
        """
        full_text = build_full_text(title, content)

        if len(full_text) <= self.chunk_chars:
            return [self._make_chunk(work_id, 0, full_text, metadata)]

        chunks: list[TextChunk] = []
        min_chars = self.chunk_chars * MIN_CHUNK_RATIO
        for index, start in enumerate(range(0, len(full_text), self.step_chars)):
            text = full_text[start:start + self.chunk_chars]
            if len(text) < min_chars and start > 0:
                break
            chunks.append(self._make_chunk(work_id, index, text, metadata))

        return chunks

    def get_chunk_text(self, full_text: str, chunk_index: int) -> str:
        """
        Rebuild the text of chunk ``chunk_index`` from the full note text.

        Returns exactly the slice chunk_work_note produced for the same input
        and configuration.
        """
        start = chunk_index * self.step_chars
        return full_text[start:start + self.chunk_chars]

    def _make_chunk(
        self,
        work_id: str,
        chunk_index: int,
        text: str,
        metadata: dict[str, Any],
    ) -> TextChunk:
        return TextChunk(
            id=generate_chunk_id(work_id, chunk_index),
            text=text,
            metadata=ChunkMetadata(
                work_id=work_id,
                scope="WORK",
                chunk_index=chunk_index,
                **metadata,
            ),
        )
