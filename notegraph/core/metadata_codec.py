"""
Vector metadata encoding under a per-field byte budget.

The vector store rejects string metadata values over 64 bytes, so every
string field is held to a 60-byte budget: free-text fields are cut on a
UTF-8 codepoint boundary and the person list drops whole trailing ids.

Dependencies: notegraph.models.chunk
System role: Encode/decode chunk metadata for the vector store
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from notegraph.core.decoding import DecodeResult
from notegraph.models.chunk import ChunkMetadata

DEFAULT_MAX_BYTES = 60
PERSON_ID_SEPARATOR = ","


def truncate_to_bytes(value: str, max_bytes: int) -> str:
    """
    Truncate ``value`` to at most ``max_bytes`` UTF-8 bytes.

    Never splits a multi-byte codepoint: continuation bytes at the cut are
    trimmed before decoding.

    Args:
        value: String to truncate
        max_bytes: Byte budget

    Returns:
        str: Longest codepoint-aligned prefix within the budget
    """
    encoded = value.encode("utf-8")
    if len(encoded) <= max_bytes:
        return value

    cut = max(max_bytes, 0)
    # Step back while the byte at the cut is a continuation byte (10xxxxxx).
    while cut > 0 and (encoded[cut] & 0xC0) == 0x80:
        cut -= 1
    return encoded[:cut].decode("utf-8")


def encode_person_ids(person_ids: list[str]) -> str:
    return PERSON_ID_SEPARATOR.join(person_ids)


def decode_person_ids(encoded: str | None) -> list[str]:
    return encoded.split(PERSON_ID_SEPARATOR) if encoded else []


def encode_person_ids_with_limit(person_ids: list[str], max_bytes: int) -> str:
    """
    Join person IDs, dropping whole trailing IDs that would exceed the budget.

    Every ID that survives is intact and decodable.
    """
    kept: list[str] = []
    used = 0
    for person_id in person_ids:
        addition = person_id if not kept else f"{PERSON_ID_SEPARATOR}{person_id}"
        size = used + len(addition.encode("utf-8"))
        if size > max_bytes:
            break
        kept.append(person_id)
        used = size
    return encode_person_ids(kept)


def encode_metadata(
    metadata: ChunkMetadata,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> dict[str, str]:
    """
    Encode chunk metadata into the flat string map stored with each vector.

    Args:
        metadata: Chunk metadata
        max_bytes: Byte budget per string field

    Returns:
        dict[str, str]: Store-ready metadata; absent optional fields are omitted
    """
    encoded: dict[str, str] = {
        "work_id": metadata.work_id,
        "scope": metadata.scope,
        "chunk_index": str(metadata.chunk_index),
    }
    if metadata.person_ids:
        encoded["person_ids"] = encode_person_ids_with_limit(metadata.person_ids, max_bytes)
    if metadata.dept_name:
        encoded["dept_name"] = truncate_to_bytes(metadata.dept_name, max_bytes)
    if metadata.category:
        encoded["category"] = truncate_to_bytes(metadata.category, max_bytes)
    if metadata.created_at_bucket:
        encoded["created_at_bucket"] = metadata.created_at_bucket
    return encoded


def decode_metadata(raw: dict[str, Any] | None) -> DecodeResult[ChunkMetadata]:
    """
    Decode store metadata back into ChunkMetadata.

    Args:
        raw: Metadata map returned by the vector store

    Returns:
        DecodeResult with ChunkMetadata, or an error describing what is missing
    """
    if not raw:
        return DecodeResult.failure("Missing metadata")
    if not raw.get("work_id"):
        return DecodeResult.failure("Metadata has no work_id")

    chunk_index = raw.get("chunk_index")
    try:
        index = int(chunk_index)
    except (TypeError, ValueError):
        return DecodeResult.failure(f"Invalid chunk_index: {chunk_index!r}")

    try:
        return DecodeResult.success(
            ChunkMetadata(
                work_id=str(raw["work_id"]),
                scope=str(raw.get("scope") or "WORK"),
                chunk_index=index,
                person_ids=decode_person_ids(raw.get("person_ids")) or None,
                dept_name=raw.get("dept_name") or None,
                category=raw.get("category") or None,
                created_at_bucket=str(raw.get("created_at_bucket") or ""),
            )
        )
    except PydanticValidationError as e:
        return DecodeResult.failure(f"Invalid metadata: {e.error_count()} errors")
