"""
Test suite for vector metadata encoding.

Tests the byte budget on string fields, whole-id dropping for person lists
and decoding of store metadata back into ChunkMetadata.

System role: Verification of metadata codec
"""

import pytest

from notegraph.core.metadata_codec import (
    decode_metadata,
    decode_person_ids,
    encode_metadata,
    encode_person_ids_with_limit,
    truncate_to_bytes,
)
from notegraph.models.chunk import ChunkMetadata


class TestTruncateToBytes:
    """Test suite for truncate_to_bytes()."""

    def test_should_return_short_value_unchanged(self) -> None:
        assert truncate_to_bytes("Finance", 60) == "Finance"

    def test_should_cut_ascii_at_budget(self) -> None:
        assert truncate_to_bytes("a" * 70, 60) == "a" * 60

    @pytest.mark.parametrize("budget, expected", [(3, "가"), (4, "가"), (5, "가"), (6, "가나")])
    def test_should_not_split_multibyte_codepoints(self, budget: int, expected: str) -> None:
        """Test a cut inside a 3-byte Hangul syllable backs off to the previous one."""
        # Act
        result = truncate_to_bytes("가나다", budget)

        # Assert
        assert result == expected
        assert len(result.encode("utf-8")) <= budget

    def test_should_handle_mixed_width_text(self) -> None:
        """Test every cut point of mixed text stays decodable and within budget."""
        # Arrange
        value = "Team é 財務 report"

        # Act & Assert
        for budget in range(len(value.encode("utf-8")) + 1):
            result = truncate_to_bytes(value, budget)
            assert value.startswith(result)
            assert len(result.encode("utf-8")) <= budget


class TestPersonIdEncoding:
    """Test suite for person ID list encoding."""

    def test_should_drop_whole_trailing_ids(self) -> None:
        """Test 12 five-byte IDs keep the first 10 (59 bytes) under a 60-byte budget."""
        # Arrange
        person_ids = [f"P-{i:03d}" for i in range(1, 13)]

        # Act
        encoded = encode_person_ids_with_limit(person_ids, 60)

        # Assert
        assert len(encoded.encode("utf-8")) == 59
        assert decode_person_ids(encoded) == person_ids[:10]

    def test_should_keep_everything_within_budget(self) -> None:
        assert encode_person_ids_with_limit(["P-001", "P-002"], 60) == "P-001,P-002"

    def test_decode_should_return_empty_list_for_missing_value(self) -> None:
        assert decode_person_ids(None) == []
        assert decode_person_ids("") == []


class TestEncodeMetadata:
    """Test suite for encode_metadata()."""

    def test_should_truncate_fields_and_omit_absent_ones(self) -> None:
        """Test dept_name is truncated and missing category is omitted."""
        # Arrange
        metadata = ChunkMetadata(
            work_id="WORK-1",
            chunk_index=2,
            person_ids=["P-001"],
            dept_name="D" * 80,
            created_at_bucket="2025-03-14",
        )

        # Act
        encoded = encode_metadata(metadata, max_bytes=60)

        # Assert
        assert encoded == {
            "work_id": "WORK-1",
            "scope": "WORK",
            "chunk_index": "2",
            "person_ids": "P-001",
            "dept_name": "D" * 60,
            "created_at_bucket": "2025-03-14",
        }


class TestDecodeMetadata:
    """Test suite for decode_metadata()."""

    def test_should_decode_store_metadata(self) -> None:
        # Act
        result = decode_metadata({
            "work_id": "WORK-1",
            "scope": "WORK",
            "chunk_index": "3",
            "person_ids": "P-001,P-002",
            "category": "report",
            "created_at_bucket": "2025-03-14",
        })

        # Assert
        assert result.ok
        assert result.value.chunk_index == 3
        assert result.value.person_ids == ["P-001", "P-002"]
        assert result.value.dept_name is None

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            {},
            {"chunk_index": "1"},
            {"work_id": "WORK-1", "chunk_index": "abc"},
            {"work_id": "WORK-1", "chunk_index": "-1"},
        ],
    )
    def test_should_fail_on_incomplete_metadata(self, raw: dict | None) -> None:
        """Test missing work_id or an invalid chunk_index yields an error result."""
        assert not decode_metadata(raw).ok
