"""
Test suite for DecodeResult.

System role: Verification of fallible decode values
"""

from notegraph.core.decoding import DecodeResult


class TestDecodeResult:
    """Test suite for DecodeResult."""

    def test_success_should_expose_value(self) -> None:
        result = DecodeResult.success(("WORK-1", 0))
        assert result.ok
        assert result.unwrap_or(("x", -1)) == ("WORK-1", 0)

    def test_failure_should_fall_back_to_default(self) -> None:
        result = DecodeResult.failure("bad id")
        assert not result.ok
        assert result.error == "bad id"
        assert result.unwrap_or("default") == "default"
