"""Tests for error types and codes."""

import dataclasses

import pytest

from symdiff.core.errors import (
    ConfigError,
    DiffError,
    ErrorCode,
    SymdiffError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_INVALID_VALUE, 2000),
            (ErrorCode.CONFIG_FILE_NOT_FOUND, 2000),
            (ErrorCode.BASELINE_NOT_SET, 3000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        assert expected_range <= code.value < expected_range + 1000


class TestSymdiffError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = SymdiffError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_includes_code_and_name(self) -> None:
        """String form carries numeric code, name and message."""
        error = SymdiffError(code=ErrorCode.BASELINE_NOT_SET, message="boom")
        assert str(error) == "[3001] BASELINE_NOT_SET: boom"

    def test_given_error_when_mutated_then_rejected(self) -> None:
        """Errors are immutable once raised."""
        error = SymdiffError(code=ErrorCode.BASELINE_NOT_SET, message="boom")
        with pytest.raises(dataclasses.FrozenInstanceError):
            error.message = "changed"  # type: ignore[misc]

    def test_given_error_when_raised_then_catchable_as_exception(self) -> None:
        """Subclasses are catchable through the base class."""
        with pytest.raises(SymdiffError) as exc_info:
            raise DiffError.baseline_not_set("analyze_file")
        assert exc_info.value.retryable is False


class TestFactories:
    """Classmethod constructor tests."""

    def test_parse_error(self) -> None:
        error = ConfigError.parse_error("/tmp/config.yaml", "bad indent")
        assert error.code == ErrorCode.CONFIG_PARSE_ERROR
        assert "/tmp/config.yaml" in error.message
        assert error.details == {"path": "/tmp/config.yaml", "reason": "bad indent"}

    def test_invalid_value_stringifies_value(self) -> None:
        error = ConfigError.invalid_value("diff.debounce_sec", -1, "must be >= 0")
        assert error.code == ErrorCode.CONFIG_INVALID_VALUE
        assert error.details == {
            "field": "diff.debounce_sec",
            "value": "-1",
            "reason": "must be >= 0",
        }

    def test_file_not_found(self) -> None:
        error = ConfigError.file_not_found("/nowhere.yaml")
        assert error.code == ErrorCode.CONFIG_FILE_NOT_FOUND
        assert error.details["path"] == "/nowhere.yaml"

    def test_baseline_not_set(self) -> None:
        error = DiffError.baseline_not_set("analyze_graph")
        assert error.code == ErrorCode.BASELINE_NOT_SET
        assert error.error_name == "BASELINE_NOT_SET"
        assert "analyze_graph" in error.message
        assert "set_baseline()" in error.message
        assert error.details == {"operation": "analyze_graph"}
