"""Tests for error types and codes."""

import pytest

from pkgindex.core.errors import (
    ConfigError,
    ErrorCode,
    PkgIndexError,
    ScanError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_UNKNOWN_COMPILER, 2000),
            (ErrorCode.SCAN_ROOT_UNREADABLE, 3000),
            (ErrorCode.SCAN_VISIT_FAILED, 3000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        assert expected_range <= code.value < expected_range + 1000


class TestPkgIndexError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = PkgIndexError(
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

    def test_given_error_when_str_then_human_readable(self) -> None:
        """Error string representation is human readable."""
        error = PkgIndexError(code=ErrorCode.SCAN_VISIT_FAILED, message="Something broke")

        assert str(error) == "[3002] SCAN_VISIT_FAILED: Something broke"

    def test_given_error_when_raised_then_catchable_as_exception(self) -> None:
        """Errors are real exceptions and keep their fields when caught."""
        with pytest.raises(PkgIndexError) as exc_info:
            raise ScanError.root_unreadable("/gopath/src", "gone")

        assert exc_info.value.error_name == "SCAN_ROOT_UNREADABLE"


class TestConfigError:
    """ConfigError factory method tests."""

    @pytest.mark.parametrize(
        ("factory", "kwargs", "expected_code"),
        [
            ("parse_error", {"path": "/foo", "reason": "bad yaml"}, ErrorCode.CONFIG_PARSE_ERROR),
            (
                "invalid_value",
                {"field": "walker.max_workers", "value": 0, "reason": "too small"},
                ErrorCode.CONFIG_INVALID_VALUE,
            ),
            ("file_not_found", {"path": "/missing"}, ErrorCode.CONFIG_FILE_NOT_FOUND),
            ("unknown_compiler", {"compiler": "tinygo"}, ErrorCode.CONFIG_UNKNOWN_COMPILER),
        ],
    )
    def test_given_factory_when_called_then_correct_code(
        self, factory: str, kwargs: dict[str, object], expected_code: ErrorCode
    ) -> None:
        """Factory methods produce errors with correct error codes."""
        error = getattr(ConfigError, factory)(**kwargs)

        assert error.code == expected_code
        assert not error.retryable

    def test_given_unknown_compiler_when_created_then_names_compiler(self) -> None:
        error = ConfigError.unknown_compiler("tinygo")

        assert error.details == {"compiler": "tinygo"}
        assert "'tinygo'" in error.message


class TestScanError:
    """ScanError factory method tests."""

    def test_given_unreadable_root_when_created_then_retryable(self) -> None:
        """Scan errors are transient: the next refresh may succeed."""
        error = ScanError.root_unreadable("/gopath/src", "permission denied")

        assert error.code == ErrorCode.SCAN_ROOT_UNREADABLE
        assert error.retryable
        assert error.details["root"] == "/gopath/src"
        assert "permission denied" in error.message

    def test_given_visit_failure_when_created_then_path_in_details(self) -> None:
        error = ScanError.visit_failed("/gopath/src/a", "boom")

        assert error.code == ErrorCode.SCAN_VISIT_FAILED
        assert error.retryable
        assert error.details == {"path": "/gopath/src/a", "reason": "boom"}

