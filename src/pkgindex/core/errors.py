"""pkgindex error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Scan
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2003
    CONFIG_UNKNOWN_COMPILER = 2004

    # Scan (3xxx)
    SCAN_ROOT_UNREADABLE = 3001
    SCAN_VISIT_FAILED = 3002


@dataclass(frozen=True, slots=True)
class PkgIndexError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'SCAN_ROOT_UNREADABLE')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(PkgIndexError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )

    @classmethod
    def unknown_compiler(cls, compiler: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_UNKNOWN_COMPILER,
            message=f"Unknown compiler {compiler!r} (expected 'gc' or 'gccgo')",
            details={"compiler": compiler},
        )


class ScanError(PkgIndexError):
    """Errors surfaced by a root scan.

    A scan error never wedges the index: the scanner still evicts stale
    entries before raising it.
    """

    @classmethod
    def root_unreadable(cls, root: str, reason: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCAN_ROOT_UNREADABLE,
            message=f"Cannot read scan root {root}: {reason}",
            retryable=True,
            details={"root": root, "reason": reason},
        )

    @classmethod
    def visit_failed(cls, path: str, reason: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCAN_VISIT_FAILED,
            message=f"Failed to visit {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

