"""Core module exports."""

from pkgindex.core.errors import (
    ConfigError,
    ErrorCode,
    PkgIndexError,
    ScanError,
)
from pkgindex.core.logging import (
    clear_scan_id,
    configure_logging,
    get_logger,
    get_scan_id,
    set_scan_id,
)

__all__ = [
    # Errors
    "PkgIndexError",
    "ConfigError",
    "ErrorCode",
    "ScanError",
    # Logging
    "clear_scan_id",
    "configure_logging",
    "get_logger",
    "get_scan_id",
    "set_scan_id",
]
