"""Tests for structured logging."""

import json
import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from pkgindex.config.models import LoggingConfig, LogOutputConfig
from pkgindex.core.logging import (
    clear_scan_id,
    configure_logging,
    get_log_file_path,
    get_logger,
    get_scan_id,
    set_scan_id,
)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Reset structlog and stdlib logging around each test."""
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
    clear_scan_id()
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    structlog.reset_defaults()
    clear_scan_id()


class TestScanIdCorrelation:
    """Scan ID context variable tests."""

    def test_given_scan_id_when_set_then_can_retrieve(self) -> None:
        """Scan ID can be set and retrieved."""
        assert set_scan_id("scan-123") == "scan-123"
        assert get_scan_id() == "scan-123"

    def test_given_no_id_when_set_then_generates_uuid(self) -> None:
        """Set generates a short UUID-based ID when none provided."""
        sid = set_scan_id()

        assert len(sid) == 12  # uuid4().hex[:12]
        assert get_scan_id() == sid

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_scan_id("to-clear")

        clear_scan_id()

        assert get_scan_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def test_given_json_file_output_when_log_then_valid_json(self, tmp_path: Path) -> None:
        """JSON output carries event, fields, level and timestamp."""
        # Given
        log_file = tmp_path / "pkgindex.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )

        # When
        get_logger("test").info("scan_finished", packages=3)

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "scan_finished"
        assert data["packages"] == 3
        assert data["level"] == "info"
        assert data["logger"] == "test"
        assert "timestamp" in data
        assert get_log_file_path() == log_file

    def test_given_scan_id_when_log_then_attached(self, tmp_path: Path) -> None:
        """Records emitted during an update carry the scan ID."""
        # Given
        log_file = tmp_path / "scan.log"
        configure_logging(
            config=LoggingConfig(
                outputs=[LogOutputConfig(format="json", destination=str(log_file), level="DEBUG")],
                level="DEBUG",
            )
        )
        set_scan_id("abc123")

        # When
        get_logger().debug("entry_evicted", dir="/gopath/src/a")
        clear_scan_id()
        get_logger().debug("after")

        # Then
        first, second = (json.loads(line) for line in log_file.read_text().splitlines())
        assert first["scan_id"] == "abc123"
        assert "scan_id" not in second

    def test_given_stdlib_logger_when_log_then_same_format(self, tmp_path: Path) -> None:
        """Foreign stdlib records go through the same pipeline."""
        log_file = tmp_path / "foreign.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )

        logging.getLogger("third.party").warning("plain %s", "record")

        data = json.loads(log_file.read_text().strip())
        assert data["event"] == "plain record"
        assert data["level"] == "warning"

    def test_given_multi_output_config_when_configure_then_levels_respected(
        self, tmp_path: Path
    ) -> None:
        """Each output filters by its own level, inheriting the root level."""
        # Given
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        # When
        configure_logging(config=config)
        logger = get_logger()
        logger.debug("dir_unreadable")
        logger.info("update_finished")

        # Then
        info_content = info_file.read_text()
        assert "update_finished" in info_content
        assert "dir_unreadable" not in info_content
        debug_content = debug_file.read_text()
        assert "dir_unreadable" in debug_content
        assert "update_finished" in debug_content

    def test_given_reconfigure_when_called_then_old_handlers_closed(self, tmp_path: Path) -> None:
        """Reconfiguring replaces handlers instead of stacking them."""
        log_file = tmp_path / "a.log"
        config = LoggingConfig(outputs=[LogOutputConfig(destination=str(log_file))])

        configure_logging(config=config)
        configure_logging(config=config)

        assert len(logging.getLogger().handlers) == 1

    def test_given_relative_destination_when_validated_then_rejected(self) -> None:
        with pytest.raises(ValueError, match="absolute"):
            LogOutputConfig(destination="relative/file.log")

    def test_given_console_only_when_configured_then_no_log_file(self) -> None:
        configure_logging(level="DEBUG")

        assert get_log_file_path() is None
        assert logging.getLogger().level == logging.DEBUG
