"""Tests for lunchdash.log handler setup."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.logging import RichHandler

from lunchdash.log import DASHBOARD_LOG_FILE, configure_dashboard_logging, configure_logging


@pytest.fixture(autouse=True)
def restore_package_logger() -> Iterator[None]:
    logger = logging.getLogger("lunchdash")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


class TestConfigureLogging:
    """Tests for the command-line logging setup."""

    def test_terminal_handler(self) -> None:
        """Should install one RichHandler at INFO."""
        logger = configure_logging()
        assert [type(h) for h in logger.handlers] == [RichHandler]
        assert logger.level == logging.INFO

    def test_debug_level(self) -> None:
        """Should log at DEBUG with debug on."""
        assert configure_logging(debug=True).level == logging.DEBUG

    def test_replaces_handlers(self) -> None:
        """Should not stack handlers when called twice."""
        configure_logging()
        assert len(configure_logging().handlers) == 1


class TestConfigureDashboardLogging:
    """Tests for logging while the live display is up."""

    def test_errors_never_reach_terminal(self) -> None:
        """Should drop every record without debug, errors included."""
        logger = configure_dashboard_logging(debug=False)
        assert not any(isinstance(h, RichHandler) for h in logger.handlers)
        assert not logger.isEnabledFor(logging.ERROR)
        assert not logger.isEnabledFor(logging.CRITICAL)
        assert not logging.getLogger("lunchdash.dashboard.machine").isEnabledFor(logging.ERROR)

    def test_debug_writes_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should send debug records to the log file in the working directory."""
        monkeypatch.chdir(tmp_path)
        logger = configure_dashboard_logging(debug=True)
        logging.getLogger("lunchdash.dashboard.machine").error("Fetching tags failed")
        for handler in logger.handlers:
            handler.flush()

        assert [type(h) for h in logger.handlers] == [logging.FileHandler]
        assert "Fetching tags failed" in (tmp_path / DASHBOARD_LOG_FILE).read_text()
        for handler in logger.handlers:
            handler.close()
