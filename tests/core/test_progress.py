"""Tests for core/progress.py module.

Covers the spinner, status marks, pluralization, console log
suppression and the shared stderr console.
"""

from __future__ import annotations

import logging
import sys
import threading
from io import StringIO
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console

from shipshape.core.logging import ConsoleSuppressingFilter
from shipshape.core.progress import (
    _is_tty,
    configure_console,
    format_status,
    get_console,
    is_console_suppressed,
    pluralize,
    spinner,
    status,
    suppress_console_logs,
)


class TestIsTty:
    """Tests for _is_tty function."""

    def test_returns_bool(self) -> None:
        """Returns a boolean."""
        result = _is_tty()
        assert isinstance(result, bool)

    def test_false_for_stringio(self) -> None:
        """Returns False for non-TTY stderr."""
        original = sys.stderr
        try:
            sys.stderr = StringIO()
            assert _is_tty() is False
        finally:
            sys.stderr = original


class TestFormatStatus:
    """Tests for format_status."""

    @pytest.mark.parametrize(
        ("style", "expected"),
        [
            ("success", "[green]✓[/green] done"),
            ("warning", "[yellow]![/yellow] done"),
            ("error", "[red]✗[/red] done"),
            ("info", "  done"),
        ],
    )
    def test_known_styles(self, style: str, expected: str) -> None:
        assert format_status("done", style) == expected

    def test_unknown_style_is_bare(self) -> None:
        assert format_status("done", "sparkle") == "done"


class TestStatus:
    """Tests for status function."""

    def test_prints_message(self) -> None:
        """Prints a message to console."""
        with patch("shipshape.core.progress._console") as mock_console:
            status("Test message")
            mock_console.print.assert_called_once()

    def test_warning_style(self) -> None:
        """Applies warning style."""
        with patch("shipshape.core.progress._console") as mock_console:
            status("Completed with 2 warnings", style="warning")
            call_args = mock_console.print.call_args[0][0]
            assert "!" in call_args
            assert "Completed with 2 warnings" in call_args

    def test_logs_at_debug(self) -> None:
        """Status lines are mirrored to the debug log."""
        with (
            patch("shipshape.core.progress._console"),
            patch("shipshape.core.progress.log") as mock_log,
        ):
            status("Discovered", style="success")
            mock_log.debug.assert_called_once_with("status", message="Discovered", style="success")


class TestPluralize:
    """Tests for pluralize function."""

    def test_singular_count_one(self) -> None:
        assert pluralize(1, "file") == "1 file"

    def test_plural_count_zero(self) -> None:
        assert pluralize(0, "file") == "0 files"

    def test_plural_count_multiple(self) -> None:
        assert pluralize(3, "warning") == "3 warnings"

    def test_custom_plural(self) -> None:
        assert pluralize(2, "directory", "directories") == "2 directories"


class TestSpinner:
    """Tests for spinner context manager."""

    def test_non_tty_prints_nothing(self) -> None:
        """Piped output stays clean."""
        with (
            patch("shipshape.core.progress._is_tty", return_value=False),
            patch("shipshape.core.progress._console") as mock_console,
        ):
            with spinner("Discovering"):
                pass
            mock_console.print.assert_not_called()
            mock_console.status.assert_not_called()

    def test_tty_mode_uses_console_status(self) -> None:
        """TTY mode uses console.status and suppresses console logs."""
        mock_status = MagicMock()
        mock_status.__enter__ = MagicMock(return_value=None)
        mock_status.__exit__ = MagicMock(return_value=None)

        with (
            patch("shipshape.core.progress._is_tty", return_value=True),
            patch("shipshape.core.progress._console") as mock_console,
        ):
            mock_console.status.return_value = mock_status
            with spinner("Processing"):
                assert is_console_suppressed()
            mock_console.status.assert_called_once()
        assert not is_console_suppressed()

    def test_disabled_on_tty(self) -> None:
        """enabled=False skips the live display even on a TTY."""
        with (
            patch("shipshape.core.progress._is_tty", return_value=True),
            patch("shipshape.core.progress._console") as mock_console,
        ):
            with spinner("Processing", enabled=False):
                pass
            mock_console.status.assert_not_called()


class TestSuppressConsoleLogs:
    """Tests for suppress_console_logs context manager."""

    def test_sets_suppression_flag(self) -> None:
        """Flag is set during context."""
        assert not is_console_suppressed()
        with suppress_console_logs():
            assert is_console_suppressed()
        assert not is_console_suppressed()

    def test_clears_flag_on_exception(self) -> None:
        """Flag is cleared even on exception."""
        with pytest.raises(ValueError), suppress_console_logs():
            assert is_console_suppressed()
            raise ValueError("test")
        assert not is_console_suppressed()

    def test_nested_contexts(self) -> None:
        with suppress_console_logs():
            with suppress_console_logs():
                pass
            assert is_console_suppressed()
        assert not is_console_suppressed()

    def test_visible_from_worker_threads(self) -> None:
        """Discovery logs from worker threads must also be held back."""
        seen: list[bool] = []
        with suppress_console_logs():
            worker = threading.Thread(target=lambda: seen.append(is_console_suppressed()))
            worker.start()
            worker.join()
        assert seen == [True]


class TestConsoleSuppressingFilter:
    """Tests for ConsoleSuppressingFilter class."""

    def test_allows_logs_when_not_suppressed(self) -> None:
        """Logs pass through when not suppressed."""
        filt = ConsoleSuppressingFilter()
        record = logging.LogRecord("test", logging.INFO, "test.py", 1, "test message", (), None)
        assert filt.filter(record) is True

    def test_blocks_logs_when_suppressed(self) -> None:
        """Logs are blocked when suppressed."""
        filt = ConsoleSuppressingFilter()
        record = logging.LogRecord("test", logging.INFO, "test.py", 1, "test message", (), None)
        with suppress_console_logs():
            assert filt.filter(record) is False


class TestConsole:
    """Tests for the shared console."""

    def test_returns_console_instance(self) -> None:
        assert isinstance(get_console(), Console)

    def test_configure_replaces_shared_console(self) -> None:
        """configure_console() swaps in a new console writing to stderr."""
        console = configure_console(no_color=True)
        assert get_console() is console
        assert console.no_color is True
        assert console.stderr is True
