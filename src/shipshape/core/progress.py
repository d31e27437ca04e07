"""Terminal feedback for the CLI: a spinner and one-line status marks.

stdout carries the discovery report, so all feedback goes to stderr. When
stderr is not a terminal (CI, pipes, redirects) the spinner draws nothing.

Usage::

    with spinner("Discovering repo"):
        repo = engine.discover(root)

    status(f"Completed with {pluralize(2, 'warning')}", style="warning")
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console

from shipshape.core.logging import get_logger

log = get_logger("progress")

_console = Console(stderr=True, highlight=False)

# style -> (mark, rich color)
_MARKS: dict[str, tuple[str, str | None]] = {
    "success": ("✓", "green"),
    "warning": ("!", "yellow"),
    "error": ("✗", "red"),
    "info": (" ", None),
}

# Discovery logs from worker threads, so suppression is process-wide
_suppress_lock = threading.Lock()
_suppress_depth = 0


def is_console_suppressed() -> bool:
    return _suppress_depth > 0


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Hold back console log records while a live display is drawn."""
    global _suppress_depth
    with _suppress_lock:
        _suppress_depth += 1
    try:
        yield
    finally:
        with _suppress_lock:
            _suppress_depth -= 1


def _is_tty() -> bool:
    isatty = getattr(sys.stderr, "isatty", None)
    return bool(isatty and isatty())


def get_console() -> Console:
    return _console


def configure_console(*, no_color: bool = False) -> Console:
    """Replace the shared stderr console, e.g. for ``--no-color``."""
    global _console
    _console = Console(stderr=True, no_color=no_color, highlight=False)
    return _console


def format_status(message: str, style: str = "info") -> str:
    """Prefix ``message`` with the rich markup for ``style``.

    Unknown styles render the bare message.
    """
    if style not in _MARKS:
        return message
    mark, color = _MARKS[style]
    return f"[{color}]{mark}[/{color}] {message}" if color else f"{mark} {message}"


def status(message: str, *, style: str = "info") -> None:
    _console.print(format_status(message, style))
    log.debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``pluralize(1, "file")`` -> "1 file", ``pluralize(3, "file")`` -> "3 files"."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


@contextmanager
def spinner(message: str, *, enabled: bool = True) -> Iterator[None]:
    """Animate a spinner on stderr for the duration of the block.

    Draws nothing when disabled or when stderr is not a terminal.
    """
    if not (enabled and _is_tty()):
        yield
        return
    with suppress_console_logs(), _console.status(f"[cyan]{message}[/cyan]", spinner="dots"):
        yield
