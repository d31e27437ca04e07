"""Logging setup for discovery runs.

structlog builds every event and stdlib logging routes the rendered records
to the configured outputs. Each output (stderr, stdout or an absolute file
path) has its own format and level; stdout carries the discovery report, so
the default output is stderr.

Every event emitted while a run is bound carries its ``run_id``, which ties
together the walker, detector and engine events of one discovery pass.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from shipshape.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_CONSOLE_DESTINATIONS = ("stderr", "stdout")


# =============================================================================
# Run correlation
# =============================================================================


def current_run_id() -> str | None:
    return _run_id.get()


def bind_run_id(run_id: str | None = None) -> str:
    """Bind (or generate) the id attached to every event of this run."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def unbind_run_id() -> None:
    _run_id.set(None)


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := current_run_id():
        event_dict["run_id"] = rid
    return event_dict


# =============================================================================
# Handlers
# =============================================================================


class ConsoleSuppressingFilter(logging.Filter):
    """Drop console records while a Rich live display owns the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        # progress imports this module
        from shipshape.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _open_handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _build_formatter(
    output: LogOutputConfig,
    pre_chain: list[structlog.types.Processor],
    *,
    colors: bool,
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
    colors: bool = True,
) -> None:
    """(Re)configure logging. Safe to call more than once per process.

    Args:
        config: Full configuration with per-output settings. When given,
            ``json_format`` and ``level`` are ignored.
        json_format: Single stderr output rendered as JSON lines.
        level: Level for the single stderr output.
        colors: Allow ANSI colors on console outputs attached to a TTY.
    """
    from shipshape.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level.upper(),  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = LEVELS.get(config.level.upper(), logging.INFO)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Uncached so a later configure_logging() call (e.g. after --config) applies
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(root_level)

    for output in config.outputs:
        is_console = output.destination in _CONSOLE_DESTINATIONS
        handler = _open_handler(output.destination)
        handler.setLevel(LEVELS.get((output.level or config.level).upper(), root_level))
        handler.setFormatter(
            _build_formatter(output, pre_chain, colors=colors and is_console and sys.stderr.isatty())
        )
        if is_console:
            handler.addFilter(ConsoleSuppressingFilter())
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Lazy logger, resolved against whatever configuration is current at call time.

    Safe to create at import time: nothing binds until the first event. The
    name becomes the stdlib logger name and shows up as the "logger" field.
    """
    if name:
        return structlog.get_logger(name)  # type: ignore[no-any-return]
    return structlog.get_logger()  # type: ignore[no-any-return]
