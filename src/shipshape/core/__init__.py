"""Core module exports."""

from shipshape.core.errors import (
    ConfigError,
    DiscoveryError,
    ErrorCode,
    InternalError,
    ShipShapeError,
)
from shipshape.core.logging import (
    bind_run_id,
    configure_logging,
    current_run_id,
    get_logger,
    unbind_run_id,
)
from shipshape.core.progress import pluralize, spinner, status

__all__ = [
    # Errors
    "ConfigError",
    "DiscoveryError",
    "ErrorCode",
    "InternalError",
    "ShipShapeError",
    # Logging
    "bind_run_id",
    "configure_logging",
    "current_run_id",
    "get_logger",
    "unbind_run_id",
    # Progress
    "pluralize",
    "spinner",
    "status",
]
