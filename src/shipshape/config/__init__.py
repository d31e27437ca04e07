"""Config module exports."""

from shipshape.config.loader import config_files, load_config
from shipshape.config.models import (
    DiscoveryConfig,
    LoggingConfig,
    LogOutputConfig,
    ShipShapeConfig,
)

__all__ = [
    "config_files",
    "load_config",
    "ShipShapeConfig",
    "DiscoveryConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
