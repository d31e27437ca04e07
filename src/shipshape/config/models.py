"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SHIPSHAPE__SECTION__KEY)
3. Repo YAML (<root>/.shipshape.yml) or an explicit --config file
4. Global YAML (~/.config/shipshape/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    SHIPSHAPE__<SECTION>__<KEY>=<VALUE>

Examples:
    SHIPSHAPE__LOGGING__LEVEL=DEBUG
    SHIPSHAPE__DISCOVERY__TIMEOUT_SEC=60
    SHIPSHAPE__DISCOVERY__PRIMARY_THRESHOLD=15
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from shipshape.core.excludes import DEFAULT_EXCLUDE_PATTERNS

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_PRIMARY_THRESHOLD = 10.0
DEFAULT_TIMEOUT_SEC = 30.0


class LogOutputConfig(BaseModel):
    """One log destination. Configured in YAML only (lists do not map to env vars)."""

    format: Literal["json", "console"] = "console"
    # "stderr", "stdout" or an absolute file path; stdout mixes with --json output
    destination: str = "stderr"
    level: LogLevel | None = None  # None: use LoggingConfig.level

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"Log file destination must be an absolute path, got {v!r}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SHIPSHAPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Discovery results go to stdout, logs to stderr.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DiscoveryConfig(BaseModel):
    """Repository discovery configuration.

    Env vars:
        SHIPSHAPE__DISCOVERY__PRIMARY_THRESHOLD: Percentage marking a language primary
        SHIPSHAPE__DISCOVERY__TIMEOUT_SEC: Hard deadline for one discovery run
        SHIPSHAPE__DISCOVERY__INCLUDE_HIDDEN: Walk all hidden entries
    """

    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        description="Path segments never descended into. Replaces the defaults when set.",
    )
    include_hidden: bool = Field(
        default=False,
        description="Include every hidden entry, not only allow-listed config dotfiles.",
    )
    primary_threshold: float = Field(
        default=DEFAULT_PRIMARY_THRESHOLD,
        description="A language at or above this share of classified files is primary.",
    )
    min_presence: float = Field(
        default=1.0,
        description="Languages below this share skip infrastructure hinting.",
    )
    timeout_sec: float = Field(
        default=DEFAULT_TIMEOUT_SEC,
        description="Hard deadline for a discovery run. Exceeding it is an error, "
        "partial results are never returned.",
    )
    workspace_max_depth: int = Field(
        default=4,
        description="Directory depth walked inside each workspace member to infer its language.",
    )

    @field_validator("primary_threshold", "min_presence")
    @classmethod
    def validate_percentage(cls, v: float) -> float:
        if not (0.0 <= v <= 100.0):
            raise ValueError(f"Percentage must be 0-100, got {v}")
        return v

    @field_validator("timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    @field_validator("workspace_max_depth")
    @classmethod
    def validate_depth(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Depth must be at least 1, got {v}")
        return v


class ShipShapeConfig(BaseModel):
    """Root configuration for Ship Shape.

    All settings can be configured via:
    1. Environment variables: SHIPSHAPE__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
