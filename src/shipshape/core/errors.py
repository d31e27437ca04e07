"""Fatal error types for discovery runs.

Codes are grouped by the stage that raises them:

- 1xxx: configuration (loading ``.shipshape.yml``, env vars, overrides)
- 2xxx: discovery (root checks, deadline, cancellation)
- 9xxx: internal

Only conditions that abort a run are exceptions. Per-item problems (an
unreadable file, a malformed manifest, a failing recognizer) become
``DiscoveryWarning`` entries on the result.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    CONFIG_PARSE_ERROR = 1001
    CONFIG_INVALID_VALUE = 1002
    CONFIG_FILE_NOT_FOUND = 1003

    DISCOVERY_ROOT_NOT_FOUND = 2001
    DISCOVERY_ROOT_UNREADABLE = 2002
    DISCOVERY_TIMEOUT = 2003
    DISCOVERY_CANCELLED = 2004

    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class ShipShapeError(Exception):
    """Base error: a typed code, a user-facing message and structured details."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        return self.code.name

    @property
    def path(self) -> str | None:
        """Path the error is about (repository root or config file), if any."""
        value = self.details.get("path")
        return str(value) if value is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": int(self.code),
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": dict(self.details),
        }

    def __str__(self) -> str:
        return f"{self.error_name} ({int(self.code)}): {self.message}"


class ConfigError(ShipShapeError):
    """A config layer could not be read or holds an invalid setting."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            ErrorCode.CONFIG_PARSE_ERROR,
            f"Cannot parse config file {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, setting: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"Invalid setting '{setting}': {reason}",
            details={"setting": setting, "value": repr(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            ErrorCode.CONFIG_FILE_NOT_FOUND,
            f"Config file does not exist: {path}",
            details={"path": path},
        )


class DiscoveryError(ShipShapeError):
    """The run was aborted; no partial Repository is returned."""

    @classmethod
    def root_not_found(cls, path: str) -> "DiscoveryError":
        return cls(
            ErrorCode.DISCOVERY_ROOT_NOT_FOUND,
            f"Directory does not exist: {path}",
            details={"path": path},
        )

    @classmethod
    def root_unreadable(cls, path: str, reason: str) -> "DiscoveryError":
        return cls(
            ErrorCode.DISCOVERY_ROOT_UNREADABLE,
            f"Cannot read directory {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def timeout(cls, path: str, timeout_sec: float) -> "DiscoveryError":
        # A slow filesystem or a cold cache may pass on a second attempt
        return cls(
            ErrorCode.DISCOVERY_TIMEOUT,
            f"Discovery of {path} exceeded {timeout_sec:g}s",
            retryable=True,
            details={"path": path, "timeout_sec": timeout_sec},
        )

    @classmethod
    def cancelled(cls, path: str) -> "DiscoveryError":
        return cls(
            ErrorCode.DISCOVERY_CANCELLED,
            f"Discovery of {path} was cancelled",
            details={"path": path},
        )

    @property
    def is_cancellation(self) -> bool:
        return self.code in (ErrorCode.DISCOVERY_TIMEOUT, ErrorCode.DISCOVERY_CANCELLED)


class InternalError(ShipShapeError):
    """A bug or an environment failure no recovery path covers."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(ErrorCode.INTERNAL_ERROR, f"Unexpected failure: {reason}", details=details)
