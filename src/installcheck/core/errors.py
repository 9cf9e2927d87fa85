"""installcheck error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 7xxx: Test execution (70xx abort, 71xx report session)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Test execution (7xxx)
    TEST_SPAWN_FAILED = 7001
    TEST_UNEXPECTED_EXIT_CODE = 7002
    TEST_STAGING_FAILED = 7003
    REPORT_NOT_OPEN = 7101
    REPORT_ALREADY_OPEN = 7102


@dataclass(frozen=True, slots=True)
class InstallcheckError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(InstallcheckError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class HarnessAbort(InstallcheckError):
    """Fatal condition that stops the whole run (exit status 2).

    Raised for conditions that point at a broken harness or environment
    rather than a failing test.
    """

    @classmethod
    def spawn_failed(cls, command: list[str], reason: str) -> "HarnessAbort":
        return cls(
            code=ErrorCode.TEST_SPAWN_FAILED,
            message=f"Could not start '{command[0]}': {reason}",
            details={"command": command, "reason": reason},
        )

    @classmethod
    def unexpected_exit_code(cls, test: str, exit_code: int) -> "HarnessAbort":
        return cls(
            code=ErrorCode.TEST_UNEXPECTED_EXIT_CODE,
            message=f"Unexpected exit code {exit_code} from '{test}'",
            details={"test": test, "exit_code": exit_code},
        )

    @classmethod
    def staging_failed(cls, test: str, reason: str) -> "HarnessAbort":
        return cls(
            code=ErrorCode.TEST_STAGING_FAILED,
            message=f"Could not prepare '{test}': {reason}",
            details={"test": test, "reason": reason},
        )


class ReportStateError(InstallcheckError):
    """JUnit report session used out of order."""

    @classmethod
    def not_open(cls, operation: str) -> "ReportStateError":
        return cls(
            code=ErrorCode.REPORT_NOT_OPEN,
            message=f"{operation}: report file not open",
            details={"operation": operation},
        )

    @classmethod
    def already_open(cls, path: str) -> "ReportStateError":
        return cls(
            code=ErrorCode.REPORT_ALREADY_OPEN,
            message=f"Report already open: {path}",
            details={"path": path},
        )
