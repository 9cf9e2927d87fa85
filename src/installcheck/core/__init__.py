"""Core module exports."""

from installcheck.core.errors import (
    ConfigError,
    ErrorCode,
    HarnessAbort,
    InstallcheckError,
    ReportStateError,
)
from installcheck.core.logging import (
    configure_logging,
    get_log_file_path,
    get_logger,
    set_run_id,
)
from installcheck.core.progress import heading, pluralize, print_summary, status

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "HarnessAbort",
    "InstallcheckError",
    "ReportStateError",
    # Logging
    "configure_logging",
    "get_log_file_path",
    "get_logger",
    "set_run_id",
    # Progress
    "heading",
    "pluralize",
    "print_summary",
    "status",
]
