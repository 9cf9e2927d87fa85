"""Config module exports."""

from installcheck.config.loader import load_config
from installcheck.config.models import (
    ExecutablesConfig,
    InstallcheckConfig,
    LoggingConfig,
    MpiConfig,
    MusicConfig,
    PynestConfig,
    SuiteConfig,
)

__all__ = [
    "load_config",
    "InstallcheckConfig",
    "ExecutablesConfig",
    "LoggingConfig",
    "MpiConfig",
    "MusicConfig",
    "PynestConfig",
    "SuiteConfig",
]
