"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI flags)
2. Environment variables (INSTALLCHECK__SECTION__KEY)
3. YAML file (installcheck.yaml or --config)
4. Built-in defaults (this file)

Examples:
    INSTALLCHECK__LOGGING__LEVEL=DEBUG
    INSTALLCHECK__MPI__LAUNCHER=srun
    INSTALLCHECK__MPI__NUMPROC_FLAG=-n
    INSTALLCHECK__MUSIC__ENABLED=false
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        INSTALLCHECK__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Per-test status goes to the console regardless.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class SuiteConfig(BaseModel):
    """Where tests are read from and where reports go.

    Env vars:
        INSTALLCHECK__SUITE__TEST_DIR: Root of the installed test suite
        INSTALLCHECK__SUITE__OUTPUT_DIR: Report directory
    """

    test_dir: Path = Field(
        default=Path("testsuite"),
        description="Root of the installed test suite (selftests/, unittests/, ...).",
    )
    output_dir: Path = Field(
        default=Path("reports"),
        description="Directory receiving installcheck.log and the TEST-*.xml reports.",
    )
    source_dir: Path | None = Field(
        default=None,
        description="Source tree holding the PyNEST tests. None selects the import fallback.",
    )
    data_path_env: str = Field(
        default="NEST_DATA_PATH",
        description="Environment variable pointing tests at the directory for their data.",
    )


class ExecutablesConfig(BaseModel):
    """Interpreters used to run test scripts, keyed by file suffix."""

    interpreters: dict[str, list[str]] = Field(
        default_factory=lambda: {
            ".sli": ["nest"],
            ".py": ["python3"],
            ".sh": ["sh"],
        },
        description="Command prefix per script suffix. Unknown suffixes run directly.",
    )

    @field_validator("interpreters")
    @classmethod
    def validate_interpreters(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        for suffix, command in v.items():
            if not suffix.startswith("."):
                raise ValueError(f"Suffix must start with '.': {suffix}")
            if not command:
                raise ValueError(f"Empty interpreter command for {suffix}")
        return v


class MpiConfig(BaseModel):
    """Multi-process launcher settings.

    Env vars:
        INSTALLCHECK__MPI__ENABLED: true/false, unset to auto-detect
        INSTALLCHECK__MPI__LAUNCHER: Launcher binary (default: mpirun)
    """

    enabled: bool | None = Field(
        default=None,
        description="Run distributed phases. None detects the launcher on PATH.",
    )
    launcher: str = "mpirun"
    numproc_flag: str = "-np"
    preflags: list[str] = Field(default_factory=list)
    procs_pattern: str = Field(
        default=r"(?m)^[ \t]*\[\s*(\d+(?:\s+\d+)*)\s*\]\s*\{",
        description=(
            "Regex whose first group lists the process counts a test declares."
            " The default matches a line-leading list followed by a procedure block,"
            " e.g. '[1 2 4] { ... } distributed_assert_or_die'."
        ),
    )
    default_procs: int = Field(default=1, ge=1)


class MusicConfig(BaseModel):
    """Co-simulation settings."""

    enabled: bool | None = Field(
        default=None,
        description="Run co-simulation phases. None detects the binary on PATH.",
    )
    binary: str = "music"
    manifest_suffix: str = ".music"
    post_run_suffix: str = ".sh"
    failure_marker: str = Field(
        default="failure",
        description="Tests whose name contains this marker are expected to fail.",
    )


class PynestConfig(BaseModel):
    """PyNEST phase settings."""

    python: str = "python3"
    tests_subdir: str = "pynest/nest/tests"
    fallback_code: str = "import nest; nest.test()"


class InstallcheckConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    suite: SuiteConfig = Field(default_factory=SuiteConfig)
    executables: ExecutablesConfig = Field(default_factory=ExecutablesConfig)
    mpi: MpiConfig = Field(default_factory=MpiConfig)
    music: MusicConfig = Field(default_factory=MusicConfig)
    pynest: PynestConfig = Field(default_factory=PynestConfig)
