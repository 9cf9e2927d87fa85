"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages and
provides a throwaway test-suite tree whose test programs are shell scripts.
"""

import shlex
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from installcheck.config.models import (  # noqa: E402
    ExecutablesConfig,
    InstallcheckConfig,
    MpiConfig,
    MusicConfig,
    SuiteConfig,
)
from installcheck.harness.models import HostInfo  # noqa: E402

WriteScript = Callable[..., Path]


@pytest.fixture
def suite_dir(tmp_path: Path) -> Path:
    """Empty test-suite root."""
    root = tmp_path / "suite"
    root.mkdir()
    return root


@pytest.fixture
def write_script(suite_dir: Path) -> WriteScript:
    """Write a shell test program below the suite root.

    ``write_script("unittests/test_a.sli", exit_code=1, output="boom")``
    """

    def _write(rel: str, *, exit_code: int = 0, output: str = "", body: str | None = None) -> Path:
        path = suite_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if body is None:
            lines = [f"echo {shlex.quote(line)}" for line in output.splitlines()]
            lines.append(f"exit {exit_code}")
            body = "\n".join(lines) + "\n"
        path.write_text(body)
        return path

    return _write


@pytest.fixture
def host() -> HostInfo:
    return HostInfo(
        arch="x86_64",
        os_name="Linux",
        os_version="6.1.0",
        home="/home/tester",
        user="tester",
        hostname="build01.example.org",
    )


@pytest.fixture
def config(suite_dir: Path, tmp_path: Path) -> InstallcheckConfig:
    """Every script suffix runs through sh; no MPI, no MUSIC."""
    return InstallcheckConfig(
        suite=SuiteConfig(test_dir=suite_dir, output_dir=tmp_path / "reports"),
        executables=ExecutablesConfig(
            interpreters={".sli": ["sh"], ".py": ["sh"], ".sh": ["sh"]},
        ),
        mpi=MpiConfig(enabled=False),
        music=MusicConfig(enabled=False),
    )
