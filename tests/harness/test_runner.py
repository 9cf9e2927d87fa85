"""Tests for ProcessRunner."""

from pathlib import Path

import pytest

from installcheck.config.models import InstallcheckConfig
from installcheck.core.errors import ErrorCode, HarnessAbort
from installcheck.harness.codes import SUITE_TABLES, Outcome
from installcheck.harness.models import TestCase
from installcheck.harness.runner import ProcessRunner, child_environment, normalize_returncode


@pytest.fixture
def scratch(tmp_path: Path) -> Path:
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def runner(config: InstallcheckConfig, scratch: Path) -> ProcessRunner:
    return ProcessRunner(config, scratch_root=scratch)


class TestNormalizeReturncode:
    @pytest.mark.parametrize(("raw", "expected"), [(0, 0), (1, 1), (-11, 139), (-6, 134)])
    def test_signals_follow_shell_convention(self, raw: int, expected: int) -> None:
        assert normalize_returncode(raw) == expected


class TestCommandFor:
    def test_interpreter_by_suffix(self, runner: ProcessRunner) -> None:
        assert runner.command_for(Path("/s/test.sli")) == ["sh", "/s/test.sli"]

    def test_unknown_suffix_runs_directly(self, runner: ProcessRunner) -> None:
        assert runner.command_for(Path("/s/test.bin")) == ["/s/test.bin"]


class TestSpawn:
    """ProcessRunner.spawn() behavior."""

    def test_captures_exit_code_and_output(self, runner: ProcessRunner) -> None:
        result = runner.spawn(["sh", "-c", "echo hello; exit 3"])
        assert result.exit_code == 3
        assert result.output == "hello\n"
        assert result.elapsed >= 0

    def test_merges_stdout_and_stderr(self, runner: ProcessRunner) -> None:
        result = runner.spawn(["sh", "-c", "echo out; echo err 1>&2"])
        assert "out\n" in result.output
        assert "err\n" in result.output

    def test_nonzero_exit_is_not_an_error(self, runner: ProcessRunner) -> None:
        assert runner.spawn(["sh", "-c", "exit 126"]).exit_code == 126

    def test_signal_exit_code(self, runner: ProcessRunner) -> None:
        result = runner.spawn(["sh", "-c", "kill -SEGV $$"])
        assert result.exit_code == 139

    def test_scratch_files_removed(self, runner: ProcessRunner, scratch: Path) -> None:
        runner.spawn(["sh", "-c", "echo data"])
        runner.spawn(["sh", "-c", "exit 1"])
        assert list(scratch.iterdir()) == []

    def test_spawn_failure_aborts(self, runner: ProcessRunner, scratch: Path) -> None:
        with pytest.raises(HarnessAbort) as exc_info:
            runner.spawn(["/nonexistent/program-xyz"])

        assert exc_info.value.code is ErrorCode.TEST_SPAWN_FAILED
        assert "/nonexistent/program-xyz" in exc_info.value.message
        assert list(scratch.iterdir()) == []

    def test_runs_in_cwd(self, runner: ProcessRunner, tmp_path: Path) -> None:
        result = runner.spawn(["sh", "-c", "pwd"], cwd=tmp_path)
        assert Path(result.output.strip()).resolve() == tmp_path.resolve()

    def test_env_passed_to_child(self, config: InstallcheckConfig, tmp_path: Path) -> None:
        env = child_environment("NEST_DATA_PATH", tmp_path / "data")
        runner = ProcessRunner(config, env=env)
        result = runner.spawn(["sh", "-c", 'echo "$NEST_DATA_PATH"'])
        assert result.output.strip() == str(tmp_path / "data")


class TestExecuteAndClassify:
    def test_execute_runs_suite_script(
        self, runner: ProcessRunner, write_script, suite_dir: Path
    ) -> None:
        write_script("unittests/test_a.sli", exit_code=1, output="assertion missed")
        case = TestCase.from_path("unittests/test_a.sli")

        result = runner.execute(case, suite_dir)
        classification = runner.classify(case, result, SUITE_TABLES)

        assert result.exit_code == 1
        assert "assertion missed" in result.output
        assert classification.outcome is Outcome.FAILURE
        assert classification.explanation == "Failed: missed assertion"
