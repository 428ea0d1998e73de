import sys
from pathlib import Path

import pytest

from qs_bench.errors import ERR_EXIT, ERR_LAUNCH, ProcessExitError, ProcessLaunchError
from qs_bench.runners import process_runner
from qs_bench.runners.process_runner import run_command


@pytest.fixture
def capture_root(tmp_path: Path) -> Path:
    root = tmp_path / "captures"
    root.mkdir()
    return root


def test_returns_stdout(tmp_path: Path, capture_root: Path):
    out = run_command(
        sys.executable,
        ["-c", "print('swift depth=2000: 3.21 ms/op')"],
        cwd=tmp_path,
        temp_root=capture_root,
    )
    assert out.strip() == "swift depth=2000: 3.21 ms/op"
    assert list(capture_root.iterdir()) == []


def test_stderr_is_not_mixed_into_stdout(tmp_path: Path, capture_root: Path):
    script = "import sys; print('out'); sys.stderr.write('diagnostic\\n')"
    out = run_command(sys.executable, ["-c", script], cwd=tmp_path, temp_root=capture_root)
    assert out == "out\n"


def test_runs_in_working_directory(tmp_path: Path, capture_root: Path):
    work = tmp_path / "work"
    work.mkdir()
    out = run_command(
        sys.executable,
        ["-c", "import os; print(os.getcwd())"],
        cwd=work,
        temp_root=capture_root,
    )
    assert Path(out.strip()).resolve() == work.resolve()


def test_non_zero_exit_raises_with_code_and_stderr(tmp_path: Path, capture_root: Path):
    script = "import sys; sys.stderr.write('boom'); sys.exit(2)"
    with pytest.raises(ProcessExitError) as exc_info:
        run_command(sys.executable, ["-c", script], cwd=tmp_path, temp_root=capture_root)

    error = exc_info.value
    assert error.exit_code == 2
    assert error.stderr == "boom"
    assert "boom" in str(error)
    assert error.to_dict()["code"] == ERR_EXIT
    assert error.to_dict()["details"]["exit_code"] == 2
    assert list(capture_root.iterdir()) == []


def test_capture_directory_uses_prefix(tmp_path: Path, capture_root: Path, monkeypatch):
    seen = []
    real_run = process_runner.subprocess.run

    def spy_run(command, **kwargs):
        seen.append(Path(kwargs["stdout"].name).parent)
        return real_run(command, **kwargs)

    monkeypatch.setattr(process_runner.subprocess, "run", spy_run)
    run_command(
        sys.executable,
        ["-c", "pass"],
        cwd=tmp_path,
        temp_prefix="qsswift-perf",
        temp_root=capture_root,
    )
    assert seen[0].parent == capture_root
    assert seen[0].name.startswith("qsswift-perf-")
    assert not seen[0].exists()


def test_missing_executable_raises_launch_error(tmp_path: Path, capture_root: Path):
    missing = tmp_path / "does-not-exist"
    with pytest.raises(ProcessLaunchError) as exc_info:
        run_command(missing, ["perf"], cwd=tmp_path, temp_root=capture_root)
    assert exc_info.value.to_dict()["code"] == ERR_LAUNCH
    assert isinstance(exc_info.value.__cause__, OSError)
    assert list(capture_root.iterdir()) == []


def test_invalid_utf8_is_replaced(tmp_path: Path, capture_root: Path):
    script = "import sys; sys.stdout.buffer.write(b'ok \\xff\\n')"
    out = run_command(sys.executable, ["-c", script], cwd=tmp_path, temp_root=capture_root)
    assert out == "ok \ufffd\n"
