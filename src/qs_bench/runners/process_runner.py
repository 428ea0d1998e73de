"""Run an external program and capture its output through temp files.

stdout and stderr are redirected into ``stdout.log`` and ``stderr.log`` inside a
freshly created, uniquely named temporary directory. The directory and both
file handles are released on every exit path, including failures.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Mapping, Optional, Sequence

from qs_bench.errors import ProcessExitError, ProcessLaunchError

logger = logging.getLogger(__name__)

DEFAULT_TEMP_PREFIX = "qs-perf"
STDOUT_NAME = "stdout.log"
STDERR_NAME = "stderr.log"


def _read_text(path: Path) -> str:
    return path.read_bytes().decode("utf-8", errors="replace")


def run_command(
    executable: str | Path,
    args: Sequence[str] = (),
    cwd: Optional[Path] = None,
    *,
    temp_prefix: str = DEFAULT_TEMP_PREFIX,
    temp_root: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Run ``executable`` with ``args`` to completion and return its stdout.

    Args:
        executable: Path (or PATH-resolvable name) of the program
        args: Argument vector, not including the executable
        cwd: Working directory for the child
        temp_prefix: Prefix for the capture directory name
        temp_root: Parent directory for the capture directory (system default if None)
        env: Child environment (inherited if None)

    Raises:
        ProcessLaunchError: If the program cannot be started
        ProcessExitError: If the program exits with a non-zero status
    """
    command = [str(executable), *[str(arg) for arg in args]]
    logger.debug("Running %s (cwd=%s)", " ".join(command), cwd)

    with tempfile.TemporaryDirectory(
        prefix=f"{temp_prefix}-",
        dir=str(temp_root) if temp_root is not None else None,
    ) as capture_dir:
        stdout_path = Path(capture_dir) / STDOUT_NAME
        stderr_path = Path(capture_dir) / STDERR_NAME

        with stdout_path.open("wb") as stdout, stderr_path.open("wb") as stderr:
            try:
                completed = subprocess.run(
                    command,
                    cwd=str(cwd) if cwd is not None else None,
                    env=dict(env) if env is not None else None,
                    stdin=subprocess.DEVNULL,
                    stdout=stdout,
                    stderr=stderr,
                    check=False,
                )
            except OSError as exc:
                logger.warning("Failed to launch %s: %s", command[0], exc)
                raise ProcessLaunchError(command, str(exc)) from exc

        out = _read_text(stdout_path)
        err = _read_text(stderr_path)

        if completed.returncode != 0:
            logger.warning("%s exited with status %d", command[0], completed.returncode)
            raise ProcessExitError(command, completed.returncode, err)

    logger.debug("%s finished, captured %d bytes of stdout", command[0], len(out))
    return out
