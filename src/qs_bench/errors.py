"""
Structured errors for guardrail failures.

Error codes that callers can handle programmatically:
- QSBENCH_ERR_LAUNCH: Benchmark executable missing or not runnable
- QSBENCH_ERR_EXIT: Benchmark process exited with a non-zero status
- QSBENCH_ERR_BASELINE: Baseline document missing, unreadable or malformed
- QSBENCH_ERR_INPUT: Suite definition or input file missing or malformed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

# Error codes
ERR_LAUNCH = "QSBENCH_ERR_LAUNCH"
ERR_EXIT = "QSBENCH_ERR_EXIT"
ERR_BASELINE = "QSBENCH_ERR_BASELINE"
ERR_INPUT = "QSBENCH_ERR_INPUT"
ERR_INTERNAL = "QSBENCH_ERR_INTERNAL"


@dataclass
class ErrorInfo:
    """Structured error response for machine parsing."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


def make_error(code: str, message: str, **details) -> dict:
    """Create a structured error response dict."""
    return ErrorInfo(code=code, message=message, details=details).to_dict()


class QsBenchError(Exception):
    """Base class for fatal guardrail errors."""

    code = ERR_INTERNAL

    def details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict:
        return make_error(self.code, str(self), **self.details())


def _format_command(command: Sequence[str]) -> str:
    return " ".join(str(part) for part in command)


class ProcessLaunchError(QsBenchError):
    """Raised when the executable cannot be started at all."""

    code = ERR_LAUNCH

    def __init__(self, command: Sequence[str], reason: str):
        self.command = list(command)
        self.reason = reason
        super().__init__(f"Command could not be started: {_format_command(command)}: {reason}")

    def details(self) -> dict[str, Any]:
        return {"command": self.command}


class ProcessExitError(QsBenchError):
    """Raised when a process exits with a non-zero status.

    Carries the exit code and the captured stderr text so the failing
    invocation can be reproduced by hand.
    """

    code = ERR_EXIT

    def __init__(self, command: Sequence[str], exit_code: int, stderr: str):
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Command failed: {_format_command(command)}\n{stderr}")

    def details(self) -> dict[str, Any]:
        return {"command": self.command, "exit_code": self.exit_code, "stderr": self.stderr}


class BaselineLoadError(QsBenchError):
    """Raised when the baseline document cannot be used."""

    code = ERR_BASELINE

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to load baseline {self.path}: {reason}")

    def details(self) -> dict[str, Any]:
        return {"path": str(self.path), "reason": self.reason}
