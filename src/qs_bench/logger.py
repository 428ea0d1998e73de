"""JSONL results log for guardrail runs.

Each line is one ``GuardrailReport`` stamped with the build configuration,
the host it ran on and the failure messages, so a results file can be read
back by ``qs-bench report`` without re-running anything.
"""

from __future__ import annotations

import json
import os
import platform
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

from qs_bench.compare import GuardrailReport
from qs_bench.config import DEFAULT_BUILD_CONFIG, RESULTS_DIR_ENV, BenchConfig

RESULTS_DIR = Path("Bench") / "results"


def host_metadata() -> dict[str, Any]:
    return {
        "os": platform.system(),
        "release": platform.release(),
        "arch": platform.machine(),
        "cpu_count": os.cpu_count(),
    }


def resolve_results_dir(config: BenchConfig, env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    override = env.get(RESULTS_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return config.root / RESULTS_DIR


def default_results_path(
    config: BenchConfig,
    configuration: str = DEFAULT_BUILD_CONFIG,
    env: Optional[Mapping[str, str]] = None,
) -> Path:
    """``<results dir>/guardrails-<configuration>-<UTC timestamp>.jsonl``"""
    results_dir = resolve_results_dir(config, env)
    results_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return results_dir / f"guardrails-{configuration}-{timestamp}.jsonl"


@dataclass
class JsonlLogger:
    """Append guardrail reports to a JSONL results file."""

    path: Path
    configuration: str = DEFAULT_BUILD_CONFIG
    host: dict[str, Any] = field(default_factory=host_metadata)

    def log_report(self, report: GuardrailReport) -> dict[str, Any]:
        record = report.to_dict()
        record["failures"] = [check.describe(report.runtime) for check in report.failures]
        record["configuration"] = self.configuration
        record["host"] = self.host
        record["timestamp"] = datetime.now(timezone.utc).isoformat()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")
        return record


def read_jsonl(path: Path) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        rows.append(json.loads(line))
    return rows
