from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

ENABLE_ENV = "QS_ENABLE_PERF_GUARDRAILS"
SWIFT_ENABLE_ENV = "QS_ENABLE_SWIFT_PERF_GUARDRAILS"
OBJC_ENABLE_ENV = "QS_ENABLE_OBJC_PERF_GUARDRAILS"
ALLOW_DEBUG_ENV = "QS_PERF_ALLOW_DEBUG"
TOLERANCE_ENV = "QS_PERF_REGRESSION_TOLERANCE_PCT"
BUILD_CONFIG_ENV = "QS_PERF_BUILD_CONFIG"
ROOT_ENV = "QS_BENCH_ROOT"
RESULTS_DIR_ENV = "QS_BENCH_RESULTS_DIR"

DEFAULT_TOLERANCE_PCT = 20.0
DEFAULT_BUILD_CONFIG = "release"
BASELINES_DIR = Path("Bench") / "baselines"
DEFAULT_BASELINE_NAME = "encode_deep_snapshot_baseline.json"


@dataclass
class BenchConfig:
    root: Path

    @property
    def baselines_dir(self) -> Path:
        return self.root / BASELINES_DIR

    @property
    def default_baseline_path(self) -> Path:
        return self.baselines_dir / DEFAULT_BASELINE_NAME


def resolve_repo_root(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    override = env.get(ROOT_ENV)
    if override:
        return Path(override).expanduser()
    # src/qs_bench/config.py -> repo root, when running from a checkout
    checkout = Path(__file__).resolve().parents[2]
    if (checkout / BASELINES_DIR).is_dir():
        return checkout
    return Path.cwd()


def default_build_config(env: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if env is None else env
    return env.get(BUILD_CONFIG_ENV) or DEFAULT_BUILD_CONFIG


def load_config(root: Optional[Path] = None) -> BenchConfig:
    return BenchConfig(root=Path(root) if root is not None else resolve_repo_root())
