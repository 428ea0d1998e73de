"""Read-only access to committed performance baselines.

A baseline document looks like::

    {"cases": [{"runtime": "swift", "depth": 2000, "ms_per_op_median": 3.0}]}

Documents are produced and committed elsewhere; nothing here writes them.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

from qs_bench.config import load_config
from qs_bench.errors import BaselineLoadError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("runtime", "depth", "ms_per_op_median")


@dataclass(frozen=True)
class BaselineRecord:
    runtime: str
    depth: int
    ms_per_op_median: float


@dataclass(frozen=True)
class BaselineSummary:
    path: Path
    cases: tuple[BaselineRecord, ...]

    def __iter__(self) -> Iterator[BaselineRecord]:
        return iter(self.cases)

    def __len__(self) -> int:
        return len(self.cases)

    def runtimes(self) -> list[str]:
        seen: list[str] = []
        for record in self.cases:
            if record.runtime not in seen:
                seen.append(record.runtime)
        return seen

    def for_runtime(self, runtime: str) -> dict[int, float]:
        table: dict[int, float] = {}
        for record in self.cases:
            if record.runtime != runtime:
                continue
            table[record.depth] = record.ms_per_op_median
        return table


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_record(path: Path, index: int, entry: Any) -> BaselineRecord:
    if not isinstance(entry, dict):
        raise BaselineLoadError(path, f"cases[{index}] is not an object")
    missing = [name for name in REQUIRED_FIELDS if name not in entry]
    if missing:
        raise BaselineLoadError(path, f"cases[{index}] missing field(s): {', '.join(missing)}")

    runtime = entry["runtime"]
    depth = entry["depth"]
    median = entry["ms_per_op_median"]
    if not isinstance(runtime, str):
        raise BaselineLoadError(path, f"cases[{index}].runtime must be a string")
    if not isinstance(depth, int) or isinstance(depth, bool) or depth <= 0:
        raise BaselineLoadError(path, f"cases[{index}].depth must be a positive integer")
    if not _is_number(median) or not math.isfinite(median) or median < 0:
        raise BaselineLoadError(
            path, f"cases[{index}].ms_per_op_median must be a non-negative finite number"
        )
    return BaselineRecord(runtime=runtime, depth=depth, ms_per_op_median=float(median))


def load_baseline_summary(path: Path) -> BaselineSummary:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise BaselineLoadError(path, "file not found") from None
    except (OSError, UnicodeDecodeError) as exc:
        raise BaselineLoadError(path, str(exc)) from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise BaselineLoadError(path, f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("cases"), list):
        raise BaselineLoadError(path, "expected an object with a 'cases' array")

    records = tuple(_parse_record(path, i, entry) for i, entry in enumerate(data["cases"]))
    logger.debug("Loaded %d baseline case(s) from %s", len(records), path)
    return BaselineSummary(path=path, cases=records)


def load_baseline(
    runtime: str,
    root: Optional[Path] = None,
    path: Optional[Path] = None,
) -> dict[int, float]:
    """Return ``{depth: ms_per_op_median}`` for one runtime.

    Args:
        runtime: Runtime name to filter on (e.g. ``"swift"``)
        root: Repository root; the document is read from
            ``Bench/baselines/encode_deep_snapshot_baseline.json`` beneath it
        path: Explicit document path, overriding ``root``

    Raises:
        BaselineLoadError: If the document is missing or does not match the schema
    """
    if path is None:
        path = load_config(root).default_baseline_path
    return load_baseline_summary(path).for_runtime(runtime)
