from __future__ import annotations

import math
import re
from typing import NamedTuple

RUNTIMES = ("swift", "objc")

# Depths are 64-bit signed integers; anything larger is dropped.
MAX_DEPTH = 2**63 - 1

BENCH_LINE_RE = re.compile(
    r"^\s*(swift|objc)\s+depth=\s*(\d+):\s*([0-9.]+)\s*ms/op",
    flags=re.ASCII,
)


class BenchCaseKey(NamedTuple):
    runtime: str
    depth: int


def _parse_depth(value: str) -> int | None:
    try:
        depth = int(value)
    except ValueError:
        return None
    if depth <= 0 or depth > MAX_DEPTH:
        return None
    return depth


def _parse_ms(value: str) -> float | None:
    try:
        ms = float(value)
    except ValueError:
        return None
    if not math.isfinite(ms):
        return None
    return ms


def parse_bench_line(line: str) -> tuple[BenchCaseKey, float] | None:
    match = BENCH_LINE_RE.match(line)
    if not match:
        return None
    depth = _parse_depth(match.group(2))
    ms = _parse_ms(match.group(3))
    if depth is None or ms is None:
        return None
    return BenchCaseKey(match.group(1), depth), ms


def parse_bench_output(text: str) -> dict[BenchCaseKey, float]:
    """Extract ``(runtime, depth) -> ms/op`` from benchmark stdout.

    Lines that do not match, or whose numbers do not parse, are skipped.
    Later lines overwrite earlier ones for the same key.
    """
    result: dict[BenchCaseKey, float] = {}
    for line in text.splitlines():
        parsed = parse_bench_line(line)
        if parsed is None:
            continue
        key, ms = parsed
        result[key] = ms
    return result
