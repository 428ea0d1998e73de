from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from qs_bench.bench_output import BenchCaseKey

STATUS_OK = "ok"
STATUS_REGRESSION = "regression"
STATUS_MISSING_BASELINE = "missing_baseline"
STATUS_MISSING_MEASUREMENT = "missing_measurement"


@dataclass(frozen=True)
class DepthCheck:
    depth: int
    status: str
    baseline_ms: Optional[float] = None
    measured_ms: Optional[float] = None
    allowed_ms: Optional[float] = None

    def describe(self, runtime: str) -> str:
        if self.status == STATUS_MISSING_BASELINE:
            return f"Missing {runtime} perf baseline for depth={self.depth}"
        if self.status == STATUS_MISSING_MEASUREMENT:
            return f"Missing {runtime} perf measurement for depth={self.depth}"
        verdict = "failed" if self.status == STATUS_REGRESSION else "ok"
        return (
            f"{runtime} perf guardrail {verdict} at depth={self.depth}: "
            f"measuredMs={self.measured_ms}, allowedMs={self.allowed_ms}, "
            f"baselineMs={self.baseline_ms}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "depth": self.depth,
            "status": self.status,
            "baseline_ms": self.baseline_ms,
            "measured_ms": self.measured_ms,
            "allowed_ms": self.allowed_ms,
        }


@dataclass
class GuardrailReport:
    suite_id: Optional[str]
    runtime: str
    tolerance_pct: Optional[float] = None
    checks: list[DepthCheck] = field(default_factory=list)
    measured_count: int = 0
    skipped: bool = False
    skip_reason: str = ""

    @classmethod
    def skip(cls, suite_id: Optional[str], runtime: str, reason: str) -> "GuardrailReport":
        return cls(suite_id=suite_id, runtime=runtime, skipped=True, skip_reason=reason)

    @property
    def regressions(self) -> list[DepthCheck]:
        return [check for check in self.checks if check.status == STATUS_REGRESSION]

    @property
    def missing(self) -> list[DepthCheck]:
        return [
            check
            for check in self.checks
            if check.status in (STATUS_MISSING_BASELINE, STATUS_MISSING_MEASUREMENT)
        ]

    @property
    def failures(self) -> list[DepthCheck]:
        return [check for check in self.checks if check.status != STATUS_OK]

    @property
    def passed(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "suite_id": self.suite_id,
            "runtime": self.runtime,
            "tolerance_pct": self.tolerance_pct,
            "skipped": self.skipped,
            "skip_reason": self.skip_reason,
            "measured_count": self.measured_count,
            "passed": self.passed,
            "checks": [check.to_dict() for check in self.checks],
        }


def allowed_ms(baseline_ms: float, tolerance_pct: float) -> float:
    return baseline_ms * (1.0 + tolerance_pct / 100.0)


def check_depth(
    runtime: str,
    depth: int,
    measured: Mapping[BenchCaseKey, float],
    baseline: Mapping[int, float],
    tolerance_pct: float,
) -> DepthCheck:
    baseline_ms = baseline.get(depth)
    if baseline_ms is None:
        return DepthCheck(depth=depth, status=STATUS_MISSING_BASELINE)
    measured_ms = measured.get(BenchCaseKey(runtime, depth))
    if measured_ms is None:
        return DepthCheck(depth=depth, status=STATUS_MISSING_MEASUREMENT, baseline_ms=baseline_ms)
    limit = allowed_ms(baseline_ms, tolerance_pct)
    return DepthCheck(
        depth=depth,
        status=STATUS_OK if measured_ms <= limit else STATUS_REGRESSION,
        baseline_ms=baseline_ms,
        measured_ms=measured_ms,
        allowed_ms=limit,
    )


def evaluate(
    runtime: str,
    depths: Iterable[int],
    measured: Mapping[BenchCaseKey, float],
    baseline: Mapping[int, float],
    tolerance_pct: float,
    suite_id: Optional[str] = None,
) -> GuardrailReport:
    """Compare measured medians against the baseline for each depth.

    A depth with no baseline or no measurement is reported as missing rather
    than silently passing; deciding what to do about it is up to the caller.
    """
    checks = [check_depth(runtime, depth, measured, baseline, tolerance_pct) for depth in depths]
    measured_count = sum(1 for key in measured if key.runtime == runtime)
    return GuardrailReport(
        suite_id=suite_id,
        runtime=runtime,
        tolerance_pct=tolerance_pct,
        checks=checks,
        measured_count=measured_count,
    )
