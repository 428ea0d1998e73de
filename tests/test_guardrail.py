import json
import sys
from pathlib import Path

import pytest

from qs_bench.compare import STATUS_MISSING_MEASUREMENT, STATUS_OK, STATUS_REGRESSION
from qs_bench.config import BenchConfig
from qs_bench.errors import BaselineLoadError, ProcessExitError
from qs_bench.guardrail import run_guardrail, suite_policy
from qs_bench.policy import GuardrailPolicy
from qs_bench.suites import GuardrailSuite

FAKE_BENCH = """\
import sys
print("Building deep snapshot inputs...")
for line in sys.argv[1:]:
    print(line)
"""


@pytest.fixture
def root(tmp_path: Path) -> Path:
    baseline = tmp_path / "Bench" / "baselines" / "encode_deep_snapshot_baseline.json"
    baseline.parent.mkdir(parents=True)
    baseline.write_text(
        json.dumps(
            {
                "cases": [
                    {"runtime": "swift", "depth": 2000, "ms_per_op_median": 3.0},
                    {"runtime": "swift", "depth": 5000, "ms_per_op_median": 8.0},
                    {"runtime": "objc", "depth": 2000, "ms_per_op_median": 4.0},
                ]
            }
        ),
        encoding="utf-8",
    )
    (tmp_path / "fake_bench.py").write_text(FAKE_BENCH, encoding="utf-8")
    return tmp_path


def _suite(root: Path, *lines: str, build_command=(), **kwargs) -> GuardrailSuite:
    return GuardrailSuite(
        id="swift-deep-encode",
        runtime="swift",
        enable_flag="QS_ENABLE_SWIFT_PERF_GUARDRAILS",
        depths=kwargs.pop("depths", (2000, 5000)),
        bench_command=(sys.executable, str(root / "fake_bench.py"), *lines),
        build_command=tuple(build_command),
        **kwargs,
    )


def test_disabled_policy_skips_without_running(root: Path):
    suite = GuardrailSuite(
        id="swift-deep-encode",
        runtime="swift",
        enable_flag="QS_ENABLE_SWIFT_PERF_GUARDRAILS",
        depths=(2000,),
        bench_command=(str(root / "missing-binary"),),
    )
    policy = GuardrailPolicy.from_env({}, extra_flag=suite.enable_flag)
    report = run_guardrail(suite, policy, BenchConfig(root=root))
    assert report.skipped
    assert "not enabled" in report.skip_reason


def test_unsupported_platform_skips(root: Path):
    suite = _suite(root, platforms=("darwin",))
    report = run_guardrail(
        suite, GuardrailPolicy.enabled_with(20.0), BenchConfig(root=root), platform="linux"
    )
    assert report.skipped
    assert "linux" in report.skip_reason


def test_passing_run(root: Path):
    suite = _suite(root, "swift depth=2000: 3.1 ms/op", "swift depth=5000: 8.2 ms/op")
    report = run_guardrail(suite, GuardrailPolicy.enabled_with(20.0), BenchConfig(root=root))
    assert not report.skipped
    assert report.passed
    assert [check.status for check in report.checks] == [STATUS_OK, STATUS_OK]
    assert report.checks[0].measured_ms == 3.1


def test_regression_run(root: Path):
    suite = _suite(root, "swift depth=2000: 3.1 ms/op", "swift depth=5000: 12.0 ms/op")
    report = run_guardrail(suite, GuardrailPolicy.enabled_with(20.0), BenchConfig(root=root))
    assert [check.status for check in report.checks] == [STATUS_OK, STATUS_REGRESSION]


def test_running_value_is_superseded_by_final_line(root: Path):
    suite = _suite(
        root,
        "swift depth=2000: 9.99 ms/op (running)",
        "swift depth=2000: 3.1 ms/op",
        "swift depth=5000: 8.0 ms/op",
    )
    report = run_guardrail(suite, GuardrailPolicy.enabled_with(20.0), BenchConfig(root=root))
    assert report.passed
    assert report.checks[0].measured_ms == 3.1


def test_empty_measurement_set_is_reported_not_decided(root: Path):
    suite = _suite(root, "objc depth=2000: 1.0 ms/op")
    report = run_guardrail(suite, GuardrailPolicy.enabled_with(20.0), BenchConfig(root=root))
    assert report.measured_count == 0
    assert [check.status for check in report.checks] == [STATUS_MISSING_MEASUREMENT] * 2
    assert not report.regressions


def test_build_runs_before_bench(root: Path):
    marker = root / "built.txt"
    build = (sys.executable, "-c", f"open({str(marker)!r}, 'w').write('ok')")
    script = (
        f"import pathlib; assert pathlib.Path({str(marker)!r}).exists(); "
        "print('swift depth=2000: 3.0 ms/op'); print('swift depth=5000: 8.0 ms/op')"
    )
    suite = GuardrailSuite(
        id="swift-deep-encode",
        runtime="swift",
        enable_flag="QS_ENABLE_SWIFT_PERF_GUARDRAILS",
        depths=(2000, 5000),
        build_command=build,
        bench_command=(sys.executable, "-c", script),
    )
    report = run_guardrail(suite, GuardrailPolicy.enabled_with(0.0), BenchConfig(root=root))
    assert report.passed


def test_build_failure_propagates(root: Path):
    build = (sys.executable, "-c", "import sys; sys.stderr.write('error: no such package'); sys.exit(1)")
    suite = _suite(root, build_command=build)
    with pytest.raises(ProcessExitError) as exc_info:
        run_guardrail(suite, GuardrailPolicy.enabled_with(20.0), BenchConfig(root=root))
    assert exc_info.value.exit_code == 1
    assert "no such package" in str(exc_info.value)


def test_missing_baseline_propagates(root: Path):
    suite = _suite(root, "swift depth=2000: 3.0 ms/op", baseline="Bench/baselines/absent.json")
    with pytest.raises(BaselineLoadError):
        run_guardrail(suite, GuardrailPolicy.enabled_with(20.0), BenchConfig(root=root))


def test_suite_policy_uses_suite_flag_and_configuration(root: Path):
    suite = _suite(root)
    env = {"QS_ENABLE_SWIFT_PERF_GUARDRAILS": "1"}
    assert suite_policy(suite, "release", env).enabled
    assert not suite_policy(suite, "debug", env).enabled
    env["QS_PERF_ALLOW_DEBUG"] = "1"
    assert suite_policy(suite, "debug", env).enabled
