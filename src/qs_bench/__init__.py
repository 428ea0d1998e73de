"""
qs-bench: Performance guardrails for the Qs query-string codec.

Runs the codec's benchmark binary, parses its ``<runtime> depth=<n>: <ms> ms/op``
lines, and compares them with committed baselines. Checks are opt-in through
environment flags so they never fail on an arbitrary machine.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("qs-bench")
except PackageNotFoundError:
    __version__ = "0.1.0"

from qs_bench.baselines import BaselineRecord, BaselineSummary, load_baseline, load_baseline_summary
from qs_bench.bench_output import BenchCaseKey, parse_bench_output
from qs_bench.compare import DepthCheck, GuardrailReport, evaluate
from qs_bench.errors import BaselineLoadError, ProcessExitError, ProcessLaunchError, QsBenchError
from qs_bench.policy import GuardrailPolicy
from qs_bench.runners.process_runner import run_command

__all__ = [
    "BaselineLoadError",
    "BaselineRecord",
    "BaselineSummary",
    "BenchCaseKey",
    "DepthCheck",
    "GuardrailPolicy",
    "GuardrailReport",
    "ProcessExitError",
    "ProcessLaunchError",
    "QsBenchError",
    "__version__",
    "evaluate",
    "load_baseline",
    "load_baseline_summary",
    "parse_bench_output",
    "run_command",
]
