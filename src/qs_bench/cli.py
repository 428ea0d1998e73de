#!/usr/bin/env python3
"""
qs-bench CLI - opt-in performance guardrails for the Qs codec benchmarks.

Usage:
    qs-bench run [--suite ID]...            Build, run and compare enabled suites
    qs-bench check <output> --runtime R     Compare saved benchmark output offline
    qs-bench policy [--extra-flag F]        Show the evaluated guardrail policy
    qs-bench baseline <runtime>             Show committed baseline medians
    qs-bench list                           List configured suites
    qs-bench report <results.jsonl>         Summarize a results file

Exit status: 0 when every check passes (or is skipped), 1 on a regression or
missing data, 2 on a fatal error.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from qs_bench import __version__
from qs_bench.baselines import load_baseline
from qs_bench.bench_output import RUNTIMES, parse_bench_output
from qs_bench.compare import GuardrailReport, evaluate
from qs_bench.config import TOLERANCE_ENV, default_build_config, load_config
from qs_bench.errors import ERR_INPUT, QsBenchError, make_error
from qs_bench.guardrail import run_guardrail, suite_policy
from qs_bench.logger import JsonlLogger, default_results_path, read_jsonl
from qs_bench.policy import GuardrailPolicy, is_debug_configuration, parse_tolerance_pct
from qs_bench.suites import load_suites, resolve_suite_file, select_suites

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def _emit(result: dict | list, args) -> None:
    if getattr(args, "machine", False):
        wrapped = {"success": True, "result": result}
        print(json.dumps(wrapped, separators=(",", ":"), ensure_ascii=False))
    else:
        print(json.dumps(result, indent=2))


def _emit_error(error: dict, args) -> None:
    if getattr(args, "machine", False):
        print(json.dumps(error, separators=(",", ":"), ensure_ascii=False))
    else:
        print(f"error: {error['message']}", file=sys.stderr)


def _report_failed(report: GuardrailReport, allow_missing: bool) -> bool:
    if report.skipped:
        return False
    if report.regressions:
        return True
    return bool(report.missing) and not allow_missing


def _print_report(report: GuardrailReport) -> None:
    label = report.suite_id or report.runtime
    if report.skipped:
        print(f"{label}: skipped ({report.skip_reason})")
        return
    print(f"{label}: tolerance={report.tolerance_pct:.1f}% measured={report.measured_count}")
    for check in report.checks:
        print(f"  {check.describe(report.runtime)}")


def _load_selected_suites(args):
    return select_suites(load_suites(resolve_suite_file(args.suites)), args.suite)


def cmd_run(args) -> int:
    config = load_config(args.root)
    configuration = args.configuration or default_build_config()
    env = dict(os.environ)
    suites = _load_selected_suites(args)
    logger.debug("Loaded %d suite(s), configuration=%s", len(suites), configuration)

    results_logger = None
    if args.results_file:
        results_logger = JsonlLogger(Path(args.results_file), configuration=configuration)
    elif args.print_results:
        results_path = default_results_path(config, configuration)
        results_logger = JsonlLogger(results_path, configuration=configuration)

    reports = []
    for suite in suites:
        policy = suite_policy(suite, configuration, env)
        report = run_guardrail(suite, policy, config, configuration=configuration)
        reports.append(report)
        if results_logger is not None:
            results_logger.log_report(report)

    if args.json or args.machine:
        _emit([report.to_dict() for report in reports], args)
    else:
        for report in reports:
            _print_report(report)

    failed = [r for r in reports if _report_failed(r, args.allow_missing)]
    return EXIT_FAILED if failed else EXIT_OK


def _default_check_depths(runtime: str, baseline: dict, measured: dict) -> list[int]:
    """Baseline depths plus every depth measured for ``runtime``.

    Measured depths without a baseline surface as ``missing_baseline``. When
    neither side has anything, the builtin suite depths are checked instead.
    """
    depths = set(baseline)
    depths.update(key.depth for key in measured if key.runtime == runtime)
    if not depths:
        for suite in load_suites(resolve_suite_file("guardrails")):
            if suite.runtime == runtime:
                depths.update(suite.depths)
    return sorted(depths)


def cmd_check(args) -> int:
    config = load_config(args.root)
    output = Path(args.output).read_text(encoding="utf-8", errors="replace")
    measured = parse_bench_output(output)
    baseline_path = Path(args.baseline) if args.baseline else config.default_baseline_path
    baseline = load_baseline(args.runtime, path=baseline_path)
    depths = args.depths or _default_check_depths(args.runtime, baseline, measured)
    tolerance_pct = parse_tolerance_pct(os.environ.get(TOLERANCE_ENV))

    report = evaluate(args.runtime, depths, measured, baseline, tolerance_pct)
    if args.json or args.machine:
        _emit(report.to_dict(), args)
    else:
        _print_report(report)
    return EXIT_FAILED if _report_failed(report, args.allow_missing) else EXIT_OK


def cmd_policy(args) -> int:
    configuration = args.configuration or default_build_config()
    policy = GuardrailPolicy.from_env(
        extra_flag=args.extra_flag,
        debug_build=is_debug_configuration(configuration),
    )
    result = policy.to_dict()
    result["configuration"] = configuration
    _emit(result, args)
    return EXIT_OK


def cmd_baseline(args) -> int:
    config = load_config(args.root)
    baseline_path = Path(args.baseline) if args.baseline else config.default_baseline_path
    table = load_baseline(args.runtime, path=baseline_path)
    _emit({str(depth): ms for depth, ms in sorted(table.items())}, args)
    return EXIT_OK


def cmd_list(args) -> int:
    for suite in load_suites(resolve_suite_file(args.suites)):
        platforms = f" [{', '.join(suite.platforms)}]" if suite.platforms else ""
        print(f"{suite.id}\t{suite.runtime}\t{suite.enable_flag}{platforms}")
    return EXIT_OK


def cmd_report(args) -> int:
    rows = read_jsonl(Path(args.results))
    failed = 0
    for row in rows:
        label = row.get("suite_id") or row.get("runtime")
        if row.get("skipped"):
            status = "skipped"
        elif row.get("passed"):
            status = "passed"
        else:
            status = "FAILED"
            failed += 1
        print(f"{row.get('timestamp', '-')}  {label}  {status}")
        for message in row.get("failures", []):
            print(f"    {message}")
    print(f"{len(rows)} report(s), {failed} failed")
    return EXIT_FAILED if failed else EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qs-bench",
        description="Opt-in performance guardrails for the Qs encode/decode benchmarks",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--machine",
        action="store_true",
        help="Machine-readable output (JSON envelopes with error codes)",
    )
    parser.add_argument("--root", default=None, help="Repository root (default: auto-detect)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_p = subparsers.add_parser("run", help="Build, run and compare guardrail suites")
    run_p.add_argument("--suites", default="guardrails", help="Suite file name or path")
    run_p.add_argument("--suite", action="append", help="Only run this suite id (repeatable)")
    run_p.add_argument("--configuration", default=None, help="Build configuration (default: release)")
    run_p.add_argument("--allow-missing", action="store_true", help="Do not fail on missing data")
    run_p.add_argument("--json", action="store_true")
    run_p.add_argument("--print-results", action="store_true", help="Append reports to a JSONL file")
    run_p.add_argument("--results-file", default=None)
    run_p.set_defaults(func=cmd_run)

    check_p = subparsers.add_parser("check", help="Compare saved benchmark output against the baseline")
    check_p.add_argument("output", help="File containing captured benchmark stdout")
    check_p.add_argument("--runtime", required=True, choices=RUNTIMES)
    check_p.add_argument("--depths", type=int, nargs="+", default=None)
    check_p.add_argument("--baseline", default=None, help="Baseline document path")
    check_p.add_argument("--allow-missing", action="store_true")
    check_p.add_argument("--json", action="store_true")
    check_p.set_defaults(func=cmd_check)

    policy_p = subparsers.add_parser("policy", help="Show the guardrail policy for this environment")
    policy_p.add_argument("--extra-flag", default=None, help="Additional enable flag to honour")
    policy_p.add_argument("--configuration", default=None)
    policy_p.set_defaults(func=cmd_policy)

    baseline_p = subparsers.add_parser("baseline", help="Show baseline medians for a runtime")
    baseline_p.add_argument("runtime")
    baseline_p.add_argument("--baseline", default=None, help="Baseline document path")
    baseline_p.set_defaults(func=cmd_baseline)

    list_p = subparsers.add_parser("list", help="List guardrail suites")
    list_p.add_argument("--suites", default="guardrails")
    list_p.set_defaults(func=cmd_list)

    report_p = subparsers.add_parser("report", help="Summarize a JSONL results file")
    report_p.add_argument("results")
    report_p.set_defaults(func=cmd_report)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.root:
        args.root = Path(args.root)

    try:
        return args.func(args)
    except QsBenchError as exc:
        _emit_error(exc.to_dict(), args)
        return EXIT_ERROR
    except (FileNotFoundError, ValueError) as exc:
        _emit_error(make_error(ERR_INPUT, str(exc)), args)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
