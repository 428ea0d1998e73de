"""Run one guardrail suite end to end.

Policy gate -> build -> run benchmark -> parse stdout -> load baseline -> compare.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from qs_bench.baselines import load_baseline
from qs_bench.bench_output import parse_bench_output
from qs_bench.compare import GuardrailReport, evaluate
from qs_bench.config import BenchConfig
from qs_bench.policy import GuardrailPolicy, is_debug_configuration
from qs_bench.runners.process_runner import run_command
from qs_bench.suites import GuardrailSuite

logger = logging.getLogger(__name__)


def suite_policy(
    suite: GuardrailSuite,
    configuration: str,
    env: Optional[dict[str, str]] = None,
) -> GuardrailPolicy:
    return GuardrailPolicy.from_env(
        env,
        extra_flag=suite.enable_flag,
        debug_build=is_debug_configuration(configuration),
    )


def run_guardrail(
    suite: GuardrailSuite,
    policy: GuardrailPolicy,
    config: BenchConfig,
    configuration: str = "release",
    platform: str = sys.platform,
) -> GuardrailReport:
    if not policy.enabled:
        logger.info("Skipping %s: %s", suite.id, policy.reason)
        return GuardrailReport.skip(suite.id, suite.runtime, policy.reason)
    if not suite.supported_on(platform):
        reason = f"{suite.id} is not supported on {platform}"
        logger.info("Skipping %s", reason)
        return GuardrailReport.skip(suite.id, suite.runtime, reason)

    build_command, bench_command = suite.commands(config.root, configuration)
    if build_command:
        logger.info("Building benchmark for %s (%s)", suite.id, configuration)
        run_command(
            build_command[0],
            build_command[1:],
            cwd=config.root,
            temp_prefix=suite.temp_prefix,
        )

    logger.info("Running benchmark for %s", suite.id)
    output = run_command(
        bench_command[0],
        bench_command[1:],
        cwd=config.root,
        temp_prefix=suite.temp_prefix,
    )
    measured = parse_bench_output(output)
    baseline = load_baseline(suite.runtime, path=suite.baseline_path(config.root))

    report = evaluate(
        suite.runtime,
        suite.depths,
        measured,
        baseline,
        policy.tolerance_pct,
        suite_id=suite.id,
    )
    for check in report.failures:
        logger.warning(check.describe(suite.runtime))
    return report
