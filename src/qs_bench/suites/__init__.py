from qs_bench.suites.loader import (
    GuardrailSuite,
    load_suites,
    resolve_suite_file,
    select_suites,
)

__all__ = ["GuardrailSuite", "load_suites", "resolve_suite_file", "select_suites"]
