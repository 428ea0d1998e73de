from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from qs_bench.bench_output import RUNTIMES
from qs_bench.config import BASELINES_DIR, DEFAULT_BASELINE_NAME

CONFIGURATION_PLACEHOLDER = "{configuration}"


@dataclass(frozen=True)
class GuardrailSuite:
    id: str
    runtime: str
    enable_flag: str
    depths: tuple[int, ...]
    bench_command: tuple[str, ...]
    build_command: tuple[str, ...] = ()
    baseline: str = str(BASELINES_DIR / DEFAULT_BASELINE_NAME)
    temp_prefix: str = "qs-perf"
    platforms: tuple[str, ...] = ()

    def supported_on(self, platform: str) -> bool:
        if not self.platforms:
            return True
        return any(platform.startswith(name) for name in self.platforms)

    def baseline_path(self, root: Path) -> Path:
        path = Path(self.baseline)
        return path if path.is_absolute() else root / path

    def commands(self, root: Path, configuration: str) -> tuple[list[str], list[str]]:
        """Return ``(build_command, bench_command)`` with placeholders expanded.

        A relative executable containing a ``/`` is resolved against ``root``.
        The build command is empty when the suite has none.
        """
        return (
            _expand(self.build_command, root, configuration),
            _expand(self.bench_command, root, configuration),
        )


def _expand(command: tuple[str, ...], root: Path, configuration: str) -> list[str]:
    expanded = [part.replace(CONFIGURATION_PLACEHOLDER, configuration) for part in command]
    if expanded:
        executable = Path(expanded[0])
        if not executable.is_absolute() and "/" in expanded[0]:
            expanded[0] = str(root / executable)
    return expanded


def resolve_suite_file(name_or_path: str) -> Path:
    candidate = Path(name_or_path)
    if candidate.exists():
        return candidate
    if name_or_path == "guardrails":
        return Path(__file__).with_name("guardrails.yaml")
    raise FileNotFoundError(f"Unknown suite file: {name_or_path}")


def _string_list(entry: dict[str, Any], key: str, suite_id: str, required: bool = False) -> tuple[str, ...]:
    value = entry.get(key)
    if value is None:
        if required:
            raise ValueError(f"Suite {suite_id!r} is missing {key!r}")
        return ()
    if not isinstance(value, list) or not all(isinstance(item, (str, int, float)) for item in value):
        raise ValueError(f"Suite {suite_id!r}: {key!r} must be a list of strings")
    return tuple(str(item) for item in value)


def _parse_suite(entry: Any) -> GuardrailSuite:
    if not isinstance(entry, dict):
        raise ValueError("Each suite must be a mapping")
    suite_id = entry.get("id")
    if not suite_id:
        raise ValueError("Suite is missing 'id'")
    runtime = entry.get("runtime")
    if runtime not in RUNTIMES:
        raise ValueError(f"Suite {suite_id!r}: runtime must be one of {', '.join(RUNTIMES)}")
    enable_flag = entry.get("enable_flag")
    if not enable_flag:
        raise ValueError(f"Suite {suite_id!r} is missing 'enable_flag'")

    depths = entry.get("depths")
    if (
        not isinstance(depths, list)
        or not depths
        or not all(isinstance(d, int) and not isinstance(d, bool) and d > 0 for d in depths)
    ):
        raise ValueError(f"Suite {suite_id!r}: depths must be a non-empty list of positive integers")

    optional: dict[str, Any] = {}
    if entry.get("baseline"):
        optional["baseline"] = str(entry["baseline"])
    if entry.get("temp_prefix"):
        optional["temp_prefix"] = str(entry["temp_prefix"])

    return GuardrailSuite(
        id=str(suite_id),
        runtime=runtime,
        enable_flag=str(enable_flag),
        depths=tuple(depths),
        bench_command=_string_list(entry, "bench_command", suite_id, required=True),
        build_command=_string_list(entry, "build_command", suite_id),
        platforms=_string_list(entry, "platforms", suite_id),
        **optional,
    )


def load_suites(path: Path) -> list[GuardrailSuite]:
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not data:
        return []
    if not isinstance(data, list):
        raise ValueError("Suite YAML must be a list")
    suites = [_parse_suite(entry) for entry in data]
    ids = [suite.id for suite in suites]
    duplicates = sorted({suite_id for suite_id in ids if ids.count(suite_id) > 1})
    if duplicates:
        raise ValueError(f"Duplicate suite id(s): {', '.join(duplicates)}")
    return suites


def select_suites(suites: list[GuardrailSuite], ids: Optional[list[str]]) -> list[GuardrailSuite]:
    if not ids:
        return list(suites)
    known = {suite.id: suite for suite in suites}
    unknown = [suite_id for suite_id in ids if suite_id not in known]
    if unknown:
        raise ValueError(f"Unknown suite id(s): {', '.join(unknown)}")
    return [known[suite_id] for suite_id in ids]
