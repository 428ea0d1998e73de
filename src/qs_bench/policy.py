"""Environment-gated enablement for performance guardrails.

Guardrails are off unless someone opts in, so they never fail on an arbitrary
machine. The environment is read once into a ``GuardrailPolicy`` value which is
then passed to everything that needs it.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from qs_bench.config import (
    ALLOW_DEBUG_ENV,
    DEFAULT_TOLERANCE_PCT,
    ENABLE_ENV,
    TOLERANCE_ENV,
)

RELEASE_CONFIGURATION = "release"


def is_debug_configuration(configuration: str) -> bool:
    return configuration.strip().lower() != RELEASE_CONFIGURATION


def parse_tolerance_pct(raw: Optional[str]) -> float:
    """Parse a tolerance percentage, falling back to the default.

    Negative values are kept. Surrounding whitespace, digit-group underscores
    and non-finite values are treated as unparsable.
    """
    if raw is None or raw != raw.strip() or "_" in raw:
        return DEFAULT_TOLERANCE_PCT
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TOLERANCE_PCT
    if not math.isfinite(value):
        return DEFAULT_TOLERANCE_PCT
    return value


@dataclass(frozen=True)
class GuardrailPolicy:
    enabled: bool
    tolerance_pct: float = DEFAULT_TOLERANCE_PCT
    reason: str = ""

    @classmethod
    def disabled(cls, reason: str) -> "GuardrailPolicy":
        return cls(enabled=False, reason=reason)

    @classmethod
    def enabled_with(cls, tolerance_pct: float) -> "GuardrailPolicy":
        return cls(enabled=True, tolerance_pct=tolerance_pct)

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        extra_flag: Optional[str] = None,
        debug_build: bool = False,
    ) -> "GuardrailPolicy":
        """Evaluate the policy from an environment snapshot.

        Enabled when ``QS_ENABLE_PERF_GUARDRAILS=1`` or ``extra_flag=1``. In a
        debug build ``QS_PERF_ALLOW_DEBUG=1`` is required as well.
        """
        env = dict(os.environ) if env is None else env
        enabled_by_flag = env.get(ENABLE_ENV) == "1" or (
            extra_flag is not None and env.get(extra_flag) == "1"
        )
        if not enabled_by_flag:
            flags = ENABLE_ENV if extra_flag is None else f"{ENABLE_ENV} or {extra_flag}"
            return cls.disabled(f"Perf guardrails not enabled (set {flags}=1)")
        if debug_build and env.get(ALLOW_DEBUG_ENV) != "1":
            return cls.disabled(
                f"Perf guardrails disabled in debug builds (set {ALLOW_DEBUG_ENV}=1)"
            )
        return cls.enabled_with(parse_tolerance_pct(env.get(TOLERANCE_ENV)))

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "tolerance_pct": self.tolerance_pct,
            "reason": self.reason,
        }
