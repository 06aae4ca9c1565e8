"""
Uptime tracking and the two health-check behaviours.

The process start is captured once in a StartInstant before the app starts
serving; health handlers only ever read it. /healthz-fail flips from healthy
to failed once uptime crosses a fixed threshold and never flips back, since
uptime is measured on the monotonic clock.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

Clock = Callable[[], float]

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000


@dataclass(frozen=True)
class StartInstant:
    """Monotonic clock reading taken when the process started serving."""

    monotonic: float

    @classmethod
    def now(cls, clock: Clock = time.monotonic) -> "StartInstant":
        return cls(monotonic=clock())

    def uptime(self, clock: Clock = time.monotonic) -> float:
        """Seconds elapsed since start, never negative."""
        return max(0.0, clock() - self.monotonic)


class HealthState(str, Enum):
    HEALTHY = "healthy"
    FAILED = "failed"


@dataclass(frozen=True)
class FailCheck:
    state: HealthState
    uptime: float
    threshold: float

    @property
    def status_code(self) -> int:
        return 200 if self.state is HealthState.HEALTHY else 500

    @property
    def body(self) -> str:
        if self.state is HealthState.HEALTHY:
            remaining = self.threshold - self.uptime
            first = f"still OK, {remaining:.1f} seconds before failing"
        else:
            elapsed = self.uptime - self.threshold
            first = f"failed since {elapsed:.1f} seconds"
        return f"{first}\nUptime {self.uptime:.1f} seconds\n"


def evaluate_fail(uptime: float, threshold: float) -> FailCheck:
    """Classify an uptime against the failure threshold."""
    state = HealthState.HEALTHY if uptime < threshold else HealthState.FAILED
    return FailCheck(state=state, uptime=uptime, threshold=threshold)


def _fraction(value: int, scale: int) -> str:
    whole, frac = divmod(value, scale)
    if not frac:
        return str(whole)
    width = len(str(scale)) - 1
    return f"{whole}.{str(frac).zfill(width).rstrip('0')}"


def format_duration(seconds: float) -> str:
    """
    Render a duration the way Go's time.Duration prints it.

    Examples: 0s, 750ns, 1.5µs, 250ms, 3.456s, 2m0s, 1h2m3.456s
    """
    ns = int(round(seconds * _NS_PER_S))
    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    if ns == 0:
        return "0s"

    if ns < _NS_PER_S:
        if ns < _NS_PER_US:
            return f"{sign}{ns}ns"
        if ns < _NS_PER_MS:
            return f"{sign}{_fraction(ns, _NS_PER_US)}µs"
        return f"{sign}{_fraction(ns, _NS_PER_MS)}ms"

    total_seconds, frac_ns = divmod(ns, _NS_PER_S)
    hours, rem = divmod(total_seconds, 3600)
    minutes, secs = divmod(rem, 60)

    out = f"{_fraction(secs * _NS_PER_S + frac_ns, _NS_PER_S)}s"
    if hours or minutes:
        out = f"{minutes}m{out}"
    if hours:
        out = f"{hours}h{out}"
    return sign + out


def healthz_body(uptime: float) -> str:
    return f"Uptime {format_duration(uptime)}\nOK\n"
