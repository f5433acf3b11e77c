"""Named-phase stopwatch used to report where time is spent.

The timer is purely advisory: nothing in the removal core depends on its
readings. It is safe to share between threads.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from typing import ContextManager, NamedTuple


class TimingStats(NamedTuple):
    total: float
    count: int
    min: float
    max: float
    average: float


@dataclass
class _TimingEntry:
    started_at: float | None = None
    total_ms: float = 0.0
    call_count: int = 0
    min_ms: float = float("inf")
    max_ms: float = float("-inf")


def _now_ms() -> float:
    return time.perf_counter() * 1000.0


class OperationTimer:
    """Accumulates durations (milliseconds) per operation name."""

    def __init__(self) -> None:
        self._timings: dict[str, _TimingEntry] = {}
        self._lock = threading.Lock()
        self._global_started = _now_ms()

    def start(self, operation_name: str) -> None:
        """Start (or restart) timing ``operation_name``."""
        with self._lock:
            entry = self._timings.setdefault(operation_name, _TimingEntry())
            entry.started_at = _now_ms()

    def stop(self, operation_name: str) -> float:
        """Stop timing and record the duration. Returns 0 if it was not running."""
        with self._lock:
            entry = self._timings.get(operation_name)
            if entry is None or entry.started_at is None:
                return 0
            elapsed = _now_ms() - entry.started_at
            entry.started_at = None
            entry.total_ms += elapsed
            entry.call_count += 1
            entry.min_ms = min(entry.min_ms, elapsed)
            entry.max_ms = max(entry.max_ms, elapsed)
            return elapsed

    @contextmanager
    def measure(self, operation_name: str) -> Iterator[None]:
        self.start(operation_name)
        try:
            yield
        finally:
            self.stop(operation_name)

    def get_timing(self, operation_name: str) -> TimingStats:
        with self._lock:
            entry = self._timings.get(operation_name)
            if entry is None or entry.call_count == 0:
                return TimingStats(0, 0, 0, 0, 0)
            return TimingStats(
                entry.total_ms,
                entry.call_count,
                entry.min_ms,
                entry.max_ms,
                entry.total_ms / entry.call_count,
            )

    def report(self) -> str:
        """Format all recorded timings, slowest first."""
        with self._lock:
            elapsed = _now_ms() - self._global_started
            lines = ["", "=" * 72, "PERFORMANCE REPORT", "=" * 72, ""]
            recorded = sorted(
                ((name, e) for name, e in self._timings.items() if e.call_count > 0),
                key=lambda kv: kv[1].total_ms,
                reverse=True,
            )
            if not recorded:
                lines.append("No timing data collected.")
                lines.append("")
                lines.append(f"Total Elapsed Time: {elapsed:.0f}ms ({elapsed / 1000.0:.2f}s)")
                return "\n".join(lines) + "\n"

            total = sum(e.total_ms for _, e in recorded)
            lines.append(
                f"{'Operation':<40} {'Time':>12} {'%':>6} {'Count':>7} {'Avg':>10} {'Min':>10} {'Max':>10}"
            )
            lines.append("-" * 99)
            for name, e in recorded:
                pct = 100.0 * e.total_ms / total if total > 0 else 0.0
                label = name if len(name) <= 40 else name[:37] + "..."
                lines.append(
                    f"{label:<40} {e.total_ms:>10.0f}ms {pct:>5.1f}% {e.call_count:>7} "
                    f"{e.total_ms / e.call_count:>8.0f}ms {e.min_ms:>8.0f}ms {e.max_ms:>8.0f}ms"
                )
            lines.append("-" * 99)
            lines.append(f"{'TOTAL':<40} {total:>10.0f}ms {100.0:>5.1f}%")
            lines.append("")
            lines.append(f"Total Elapsed Time: {elapsed:.0f}ms ({elapsed / 1000.0:.2f}s)")
            lines.append(f"Unaccounted Time: {max(elapsed - total, 0.0):.0f}ms")
            return "\n".join(lines) + "\n"

    def bottleneck_summary(self, top_count: int = 5) -> str:
        if top_count < 0:
            top_count = 5
        with self._lock:
            recorded = sorted(
                ((name, e) for name, e in self._timings.items() if e.call_count > 0),
                key=lambda kv: kv[1].total_ms,
                reverse=True,
            )[:top_count]
            lines = ["", "TOP PERFORMANCE BOTTLENECKS:", ""]
            for index, (name, e) in enumerate(recorded, start=1):
                lines.append(
                    f"{index}. {name}: {e.total_ms:.0f}ms "
                    f"({e.call_count} calls, avg {e.total_ms / e.call_count:.0f}ms)"
                )
            return "\n".join(lines) + "\n"

    def clear(self) -> None:
        with self._lock:
            self._timings.clear()
            self._global_started = _now_ms()


def measure(timer: OperationTimer | None, operation_name: str) -> ContextManager[None]:
    """``timer.measure(name)``, or a no-op when no timer was injected."""
    if timer is None:
        return nullcontext()
    return timer.measure(operation_name)
