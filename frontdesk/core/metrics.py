from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from functools import wraps
from threading import Lock
from time import perf_counter
from typing import Any, Callable

# The front desk app stays open for days; only recent samples are kept.
TIMING_WINDOW = 500


@dataclass(frozen=True)
class TimingSummary:
    count: int
    last: float
    avg: float
    max: float

    @classmethod
    def of(cls, samples: list[float]) -> "TimingSummary":
        if not samples:
            return cls(count=0, last=0.0, avg=0.0, max=0.0)
        return cls(count=len(samples), last=samples[-1], avg=sum(samples) / len(samples), max=max(samples))


class MetricsRegistry:
    """Process-local counters and timings, safe to touch from drain worker threads."""

    def __init__(self, timing_window: int = TIMING_WINDOW) -> None:
        self._lock = Lock()
        self._window = timing_window
        self._counts: dict[str, int] = {}
        self._samples: dict[str, deque[float]] = {}

    def counter(self, name: str) -> int:
        with self._lock:
            return self._counts.get(name, 0)

    def increment(self, name: str, value: int = 1) -> None:
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + value

    def record_timing(self, name: str, milliseconds: float) -> None:
        with self._lock:
            samples = self._samples.get(name)
            if samples is None:
                samples = self._samples[name] = deque(maxlen=self._window)
            samples.append(float(milliseconds))

    def timing(self, name: str) -> TimingSummary:
        with self._lock:
            samples = list(self._samples.get(name, ()))
        return TimingSummary.of(samples)

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._samples.clear()

    def snapshot(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            counts = dict(self._counts)
            samples = {name: list(values) for name, values in self._samples.items()}
        return {
            "counters": counts,
            "timings_ms": {name: asdict(TimingSummary.of(values)) for name, values in samples.items()},
        }


metrics_registry = MetricsRegistry()


def measure_time(metric_name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Records the wall time of every call, including calls that raise."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def timed(*args: Any, **kwargs: Any) -> Any:
            started = perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                metrics_registry.record_timing(metric_name, (perf_counter() - started) * 1000)

        return timed

    return decorator
