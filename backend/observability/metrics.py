"""
Request-scoped latency metrics.

Responsibilities:
- Time one block of work per metric with a monotonic clock
- Emit exactly one METRIC_TIMER event per timed block via observability.logger

`timed()` is the only entry point. Open timers are tracked so a leak
shows up in active_timer_count().
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event, now_ms


# timer_id -> (metric_name, start_time_ns)
_active_timers: dict[str, tuple[str, int]] = {}


@contextmanager
def timed(
    name: str,
    *,
    request_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Time the enclosed block and log its duration as `name`.

    The event is emitted even when the block raises; the exception
    still propagates.

    Usage:
        with timed("tts_upstream_latency", request_id=request_id):
            payload = await synthesizer.synthesize(text=text)
    """
    timer_id = _start_timer(name)
    try:
        yield
    finally:
        _stop_timer(timer_id, request_id=request_id, details=details)


def active_timer_count() -> int:
    """Number of timed blocks currently open."""
    return len(_active_timers)


def _start_timer(name: str) -> str:
    timer_id = f"timer_{uuid.uuid4().hex[:12]}"
    _active_timers[timer_id] = (name, time.monotonic_ns())
    return timer_id


def _stop_timer(
    timer_id: str,
    *,
    request_id: str | None,
    details: dict[str, Any] | None,
) -> int | None:
    entry = _active_timers.pop(timer_id, None)
    if entry is None:
        return None

    name, start_ns = entry
    duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000

    # ts_ms is wall clock for correlation; value_ms is monotonic
    log_event({
        "ts_ms": now_ms(),
        "event_type": "METRIC_TIMER",
        "metric": name,
        "value_ms": duration_ms,
        "request_id": request_id,
        "details": details or {},
    })

    return duration_ms
