"""
Sliding-window rate limiter, keyed by caller identity.

Purpose:
- Bound expensive downstream calls per caller within a trailing window
- Keep state owned by an explicit instance (one per endpoint quota)

Rules:
- Timestamps are milliseconds supplied by the caller (no clock in here)
- Per-identity sequences are append-only in arrival order, so pruning
  stops at the first in-window entry
- Pruning uses strict `<`: a timestamp equal to window_start still counts,
  so a call made exactly window_ms ago is only dropped 1ms later
- Rejected calls are never recorded
- Identities that go idle are swept at most once per window_ms, so the
  mapping cannot grow with callers that never return

This is cost control, not access control: identities are advisory.
"""

from __future__ import annotations

import threading
from collections import deque
from enum import Enum

from spec import RATE_LIMIT_WINDOW_MS


class Admission(str, Enum):
    """Verdict of a single check_and_record() call."""

    ADMITTED = "admitted"
    REJECTED = "rejected"


class SlidingWindowRateLimiter:
    """
    Per-identity sliding-window admission control.

    Concurrency:
    - One lock per instance serializes every check-and-record, so two
      near-simultaneous calls from the same identity cannot both observe
      "under limit". Contention is low; a per-identity lock buys nothing.
    """

    def __init__(
        self,
        *,
        max_calls: int,
        window_ms: int = RATE_LIMIT_WINDOW_MS,
        name: str = "default",
    ) -> None:
        if max_calls < 1:
            raise ValueError(f"max_calls must be >= 1, got {max_calls}")
        if window_ms < 1:
            raise ValueError(f"window_ms must be >= 1, got {window_ms}")

        self.name = name
        self.max_calls = max_calls
        self.window_ms = window_ms

        self._calls: dict[str, deque[int]] = {}
        self._lock = threading.Lock()
        self._last_sweep_ms: int | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_and_record(self, identity: str, now_ms: int) -> Admission:
        """
        Admit and record `now_ms`, or reject without recording.

        Never raises.
        """
        with self._lock:
            self._maybe_sweep(now_ms)
            calls = self._prune(identity, now_ms)

            if len(calls) >= self.max_calls:
                return Admission.REJECTED

            if not calls:
                self._calls[identity] = calls
            calls.append(now_ms)
            return Admission.ADMITTED

    def remaining(self, identity: str, now_ms: int) -> int:
        """Number of calls `identity` could still make right now."""
        with self._lock:
            return max(0, self.max_calls - len(self._prune(identity, now_ms)))

    def retry_after_ms(self, identity: str, now_ms: int) -> int:
        """
        Milliseconds until `identity` would be admitted again.

        0 if a call would be admitted now. Otherwise the time until the
        oldest counted call drops out of the window (it expires once
        now > ts + window_ms under the strict pruning rule).
        """
        with self._lock:
            calls = self._prune(identity, now_ms)
            if len(calls) < self.max_calls:
                return 0
            oldest = calls[len(calls) - self.max_calls]
            return oldest + self.window_ms - now_ms + 1

    def tracked_identities(self) -> int:
        """Identities currently holding at least one recorded call."""
        with self._lock:
            return len(self._calls)

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _prune(self, identity: str, now_ms: int) -> deque[int]:
        """
        Drop expired timestamps from the front of `identity`'s sequence.

        Returns the live sequence (possibly a fresh empty deque that is
        not yet stored). Empty sequences are removed from the mapping.
        """
        calls = self._calls.get(identity)
        if calls is None:
            return deque()

        window_start = now_ms - self.window_ms
        while calls and calls[0] < window_start:
            calls.popleft()

        if not calls:
            del self._calls[identity]

        return calls

    def _maybe_sweep(self, now_ms: int) -> None:
        """
        Drop every identity whose newest call is out of the window.

        Runs at most once per window_ms, so the full scan is amortized
        over all checks made in that window.
        """
        if self._last_sweep_ms is None:
            self._last_sweep_ms = now_ms
            return
        if now_ms - self._last_sweep_ms < self.window_ms:
            return

        self._last_sweep_ms = now_ms
        window_start = now_ms - self.window_ms
        idle = [
            identity
            for identity, calls in self._calls.items()
            if calls[-1] < window_start
        ]
        for identity in idle:
            del self._calls[identity]
