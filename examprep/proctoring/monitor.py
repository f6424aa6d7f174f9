"""Window-focus violation monitor for locked-down exam attempts."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_VIOLATIONS = 2
DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_GRACE_SECONDS = 1.0


def thread_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Run callback once after delay seconds on a daemon thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class ViolationMonitor:
    """Counts minimize and focus-loss events during one exam attempt.

    A minimize counts immediately. A blur counts only if focus does not
    return within the debounce window, and never while the dialog grace
    window is open. Violations up to ``max_violations`` produce a warning;
    the next one terminates the attempt.

    The counter belongs to the attempt: create a new monitor (or call
    :meth:`reset`) when a session starts.
    """

    def __init__(
        self,
        max_violations: int = DEFAULT_MAX_VIOLATIONS,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        on_warning: Optional[Callable[[int, int], None]] = None,
        on_terminate: Optional[Callable[[int], None]] = None,
        scheduler: Callable[[float, Callable[[], None]], object] = thread_timer,
        clock: Callable[[], float] = time.monotonic,
        enabled: bool = True,
    ) -> None:
        self.max_violations = max_violations
        self.debounce_seconds = debounce_seconds
        self.grace_seconds = grace_seconds
        self.enabled = enabled
        self.on_warning = on_warning
        self.on_terminate = on_terminate
        self._scheduler = scheduler
        self._clock = clock
        self._lock = threading.RLock()
        self._pending = None
        self._blur_seq = 0
        self._blur_armed = False
        self._grace_until: float = 0.0
        self.violations = 0
        self.terminated = False

    # ------------------------------------------------------------------
    # Window events
    # ------------------------------------------------------------------
    def minimize(self) -> None:
        self._record("minimize")

    def blur(self) -> None:
        with self._lock:
            if not self._accepting() or self.grace_active:
                return
            self._cancel_pending()
            self._blur_armed = True
            seq = self._blur_seq
            self._pending = self._scheduler(
                self.debounce_seconds, lambda: self._blur_elapsed(seq)
            )

    def focus(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._grace_until = 0.0

    def app_dialog(self) -> None:
        """The app itself opened a native dialog; ignore blurs for a moment."""
        with self._lock:
            self._cancel_pending()
            self._grace_until = self._clock() + self.grace_seconds

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._grace_until = 0.0
            self.violations = 0
            self.terminated = False

    def stop(self) -> None:
        with self._lock:
            self._cancel_pending()
            self.enabled = False

    @property
    def grace_active(self) -> bool:
        return self._clock() < self._grace_until

    @property
    def blur_pending(self) -> bool:
        return self._blur_armed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _accepting(self) -> bool:
        return self.enabled and not self.terminated

    def _cancel_pending(self) -> None:
        # A bumped sequence number voids callbacks that already fired late
        self._blur_seq += 1
        self._blur_armed = False
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _blur_elapsed(self, seq: int) -> None:
        with self._lock:
            if seq != self._blur_seq or not self._blur_armed:
                return
            self._blur_armed = False
            self._pending = None
        self._record("focus lost")

    def _record(self, reason: str) -> None:
        with self._lock:
            if not self._accepting():
                return
            self.violations += 1
            count = self.violations
            if count > self.max_violations:
                self.terminated = True
                self._cancel_pending()

        if count <= self.max_violations:
            logger.warning(
                "Exam violation %d/%d: %s detected", count, self.max_violations, reason
            )
            if self.on_warning:
                self.on_warning(count, self.max_violations)
        else:
            logger.error("Too many violations (%d), terminating exam", count)
            if self.on_terminate:
                self.on_terminate(count)
