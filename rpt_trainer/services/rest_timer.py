import threading
import time
from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


class RestTimer:
    """One cancellable countdown. Starting a new countdown cancels the running one."""

    def __init__(self, on_finished: Callable[[], None] | None = None):
        self._on_finished = on_finished
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._deadline: float | None = None
        self.duration: int = 0

    @property
    def active(self) -> bool:
        with self._lock:
            return self._timer is not None

    def remaining_seconds(self) -> float:
        with self._lock:
            if self._deadline is None:
                return 0.0
            return max(self._deadline - time.monotonic(), 0.0)

    def start(self, duration: int) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            self.duration = duration
            self._deadline = time.monotonic() + duration
            self._timer = threading.Timer(duration, self._finish, args=(generation,))
            self._timer.daemon = True
            self._timer.start()
        logger.debug("rest_timer_started", duration=duration)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            logger.debug("rest_timer_cancelled")
        self._timer = None
        self._deadline = None

    def _finish(self, generation: int) -> None:
        with self._lock:
            # A countdown replaced or cancelled after it fired must stay silent
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
            self._deadline = None
        logger.info("rest_timer_finished", duration=self.duration)
        if self._on_finished is not None:
            try:
                self._on_finished()
            except Exception:
                logger.exception("rest_timer_callback_failed")
