"""Process-wide single-flight guard for scrape runs."""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Iterator

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Whether a scrape run is in progress."""

    IDLE = "idle"
    RUNNING = "running"


class SingleFlightGuard:
    """
    Ensures at most one scrape run is active in the process.

    A second caller is rejected, never queued. Every successful try_acquire()
    must be paired with exactly one release(), in a finally block.
    """

    def __init__(self):
        self._state = RunState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    def try_acquire(self) -> bool:
        """
        Atomically move IDLE -> RUNNING.

        Returns:
            True if acquired, False if a run is already in progress
        """
        with self._lock:
            if self._state is RunState.RUNNING:
                logger.debug("Run already in progress; rejecting acquire")
                return False
            self._state = RunState.RUNNING
        logger.debug("Run guard acquired")
        return True

    def release(self) -> None:
        """Reset to IDLE unconditionally."""
        with self._lock:
            self._state = RunState.IDLE
        logger.debug("Run guard released")

    @contextmanager
    def held(self) -> Iterator[bool]:
        """
        Try to acquire the guard for the duration of the block.

        Yields:
            True if this caller holds the guard, False if it was busy
        """
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()


# Global run guard instance
run_guard = SingleFlightGuard()
