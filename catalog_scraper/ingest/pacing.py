"""Randomized pacing between page requests."""

import logging
import random
import time
from typing import Callable

logger = logging.getLogger(__name__)


class RequestPacer:
    """Sleeps a random interval after each navigation to look less robotic."""

    def __init__(
        self,
        min_delay_ms: int,
        max_delay_ms: int,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize pacer.

        Args:
            min_delay_ms: Minimum delay in milliseconds
            max_delay_ms: Maximum delay in milliseconds (inclusive)
            sleep: Sleep function (injectable for tests)
        """
        if min_delay_ms < 0 or max_delay_ms < min_delay_ms:
            raise ValueError(
                f"Invalid pacing window: min={min_delay_ms}ms max={max_delay_ms}ms"
            )
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self._sleep = sleep

    def wait(self) -> int:
        """
        Sleep for a uniformly random delay in [min, max].

        Returns:
            Delay applied, in milliseconds
        """
        delay_ms = random.randint(self.min_delay_ms, self.max_delay_ms)
        if delay_ms > 0:
            logger.debug(f"Waiting {delay_ms}ms before next request")
            self._sleep(delay_ms / 1000)
        return delay_ms
