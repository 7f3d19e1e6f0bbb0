"""Bounded waiting and backoff helpers."""

import time
import logging

logger = logging.getLogger(__name__)


def wait_until(predicate, timeout=10.0, interval=0.2, sleep=time.sleep, clock=time.monotonic):
    """Poll ``predicate`` until it returns a truthy value or ``timeout`` expires.

    Args:
        predicate (callable): Called without arguments on every poll
        timeout (float): Maximum number of seconds to wait
        interval (float): Seconds between polls
        sleep (callable): Sleep function, replaceable in tests
        clock (callable): Monotonic clock, replaceable in tests

    Returns:
        bool: True if the predicate succeeded before the deadline
    """
    deadline = clock() + timeout
    attempts = 0
    while True:
        attempts += 1
        if predicate():
            logger.debug(f"Condition met after {attempts} poll(s)")
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            logger.debug(f"Condition not met after {attempts} poll(s) in {timeout:.1f}s")
            return False
        sleep(min(interval, remaining))


class ExponentialBackoff:
    """Delay generator for consecutive failures.

    The first failure waits ``initial`` seconds, each further consecutive
    failure multiplies the delay by ``factor`` up to ``maximum``. A success
    resets the sequence.
    """

    def __init__(self, initial=1.0, factor=2.0, maximum=300.0):
        if initial < 0 or factor < 1 or maximum < 0:
            raise ValueError("backoff needs initial >= 0, factor >= 1 and maximum >= 0")
        self.initial = initial
        self.factor = factor
        self.maximum = maximum
        self.failures = 0

    def record_failure(self):
        """Register a failure and return the delay to apply before retrying."""
        self.failures += 1
        return self.current_delay()

    def record_success(self):
        self.failures = 0

    def current_delay(self):
        if self.failures == 0:
            return 0.0
        return min(self.initial * self.factor ** (self.failures - 1), self.maximum)
