"""Bounded polling loop that drives a progress checker to a conclusion.

A waiter runs one initial check, then up to ``max_num_waits`` follow-up
checks, sleeping before each follow-up. It never reports success on its
own: if the checker is not done when the waits run out, the checker's
``timeout()`` result (None) is returned.
"""

from __future__ import annotations

import logging
from typing import Generic, TypeVar

from bluegreen.core.config import WaiterParameters
from bluegreen.core.exceptions import UnexpectedStatusError, WaitTimeoutError
from bluegreen.core.protocols import IProgressChecker, ISleeper

logger = logging.getLogger(__name__)

T = TypeVar("T")

LONG_SLEEP_THRESHOLD_MS = 30000


class Waiter(Generic[T]):
    """Polls one progress checker until it is done or the waits are exhausted."""

    def __init__(self, parameters: WaiterParameters, sleeper: ISleeper,
                 checker: IProgressChecker[T]) -> None:
        self._parameters = parameters
        self._sleeper = sleeper
        self._checker = checker
        self._timed_out = False

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    def wait_til_done(self) -> T | None:
        """Block until the checker concludes; return its result, or None on timeout."""
        self._timed_out = False
        self._checker.initial_check()
        if self._checker.is_done():
            return self._checker.result
        for wait_num in range(1, self._parameters.max_num_waits + 1):
            self._sleep(wait_num)
            self._checker.followup_check(wait_num)
            if self._checker.is_done():
                return self._checker.result
        self._timed_out = True
        return self._checker.timeout()

    def _sleep(self, wait_num: int) -> None:
        delay = (
            self._parameters.initial_wait_delay_ms if wait_num == 1
            else self._parameters.followup_wait_delay_ms
        )
        interval = max(1, self._parameters.wait_report_interval)
        if wait_num == 1 or wait_num % interval == 0:
            logger.info("%s: wait #%d of %d, sleeping %d ms",
                        self._checker.description, wait_num, self._parameters.max_num_waits, delay)
        elif delay > LONG_SLEEP_THRESHOLD_MS:
            logger.debug("%s: wait #%d, sleeping %d ms", self._checker.description, wait_num, delay)
        self._sleeper.sleep(delay)


def wait_for_result(waiter: Waiter[T], failure_message: str) -> T:
    """Run the waiter and convert a None result into the matching error."""
    result = waiter.wait_til_done()
    if result is None:
        if waiter.timed_out:
            raise WaitTimeoutError(f"{failure_message} (timed out)")
        raise UnexpectedStatusError(failure_message)
    return result
