"""Shared progress checker state and status classification helpers."""

from __future__ import annotations

import logging
from collections.abc import Collection
from enum import Enum, StrEnum
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Verdict(StrEnum):
    DONE = "DONE"
    WAIT = "WAIT"
    UNEXPECTED = "UNEXPECTED"


def classify(status: Enum | None, intermediate: Collection[Enum], final: Enum) -> Verdict:
    """Classify a parsed status as terminal success, keep-waiting, or unexpected."""
    if status is None:
        return Verdict.UNEXPECTED
    if status == final:
        return Verdict.DONE
    if status in intermediate:
        return Verdict.WAIT
    return Verdict.UNEXPECTED


class ProgressCheckerBase(Generic[T]):
    """Holds the done/result state common to every progress checker."""

    def __init__(self, log_context: str = "") -> None:
        self._log_context = log_context
        self._done = False
        self._result: T | None = None

    @property
    def description(self) -> str:
        raise NotImplementedError

    @property
    def result(self) -> T | None:
        return self._result

    def is_done(self) -> bool:
        return self._done

    def _succeed(self, result: T) -> None:
        logger.info("%s is done", self.description)
        self._done = True
        self._result = result

    def _fail(self, reason: str) -> None:
        logger.error("%s%s: %s", self._log_context, self.description, reason)
        self._done = True
        self._result = None

    def timeout(self) -> T | None:
        logger.error("%s%s did not finish before the waiter gave up", self._log_context, self.description)
        return None
