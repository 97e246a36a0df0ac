"""Progress checker for application freeze/thaw transitions."""

from __future__ import annotations

import logging

from bluegreen.core.protocols import IApplicationSession
from bluegreen.models.freeze import DbFreezeMode, DbFreezeProgress, TransitionParameters
from bluegreen.polling.base import ProgressCheckerBase

logger = logging.getLogger(__name__)


def usable_progress(progress: DbFreezeProgress | None, log_context: str) -> DbFreezeProgress | None:
    """Return ``progress`` unless it is empty or reports a lock or transition error."""
    if progress is None:
        logger.error("%sNull application response", log_context)
    elif progress.lock_error:
        logger.error("%sApplication responded with a lock error: %s", log_context, progress)
    elif progress.transition_error and progress.transition_error.strip():
        logger.error("%sApplication responded with a transition error: %s", log_context, progress)
    else:
        return progress
    return None


class TransitionProgressChecker(ProgressCheckerBase[bool]):
    """Polls dbFreezeProgress until the application reaches the destination mode.

    Lock errors and transition errors end the wait as failures; the
    application client has already retried them.
    """

    def __init__(self, parameters: TransitionParameters, log_context: str,
                 initial_progress: DbFreezeProgress | None, session: IApplicationSession) -> None:
        super().__init__(log_context)
        self._parameters = parameters
        self._initial_progress = initial_progress
        self._session = session

    @property
    def description(self) -> str:
        return f"application {self._parameters.verb}"

    def initial_check(self) -> None:
        logger.debug("%sInitial application response: %s", self._log_context, self._initial_progress)
        progress = usable_progress(self._initial_progress, self._log_context)
        self._check_mode(progress.mode if progress else None)

    def followup_check(self, wait_num: int) -> None:
        progress = self._session.get_db_freeze_progress(wait_num)
        logger.debug("%sApplication response after wait#%d: %s", self._log_context, wait_num, progress)
        progress = usable_progress(progress, self._log_context)
        self._check_mode(progress.mode if progress else None)

    def _check_mode(self, mode: DbFreezeMode | None) -> None:
        if mode is None:
            self._fail("no usable response from the application")
        elif mode == self._parameters.destination_mode:
            logger.info("Application successfully reached destination mode '%s'", mode)
            self._succeed(True)
        elif mode == self._parameters.transition_error_mode:
            self._fail(f"Application responded with transition error '{mode}'")
        elif mode == self._parameters.transitional_mode:
            logger.debug("Application is in transitional mode '%s'", mode)
        else:
            self._fail(f"Application has reached unexpected mode '{mode}'")

    def timeout(self) -> bool | None:
        logger.error("Application failed to reach destination mode '%s' prior to timeout",
                     self._parameters.destination_mode)
        return None
