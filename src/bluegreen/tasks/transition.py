"""Freeze and thaw an application's database access over its REST api."""

from __future__ import annotations

import logging

from bluegreen.core.config import WaiterParameters
from bluegreen.core.protocols import IApplicationClient, IApplicationSession, IEnvironmentStore, ISleeper
from bluegreen.models.freeze import FREEZE, THAW, TransitionParameters
from bluegreen.models.history import TaskStatus
from bluegreen.polling.transition_checkers import TransitionProgressChecker, usable_progress
from bluegreen.polling.waiter import Waiter
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader

logger = logging.getLogger(__name__)


class TransitionTask(Task):
    """Moves the environment's application from one freeze mode to another.

    The readiness check is read-only and runs under noop too, so a noop run
    can report ERROR for an application that is not ready. Failures reported
    by the application end the task with ERROR rather than an exception.
    """

    def __init__(self, position: int, env_name: str, parameters: TransitionParameters, *,
                 environment_store: IEnvironmentStore, application_client: IApplicationClient,
                 waiter_parameters: WaiterParameters, sleeper: ISleeper) -> None:
        super().__init__(position)
        self._env_name = env_name
        self._parameters = parameters
        self._environment_store = environment_store
        self._application_client = application_client
        self._waiter_parameters = waiter_parameters
        self._sleeper = sleeper

    @property
    def env_name(self) -> str:
        return self._env_name

    def process(self, noop: bool) -> TaskStatus:
        loader = EnvironmentLoader(self._environment_store, self._env_name)
        _, _, application = loader.load_application()
        context = f"[Environment '{self._env_name}', Application '{application.make_hostname_uri()}']: "
        session = self._application_client.authenticate(application)
        if not self._app_is_ready(session, context):
            return TaskStatus.ERROR
        verb = self._parameters.verb
        logger.info("%sRequesting a %s%s", context, verb, self.noop_remark(noop))
        if noop:
            logger.info("%sWaiting for %s to take effect%s", context, verb, self.noop_remark(noop))
            return TaskStatus.NOOP
        initial_progress = session.put_request_transition(self._parameters.transition_method_path, 0)
        initial_progress = usable_progress(initial_progress, context)
        if initial_progress is None:
            return TaskStatus.ERROR
        logger.info("%sWaiting for %s to take effect", context, verb)
        checker = TransitionProgressChecker(self._parameters, context, initial_progress, session)
        reached = Waiter(self._waiter_parameters, self._sleeper, checker).wait_til_done()
        return TaskStatus.DONE if reached else TaskStatus.ERROR

    def _app_is_ready(self, session: IApplicationSession, context: str) -> bool:
        logger.info("%sChecking if application is ready to %s", context, self._parameters.verb)
        progress = session.get_db_freeze_progress()
        logger.debug("%sApplication response: %s", context, progress)
        if progress is None:
            logger.error("%sNull application response", context)
            return False
        if progress.lock_error:
            logger.error("%sApplication responded with a lock error: %s", context, progress)
            return False
        if progress.mode not in self._parameters.allowed_start_modes:
            logger.error("%sMode '%s' indicates application is not ready to %s.  Progress: %s",
                         context, progress.mode, self._parameters.verb, progress)
            return False
        return True


class FreezeTask(TransitionTask):
    """Stops the application writing to its database."""

    def __init__(self, position: int, env_name: str, **kwargs) -> None:
        super().__init__(position, env_name, FREEZE, **kwargs)


class ThawTask(TransitionTask):
    """Lets the application write to its database again."""

    def __init__(self, position: int, env_name: str, **kwargs) -> None:
        super().__init__(position, env_name, THAW, **kwargs)
