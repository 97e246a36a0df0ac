"""Ask an env's application to rediscover its database and check the answer."""

from __future__ import annotations

import logging

from bluegreen.core.exceptions import IdentityMismatchError, UnexpectedStatusError
from bluegreen.core.protocols import IApplicationClient, IEnvironmentStore
from bluegreen.models.discovery import DiscoveredDatabase, DiscoveryResult
from bluegreen.models.history import TaskStatus
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader

logger = logging.getLogger(__name__)


class DiscoveryTask(Task):
    """Runs after the database swap so the new live application picks up the live database.

    Login happens under noop too, since it changes nothing on the application.
    """

    def __init__(self, position: int, env_name: str, *, environment_store: IEnvironmentStore,
                 application_client: IApplicationClient) -> None:
        super().__init__(position)
        self._env_name = env_name
        self._environment_store = environment_store
        self._application_client = application_client

    def process(self, noop: bool) -> TaskStatus:
        loader = EnvironmentLoader(self._environment_store, self._env_name)
        _, _, application = loader.load_application()
        context = f"{loader.context()}[{application.make_hostname_uri()}]: "
        session = self._application_client.authenticate(application)
        logger.info("%sRequesting database discovery%s", context, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP
        database = self._check_result(session.put_discover_db(), context)
        logger.info("%sApplication discovered live database %s (%s)", context, database.logical_name,
                    database.db_url)
        return TaskStatus.DONE

    def _check_result(self, result: DiscoveryResult | None, context: str) -> DiscoveredDatabase:
        if result is None:
            raise UnexpectedStatusError(f"{context}No response from discoverDb")
        if result.lock_error:
            raise UnexpectedStatusError(f"{context}discoverDb still reported a lock error after retries")
        if result.discovery_error:
            raise UnexpectedStatusError(f"{context}Discovery failed: {result.discovery_error}")
        database = result.physical_database
        if database is None:
            raise UnexpectedStatusError(f"{context}discoverDb replied without a physical database")
        if database.env_name != self._env_name:
            raise IdentityMismatchError(context, requested=self._env_name, replied=str(database.env_name),
                                        noun="env")
        if not database.db_is_live:
            raise UnexpectedStatusError(f"{context}Discovered database {database.db_url} is not live")
        return database
