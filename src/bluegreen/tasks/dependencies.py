"""Collaborators shared by every task of a job."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bluegreen.clients.app.application_client import ApplicationClient
from bluegreen.clients.aws.ec2_client import Ec2Client
from bluegreen.clients.aws.elb_client import ElbClient
from bluegreen.clients.aws.rds_client import RdsClient
from bluegreen.clients.shell.local_shell import LocalShellClient
from bluegreen.clients.ssh.ssh_client import SshClient
from bluegreen.core.config import AppSettings, LocalShellConfig, ShellConfig, SshConfig, WaiterConfig
from bluegreen.core.protocols import (
    IApplicationClient,
    IEc2Client,
    IElbClient,
    IEnvironmentStore,
    ILocalShellClient,
    IRdsClient,
    ISleeper,
    ISshClient,
)


@dataclass(frozen=True)
class TaskDependencies:
    environment_store: IEnvironmentStore
    sleeper: ISleeper
    waiter_config: WaiterConfig
    ssh_config: SshConfig
    rds_client: IRdsClient
    elb_client: IElbClient
    ec2_client: IEc2Client
    ssh_client: ISshClient
    application_client: IApplicationClient
    shell_client: ILocalShellClient
    shell_config: LocalShellConfig

    def transition_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for FreezeTask / ThawTask."""
        return {
            "environment_store": self.environment_store,
            "application_client": self.application_client,
            "waiter_parameters": self.waiter_config.application_transition,
            "sleeper": self.sleeper,
        }

    def shell_kwargs(self, shell_config: ShellConfig) -> dict[str, Any]:
        """Keyword arguments for LocalShellTask running ``shell_config``."""
        return {
            "environment_store": self.environment_store,
            "shell_client": self.shell_client,
            "shell_config": shell_config,
        }

    def application_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for SmokeTestTask / DiscoveryTask."""
        return {"environment_store": self.environment_store, "application_client": self.application_client}


def build_task_dependencies(settings: AppSettings, environment_store: IEnvironmentStore,
                            sleeper: ISleeper) -> TaskDependencies:
    """Wire the production clients from settings. Nothing connects until first use."""
    aws = settings.aws
    ssh = settings.ssh
    app = settings.application
    return TaskDependencies(
        environment_store=environment_store,
        sleeper=sleeper,
        waiter_config=settings.waiter,
        ssh_config=ssh,
        rds_client=RdsClient(region=aws.region, endpoint_url=aws.endpoint_url),
        elb_client=ElbClient(region=aws.region, endpoint_url=aws.endpoint_url),
        ec2_client=Ec2Client(region=aws.region, endpoint_url=aws.endpoint_url),
        ssh_client=SshClient(
            ssh.hostname, ssh.username, ssh.password, port=ssh.port,
            connect_timeout_s=ssh.connect_timeout_s, command_timeout_s=ssh.command_timeout_s,
        ),
        application_client=ApplicationClient(
            app.username, app.password, sleeper,
            request_timeout_s=app.request_timeout_s, max_num_tries=app.max_num_tries,
            retry_delay_ms=app.retry_delay_ms,
        ),
        shell_client=LocalShellClient(timeout_s=settings.shell.timeout_s),
        shell_config=settings.shell,
    )
