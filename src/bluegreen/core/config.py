"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class WaiterParameters(BaseModel):
    """Polling parameters for one kind of long-running operation."""

    initial_wait_delay_ms: int = 3000
    followup_wait_delay_ms: int = 3000
    wait_report_interval: int = 10
    max_num_waits: int = 120


class AwsConfig(BaseSettings):
    """AWS client configuration (RDS, ELB, EC2)."""

    model_config = {"env_prefix": "BLUEGREEN_AWS_"}

    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration for job history and the environment registry."""

    model_config = {"env_prefix": "BLUEGREEN_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class SshConfig(BaseSettings):
    """Ssh target host that knows how to create and delete application vms."""

    model_config = {"env_prefix": "BLUEGREEN_SSH_"}

    hostname: str = ""
    port: int = 22
    username: str = ""
    password: str = ""
    connect_timeout_s: int = 30
    command_timeout_s: int = 300

    vm_create_initial_command: str = ""
    vm_create_initial_regexp_ipaddress: str = r"ipAddress=(\S+)"
    vm_create_initial_regexp_hostname: str = r"hostname=(\S+)"
    vm_create_followup_command: str = ""
    vm_create_followup_regexp_done: str = r"DONE"
    vm_create_followup_regexp_error: str = r"ERROR"

    vm_delete_initial_command: str = ""
    vm_delete_initial_regexp_success: str = r"DELETED"


class ShellConfig(BaseModel):
    """One local shell command with the rules that decide whether it succeeded.

    The command may reference %{name} substitution variables. At least one of
    exitvalue_success or regexp_error must be set.
    """

    command: str = ""
    regexp_error: str = ""
    exitvalue_success: int | None = 0
    extra_substitutions: dict[str, str] = Field(default_factory=dict)


class LocalShellConfig(BaseSettings):
    """Local commands run by the jobs, e.g. BLUEGREEN_SHELL_DEPLOY_PACKAGES__COMMAND."""

    model_config = {"env_prefix": "BLUEGREEN_SHELL_", "env_nested_delimiter": "__"}

    timeout_s: int = 3600
    create_stage_env: ShellConfig = ShellConfig()
    deploy_packages: ShellConfig = ShellConfig()
    swap_databases: ShellConfig = ShellConfig()
    shutdown_applications: ShellConfig = ShellConfig()
    delete_env: ShellConfig = ShellConfig()


class ApplicationConfig(BaseSettings):
    """Remote application REST client configuration."""

    model_config = {"env_prefix": "BLUEGREEN_APP_"}

    username: str = ""
    password: str = ""
    request_timeout_s: int = 30
    max_num_tries: int = 3
    retry_delay_ms: int = 5000


class WaiterConfig(BaseSettings):
    """Waiter parameters per polled operation."""

    model_config = {"env_prefix": "BLUEGREEN_WAITER_", "env_nested_delimiter": "__"}

    rds_snapshot_restore: WaiterParameters = WaiterParameters(
        initial_wait_delay_ms=30000, followup_wait_delay_ms=30000, wait_report_interval=4, max_num_waits=120,
    )
    rds_instance_delete: WaiterParameters = WaiterParameters(
        initial_wait_delay_ms=30000, followup_wait_delay_ms=30000, wait_report_interval=4, max_num_waits=60,
    )
    fixed_elb_flip: WaiterParameters = WaiterParameters(
        initial_wait_delay_ms=10000, followup_wait_delay_ms=10000, wait_report_interval=6, max_num_waits=60,
    )
    ssh_vm_create: WaiterParameters = WaiterParameters(
        initial_wait_delay_ms=60000, followup_wait_delay_ms=30000, wait_report_interval=4, max_num_waits=80,
    )
    application_transition: WaiterParameters = WaiterParameters()


class JobConfig(BaseSettings):
    """Job runner configuration."""

    model_config = {"env_prefix": "BLUEGREEN_JOB_"}

    max_age_relevant_prior_job_s: int = 60 * 60 * 24  # 1 day


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "BLUEGREEN_"}

    log_level: str = "INFO"

    aws: AwsConfig = AwsConfig()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    ssh: SshConfig = SshConfig()
    application: ApplicationConfig = ApplicationConfig()
    shell: LocalShellConfig = LocalShellConfig()
    waiter: WaiterConfig = WaiterConfig()
    job: JobConfig = JobConfig()
