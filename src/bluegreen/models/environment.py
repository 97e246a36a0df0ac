"""Environment registry models: databases, vms, and applications per environment."""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class DatabaseType(StrEnum):
    RDS = "RDS"
    NATIVE = "NATIVE"


class PhysicalDatabase(BaseModel):
    db_type: DatabaseType = DatabaseType.RDS
    instance_name: str
    live: bool = False
    url: str = ""
    username: str = ""
    password: str = ""
    source_snapshot_id: Optional[str] = None  # set on databases restored by a stage deploy


class LogicalDatabase(BaseModel):
    logical_name: str
    physical_database: Optional[PhysicalDatabase] = None


class Application(BaseModel):
    scheme: str = "http"
    hostname: str
    port: Optional[int] = Field(default=None, ge=0, le=65535)
    url_path: str = Field(default="/", pattern=r"^/.*")

    def make_hostname_uri(self) -> str:
        """Return ``scheme://hostname[:port]``, without the url path."""
        uri = f"{self.scheme}://{self.hostname}"
        if self.port is not None:
            uri += f":{self.port}"
        return uri


class ApplicationVm(BaseModel):
    hostname: str
    ip_address: str
    applications: list[Application] = Field(default_factory=list)


class Environment(BaseModel):
    """A named blue-green environment (e.g. live or stage)."""

    env_name: str
    logical_databases: list[LogicalDatabase] = Field(default_factory=list)
    application_vms: list[ApplicationVm] = Field(default_factory=list)
