"""Response of the application's discoverDb call."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DiscoveredDatabase(BaseModel):
    """The physical database an application reports it is connected to."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    env_name: Optional[str] = None
    logical_name: Optional[str] = None
    db_url: Optional[str] = None
    db_username: Optional[str] = None
    db_is_live: bool = False


class DiscoveryResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    physical_database: Optional[DiscoveredDatabase] = None
    lock_error: bool = False
    discovery_error: Optional[str] = None
