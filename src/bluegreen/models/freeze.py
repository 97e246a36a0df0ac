"""Models for the application's database-freeze REST resource."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from bluegreen.models.aws_status import parse_status


class DbFreezeMode(StrEnum):
    """The application's ability to write to its database."""

    NORMAL = "NORMAL"
    FLUSHING = "FLUSHING"
    FLUSH_ERROR = "FLUSH_ERROR"
    FROZEN = "FROZEN"
    THAW = "THAW"
    THAW_ERROR = "THAW_ERROR"


class DbFreezeProgress(BaseModel):
    """Response body of dbFreezeProgress and the enter/exit transition calls."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mode: Optional[DbFreezeMode] = None
    username: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    scanners_awaiting_termination: list[str] = Field(default_factory=list)
    lock_error: bool = False
    transition_error: Optional[str] = None

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_from_code(cls, value: Any) -> Any:
        # {"printable": "Normal", "transition": "...", "code": "NORMAL"}
        if isinstance(value, dict):
            value = value.get("code")
        if isinstance(value, str):
            return parse_status(DbFreezeMode, value) or value
        return value

    @field_validator("scanners_awaiting_termination", mode="before")
    @classmethod
    def _scanners_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return value


class TransitionParameters(BaseModel):
    """Describes one freeze-mode transition: where it may start, pass through, and end."""

    verb: str
    allowed_start_modes: tuple[DbFreezeMode, ...]
    transitional_mode: DbFreezeMode
    destination_mode: DbFreezeMode
    transition_error_mode: DbFreezeMode
    transition_method_path: str


FREEZE = TransitionParameters(
    verb="freeze",
    allowed_start_modes=(DbFreezeMode.NORMAL, DbFreezeMode.FLUSH_ERROR),
    transitional_mode=DbFreezeMode.FLUSHING,
    destination_mode=DbFreezeMode.FROZEN,
    transition_error_mode=DbFreezeMode.FLUSH_ERROR,
    transition_method_path="enterDbFreeze",
)

THAW = TransitionParameters(
    verb="thaw",
    allowed_start_modes=(DbFreezeMode.FROZEN, DbFreezeMode.THAW_ERROR),
    transitional_mode=DbFreezeMode.THAW,
    destination_mode=DbFreezeMode.NORMAL,
    transition_error_mode=DbFreezeMode.THAW_ERROR,
    transition_method_path="exitDbFreeze",
)
