"""Result of running a local shell command."""

from __future__ import annotations

from pydantic import BaseModel


class ShellResult(BaseModel):
    output: str = ""
    exit_value: int
