"""Base class for job steps."""

from __future__ import annotations

from bluegreen.core.exceptions import ConfigurationError
from bluegreen.models.history import TaskStatus


class Task:
    """One step of a job, fully wired at construction.

    Subclasses take every collaborator and target name as constructor
    arguments and implement ``process``. ``process(noop=True)`` may read
    external state but must not change it.
    """

    def __init__(self, position: int) -> None:
        if position < 1:
            raise ConfigurationError(f"Task position must be 1 or more, got {position}")
        self._position = position

    @property
    def position(self) -> int:
        return self._position

    @property
    def name(self) -> str:
        return type(self).__name__

    def process(self, noop: bool) -> TaskStatus:
        raise NotImplementedError

    @staticmethod
    def noop_remark(noop: bool) -> str:
        return " (noop)" if noop else ""

    @staticmethod
    def done_or_noop(noop: bool) -> TaskStatus:
        return TaskStatus.NOOP if noop else TaskStatus.DONE

    def __repr__(self) -> str:
        return f"{self.name}(position={self._position})"
