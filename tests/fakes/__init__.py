"""Shared test doubles: re-export memory backends and scripted clients."""

from __future__ import annotations

from bluegreen.persistence.memory_backend import MemoryEnvironmentStore, MemoryHistoryStore
from tests.fakes.clients import (
    FakeApplicationClient,
    FakeApplicationSession,
    FakeEc2Client,
    FakeElbClient,
    FakeLocalShellClient,
    FakeRdsClient,
    FakeSshClient,
    FixedClock,
    RecordingSleeper,
    RecordingTask,
)

__all__ = [
    "FakeApplicationClient",
    "FakeApplicationSession",
    "FakeEc2Client",
    "FakeElbClient",
    "FakeLocalShellClient",
    "FakeRdsClient",
    "FakeSshClient",
    "FixedClock",
    "MemoryEnvironmentStore",
    "MemoryHistoryStore",
    "RecordingSleeper",
    "RecordingTask",
]
