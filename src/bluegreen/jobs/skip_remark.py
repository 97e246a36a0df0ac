"""Decides whether a task should be skipped, given its prior attempt."""

from __future__ import annotations

from dataclasses import dataclass

from bluegreen.models.history import TaskStatus


@dataclass(frozen=True)
class SkipRemark:
    skip: bool
    remark: str


_NO_FORCE: dict[TaskStatus, SkipRemark] = {
    TaskStatus.SKIPPED: SkipRemark(True, "will skip it again"),
    TaskStatus.DONE: SkipRemark(True, "will skip it now"),
    TaskStatus.PROCESSING: SkipRemark(False, "must have been interrupted or timed out, will try it again now"),
    TaskStatus.ERROR: SkipRemark(False, "will try it again now"),
}

_FORCE: dict[TaskStatus, SkipRemark] = {
    TaskStatus.SKIPPED: SkipRemark(False, "will run it now"),
    TaskStatus.DONE: SkipRemark(False, "will run it again now"),
    TaskStatus.PROCESSING: _NO_FORCE[TaskStatus.PROCESSING],
    TaskStatus.ERROR: _NO_FORCE[TaskStatus.ERROR],
}


def make_skip_remark(prior_status: TaskStatus, force: bool) -> SkipRemark:
    """Skip when the prior attempt already succeeded or was skipped, unless forced.

    A prior NOOP row should never exist (noop runs persist nothing), so it is
    treated like an unfinished attempt.
    """
    table = _FORCE if force else _NO_FORCE
    decision = table.get(prior_status, SkipRemark(False, "will try it again now"))
    if force:
        return SkipRemark(decision.skip, f"{decision.remark} (force=true)")
    return decision
