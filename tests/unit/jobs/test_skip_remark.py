"""Tests for the skip-or-run decision table."""

from __future__ import annotations

import pytest

from bluegreen.jobs.skip_remark import make_skip_remark
from bluegreen.models.history import TaskStatus


class TestMakeSkipRemark:
    @pytest.mark.parametrize(
        ("prior", "skip", "remark"),
        [
            (TaskStatus.SKIPPED, True, "will skip it again"),
            (TaskStatus.DONE, True, "will skip it now"),
            (TaskStatus.PROCESSING, False, "must have been interrupted or timed out, will try it again now"),
            (TaskStatus.ERROR, False, "will try it again now"),
            (TaskStatus.NOOP, False, "will try it again now"),
        ],
    )
    def test_without_force(self, prior, skip, remark):
        decision = make_skip_remark(prior, force=False)
        assert decision.skip is skip
        assert decision.remark == remark

    @pytest.mark.parametrize(
        ("prior", "remark"),
        [
            (TaskStatus.SKIPPED, "will run it now (force=true)"),
            (TaskStatus.DONE, "will run it again now (force=true)"),
            (TaskStatus.PROCESSING, "must have been interrupted or timed out, will try it again now (force=true)"),
            (TaskStatus.ERROR, "will try it again now (force=true)"),
        ],
    )
    def test_force_never_skips(self, prior, remark):
        decision = make_skip_remark(prior, force=True)
        assert decision.skip is False
        assert decision.remark == remark
