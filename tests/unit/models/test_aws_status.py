"""Tests for AWS status parsing."""

from __future__ import annotations

import pytest

from bluegreen.models.aws_status import (
    ElbInstanceState,
    RdsInstanceStatus,
    RdsParameterApplyStatus,
    RdsSnapshotStatus,
    parse_status,
)


class TestParseStatus:
    @pytest.mark.parametrize("raw, expected", [
        ("available", RdsInstanceStatus.AVAILABLE),
        ("backing-up", RdsInstanceStatus.BACKING_UP),
        ("Backing-Up", RdsInstanceStatus.BACKING_UP),
        (" creating ", RdsInstanceStatus.CREATING),
    ])
    def test_instance_status(self, raw, expected):
        assert parse_status(RdsInstanceStatus, raw) == expected

    def test_unknown_and_blank_are_none(self):
        assert parse_status(RdsInstanceStatus, "exploding") is None
        assert parse_status(RdsInstanceStatus, "") is None
        assert parse_status(RdsInstanceStatus, None) is None

    def test_param_apply_status(self):
        assert parse_status(RdsParameterApplyStatus, "pending-reboot") == RdsParameterApplyStatus.PENDING_REBOOT

    def test_snapshot_deleted_is_known(self):
        assert parse_status(RdsSnapshotStatus, "deleted") == RdsSnapshotStatus.DELETED


class TestElbInstanceState:
    def test_exact_match_only(self):
        assert ElbInstanceState.parse("InService") == ElbInstanceState.IN_SERVICE
        assert ElbInstanceState.parse("inservice") is None
        assert ElbInstanceState.parse(None) is None
