"""Tests for the dbfreeze response model."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from bluegreen.models.freeze import FREEZE, THAW, DbFreezeMode, DbFreezeProgress


class TestDbFreezeProgress:
    def test_parses_camel_case_body_with_mode_object(self):
        progress = DbFreezeProgress.model_validate({
            "mode": {"printable": "Frozen", "transition": "enterDbFreeze", "code": "FROZEN"},
            "username": "deployer",
            "startTime": "2026-03-01T12:00:00Z",
            "scannersAwaitingTermination": "scanner-a, scanner-b",
            "lockError": False,
        })
        assert progress.mode == DbFreezeMode.FROZEN
        assert progress.start_time == "2026-03-01T12:00:00Z"
        assert progress.scanners_awaiting_termination == ["scanner-a", "scanner-b"]

    def test_plain_mode_string_and_defaults(self):
        progress = DbFreezeProgress.model_validate({"mode": "NORMAL"})
        assert progress.mode == DbFreezeMode.NORMAL
        assert progress.lock_error is False
        assert progress.transition_error is None
        assert progress.scanners_awaiting_termination == []

    def test_mode_parsing_ignores_case_and_delimiter(self):
        assert DbFreezeProgress.model_validate({"mode": {"code": "frozen"}}).mode == DbFreezeMode.FROZEN
        assert DbFreezeProgress.model_validate({"mode": "FLUSH-ERROR"}).mode == DbFreezeMode.FLUSH_ERROR
        assert DbFreezeProgress.model_validate({"mode": " thaw_error "}).mode == DbFreezeMode.THAW_ERROR

    def test_unknown_mode_is_rejected(self):
        with pytest.raises(ValidationError):
            DbFreezeProgress.model_validate({"mode": "MELTING"})

    def test_lock_error_body(self):
        progress = DbFreezeProgress.model_validate({"lockError": True})
        assert progress.lock_error is True
        assert progress.mode is None


class TestTransitionParameters:
    def test_freeze(self):
        assert FREEZE.allowed_start_modes == (DbFreezeMode.NORMAL, DbFreezeMode.FLUSH_ERROR)
        assert FREEZE.destination_mode == DbFreezeMode.FROZEN
        assert FREEZE.transition_method_path == "enterDbFreeze"

    def test_thaw(self):
        assert THAW.allowed_start_modes == (DbFreezeMode.FROZEN, DbFreezeMode.THAW_ERROR)
        assert THAW.transitional_mode == DbFreezeMode.THAW
        assert THAW.transition_method_path == "exitDbFreeze"
