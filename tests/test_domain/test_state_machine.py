"""Tests for the UnitDeploymentStateMachine domain guard.

These tests verify that:
    1. The deploy and override paths reach a recordable state.
    2. Failure paths end in FAILED and are not recordable.
    3. Terminal states allow no further events.
    4. Unknown starting statuses are rejected.
"""

from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from nero_dex_deployer.domain.state_machine import UnitDeploymentStateMachine


class TestHappyPath:
    def test_deploy_path(self) -> None:
        sm = UnitDeploymentStateMachine()
        assert sm.status == "PENDING"

        sm.submit()
        assert sm.status == "SUBMITTED"
        assert sm.is_recordable is False

        sm.confirm()
        assert sm.status == "CONFIRMED"
        assert sm.is_recordable is True

    def test_override_path(self) -> None:
        sm = UnitDeploymentStateMachine()
        sm.use_override()
        assert sm.status == "OVERRIDDEN"
        assert sm.is_recordable is True


class TestFailurePath:
    def test_abort_before_submission(self) -> None:
        sm = UnitDeploymentStateMachine()
        sm.abort()
        assert sm.status == "FAILED"
        assert sm.is_recordable is False

    def test_reject_after_submission(self) -> None:
        sm = UnitDeploymentStateMachine("SUBMITTED")
        sm.reject()
        assert sm.status == "FAILED"


class TestIllegalTransitions:
    def test_confirm_without_submit(self) -> None:
        sm = UnitDeploymentStateMachine()
        with pytest.raises(TransitionNotAllowed):
            sm.confirm()

    def test_cannot_confirm_twice(self) -> None:
        sm = UnitDeploymentStateMachine("CONFIRMED")
        with pytest.raises(TransitionNotAllowed):
            sm.confirm()

    def test_override_after_submit(self) -> None:
        sm = UnitDeploymentStateMachine("SUBMITTED")
        with pytest.raises(TransitionNotAllowed):
            sm.use_override()

    @pytest.mark.parametrize("status", ["CONFIRMED", "OVERRIDDEN", "FAILED"])
    def test_terminal_states_are_final(self, status: str) -> None:
        sm = UnitDeploymentStateMachine(status)
        assert sm.get_allowed_events() == []


class TestAllowedEvents:
    def test_pending_allowed(self) -> None:
        allowed = UnitDeploymentStateMachine().get_allowed_events()
        assert set(allowed) == {"submit", "use_override", "abort"}

    def test_submitted_allowed(self) -> None:
        allowed = UnitDeploymentStateMachine("SUBMITTED").get_allowed_events()
        assert set(allowed) == {"confirm", "reject"}

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError, match="Unknown status"):
            UnitDeploymentStateMachine("DEPLOYED")
