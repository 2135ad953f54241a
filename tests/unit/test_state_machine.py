"""
Unit tests for the table-driven state machines.
Tests binding, registration and match transitions plus helper methods.
"""
import pytest
from livesync.state_machine import (
    BindingState,
    BindingStateMachine,
    MatchStateMachine,
    MatchStatus,
    RegistrationStateMachine,
    RegistrationStatus,
    TransitionError,
)


class TestTransitionError:
    """Tests for TransitionError exception."""

    def test_error_attributes(self):
        """TransitionError should have from_state and to_state."""
        error = TransitionError("completed", "live")
        assert error.from_state == "completed"
        assert error.to_state == "live"

    def test_default_reason(self):
        error = TransitionError("completed", "live")
        assert "completed" in str(error)
        assert "live" in str(error)

    def test_custom_reason(self):
        error = TransitionError("pending", "approved", "Tournament is full")
        assert str(error) == "Tournament is full"


class TestBindingStateMachine:
    """Tests for the per-screen binding lifecycle."""

    def test_initial_state(self):
        assert BindingStateMachine().state == BindingState.IDLE

    def test_first_mount(self):
        sm = BindingStateMachine()
        sm.transition("fetch")
        sm.transition("resolve")
        assert sm.state == BindingState.READY

    def test_refresh_cycle(self):
        sm = BindingStateMachine(BindingState.READY)
        assert sm.transition("fetch") == BindingState.LOADING
        assert sm.transition("resolve") == BindingState.READY

    def test_error_recovers_to_ready(self):
        sm = BindingStateMachine(BindingState.LOADING)
        sm.transition("fail")
        assert sm.state == BindingState.ERROR
        sm.transition("recover")
        assert sm.state == BindingState.READY

    @pytest.mark.parametrize("state", [
        BindingState.IDLE, BindingState.LOADING, BindingState.READY, BindingState.ERROR
    ])
    def test_close_from_any_state(self, state):
        sm = BindingStateMachine(state)
        sm.transition("close")
        assert sm.state == BindingState.CLOSED

    def test_closed_is_terminal(self):
        sm = BindingStateMachine(BindingState.CLOSED)
        assert sm.allowed_actions == []
        with pytest.raises(TransitionError):
            sm.transition("fetch")

    def test_history_records_transitions(self):
        sm = BindingStateMachine()
        sm.transition("fetch")
        sm.transition("resolve")
        assert sm.get_history() == [
            (BindingState.IDLE, "fetch", BindingState.LOADING),
            (BindingState.LOADING, "resolve", BindingState.READY),
        ]


class TestRegistrationStateMachine:
    """Tests for registration moderation."""

    def test_pending_can_be_approved_or_rejected(self):
        sm = RegistrationStateMachine()
        assert sm.state == RegistrationStatus.PENDING
        assert set(sm.allowed_actions) == {"approve", "reject"}

    def test_retoggle(self):
        sm = RegistrationStateMachine(RegistrationStatus.APPROVED)
        sm.move_to(RegistrationStatus.REJECTED)
        sm.move_to(RegistrationStatus.APPROVED)
        assert sm.state == RegistrationStatus.APPROVED

    def test_cannot_return_to_pending(self):
        sm = RegistrationStateMachine(RegistrationStatus.APPROVED)
        assert not sm.can_reach(RegistrationStatus.PENDING)
        with pytest.raises(TransitionError):
            sm.move_to(RegistrationStatus.PENDING)

    def test_from_state_string(self):
        assert RegistrationStateMachine.from_state_string("rejected").state == RegistrationStatus.REJECTED

    def test_from_unknown_state_string(self):
        """Unknown values fall back to the initial state."""
        assert RegistrationStateMachine.from_state_string("bogus").state == RegistrationStatus.PENDING


class TestMatchStateMachine:
    """Tests for match status changes."""

    def test_scheduled_to_live_to_completed(self):
        sm = MatchStateMachine()
        sm.transition("start")
        assert sm.state == MatchStatus.LIVE
        sm.transition("complete")
        assert sm.state == MatchStatus.COMPLETED

    def test_live_can_be_rescheduled(self):
        sm = MatchStateMachine(MatchStatus.LIVE)
        sm.move_to(MatchStatus.SCHEDULED)
        assert sm.state == MatchStatus.SCHEDULED

    def test_scheduled_can_complete_directly(self):
        sm = MatchStateMachine()
        assert sm.can_reach(MatchStatus.COMPLETED)

    def test_completed_is_final(self):
        sm = MatchStateMachine(MatchStatus.COMPLETED)
        assert sm.allowed_actions == []
        with pytest.raises(TransitionError):
            sm.move_to(MatchStatus.LIVE)

    def test_scores_editable(self):
        assert MatchStateMachine(MatchStatus.SCHEDULED).scores_editable
        assert MatchStateMachine(MatchStatus.LIVE).scores_editable
        assert not MatchStateMachine(MatchStatus.COMPLETED).scores_editable
