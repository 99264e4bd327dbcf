"""
Unit tests for MatchStateMachine class.
Tests all state transitions, guards, and helper methods.
"""
import pytest
from shared.state_machine import (
    MatchStateMachine,
    MatchState,
    TransitionError,
    Transition,
    scores_present_guard,
    MAX_SCORE
)


class TestMatchStateEnum:
    """Tests for MatchState enum."""

    def test_all_states_exist(self):
        """All expected states should exist."""
        assert MatchState.SCHEDULED.value == "scheduled"
        assert MatchState.LIVE.value == "live"
        assert MatchState.COMPLETED.value == "completed"
        assert MatchState.CANCELLED.value == "cancelled"

    def test_state_is_string_enum(self):
        assert isinstance(MatchState.SCHEDULED.value, str)
        assert MatchState.LIVE == "live"


class TestTransitionError:
    """Tests for TransitionError exception."""

    def test_error_attributes(self):
        error = TransitionError("cancelled", "completed")
        assert error.from_state == "cancelled"
        assert error.to_state == "completed"

    def test_default_reason(self):
        error = TransitionError("cancelled", "completed")
        assert "cancelled" in str(error)
        assert "completed" in str(error)

    def test_custom_reason(self):
        error = TransitionError("scheduled", "live", "Custom error message")
        assert str(error) == "Custom error message"


class TestScoresPresentGuard:
    """Tests for the score guard."""

    def test_valid_scores(self):
        assert scores_present_guard({'home_score': 2, 'away_score': 0}) is True

    def test_missing_score(self):
        assert scores_present_guard({'home_score': 2}) is False

    def test_negative_score(self):
        assert scores_present_guard({'home_score': -1, 'away_score': 0}) is False

    def test_non_integer_score(self):
        assert scores_present_guard({'home_score': '2', 'away_score': 0}) is False
        assert scores_present_guard({'home_score': 1.5, 'away_score': 0}) is False

    def test_score_above_maximum(self):
        assert scores_present_guard({'home_score': MAX_SCORE, 'away_score': 0}) is True
        assert scores_present_guard({'home_score': MAX_SCORE + 1, 'away_score': 0}) is False

    def test_bool_is_not_a_score(self):
        assert scores_present_guard({'home_score': True, 'away_score': 0}) is False


class TestStateMachineInit:
    """Tests for MatchStateMachine initialization."""

    def test_default_initial_state(self):
        sm = MatchStateMachine()
        assert sm.state == MatchState.SCHEDULED

    def test_custom_initial_state(self):
        sm = MatchStateMachine(MatchState.LIVE)
        assert sm.state == MatchState.LIVE

    def test_empty_history(self):
        assert MatchStateMachine().get_history() == []


class TestTransitions:
    """Tests for individual transitions."""

    def test_kick_off(self):
        sm = MatchStateMachine()
        assert sm.transition('kick_off') == MatchState.LIVE

    def test_record_score_from_scheduled(self):
        sm = MatchStateMachine()
        new_state = sm.transition('record_score', {'home_score': 1, 'away_score': 0})
        assert new_state == MatchState.COMPLETED

    def test_record_score_from_live(self):
        sm = MatchStateMachine(MatchState.LIVE)
        sm.transition('record_score', {'home_score': 0, 'away_score': 0})
        assert sm.state == MatchState.COMPLETED

    def test_correct_completed_score(self):
        """Re-recording a completed match stays completed."""
        sm = MatchStateMachine(MatchState.COMPLETED)
        sm.transition('record_score', {'home_score': 2, 'away_score': 2})
        assert sm.state == MatchState.COMPLETED

    def test_record_score_without_scores_fails(self):
        sm = MatchStateMachine()
        with pytest.raises(TransitionError) as exc_info:
            sm.transition('record_score')

        assert "Guard condition failed" in str(exc_info.value)
        assert sm.state == MatchState.SCHEDULED

    def test_cancel_scheduled(self):
        sm = MatchStateMachine()
        assert sm.transition('cancel') == MatchState.CANCELLED

    def test_cancel_live(self):
        sm = MatchStateMachine(MatchState.LIVE)
        assert sm.transition('cancel') == MatchState.CANCELLED

    def test_cannot_cancel_completed(self):
        sm = MatchStateMachine(MatchState.COMPLETED)
        with pytest.raises(TransitionError):
            sm.transition('cancel')

    def test_cancelled_rejects_scores(self):
        sm = MatchStateMachine(MatchState.CANCELLED)
        with pytest.raises(TransitionError) as exc_info:
            sm.transition('record_score', {'home_score': 1, 'away_score': 0})

        assert "cancelled" in str(exc_info.value)

    def test_reschedule_cancelled(self):
        sm = MatchStateMachine(MatchState.CANCELLED)
        assert sm.transition('reschedule') == MatchState.SCHEDULED

    def test_unknown_action(self):
        sm = MatchStateMachine()
        with pytest.raises(TransitionError) as exc_info:
            sm.transition('abandon')

        assert exc_info.value.to_state == "unknown"


class TestFullLifecycle:

    def test_scheduled_to_completed_via_live(self):
        sm = MatchStateMachine()
        sm.transition('kick_off')
        sm.transition('record_score', {'home_score': 3, 'away_score': 1})

        assert sm.state == MatchState.COMPLETED
        assert sm.counts_towards_standings is True

    def test_history_tracked(self):
        sm = MatchStateMachine()
        sm.transition('cancel')
        sm.transition('reschedule')

        history = sm.get_history()
        assert history == [
            (MatchState.SCHEDULED, 'cancel', MatchState.CANCELLED),
            (MatchState.CANCELLED, 'reschedule', MatchState.SCHEDULED),
        ]

    def test_history_is_a_copy(self):
        sm = MatchStateMachine()
        sm.transition('kick_off')
        sm.get_history().clear()
        assert len(sm.get_history()) == 1


class TestHelperMethods:

    def test_allowed_actions(self):
        assert MatchStateMachine().allowed_actions == ["kick_off", "record_score", "cancel"]
        assert MatchStateMachine(MatchState.CANCELLED).allowed_actions == ["reschedule"]

    def test_can_transition(self):
        sm = MatchStateMachine(MatchState.LIVE)
        assert sm.can_transition('record_score') is True
        assert sm.can_transition('kick_off') is False

    def test_can_perform(self):
        sm = MatchStateMachine(MatchState.COMPLETED)
        assert sm.can_perform('record_score') is True
        assert sm.can_perform('cancel') is False

    def test_only_completed_counts(self):
        for state in MatchState:
            sm = MatchStateMachine(state)
            assert sm.counts_towards_standings is (state == MatchState.COMPLETED)

    def test_every_transition_is_allowed(self):
        """TRANSITIONS and ALLOWED_ACTIONS agree."""
        for t in MatchStateMachine.TRANSITIONS:
            assert isinstance(t, Transition)
            assert t.action in MatchStateMachine.ALLOWED_ACTIONS[t.from_state]


class TestFromStateString:

    def test_valid_state_string(self):
        sm = MatchStateMachine.from_state_string("live")
        assert sm.state == MatchState.LIVE

    def test_invalid_state_string(self):
        """Unknown strings fall back to SCHEDULED."""
        sm = MatchStateMachine.from_state_string("postponed")
        assert sm.state == MatchState.SCHEDULED
