from enum import Enum
from typing import Optional, Callable, List
from dataclasses import dataclass


class MatchState(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: MatchState
    to_state: MatchState
    action: str
    guard: Optional[Callable] = None


MAX_SCORE = 999


def scores_present_guard(context: dict) -> bool:
    """Both scores must be integers between 0 and MAX_SCORE."""
    for key in ("home_score", "away_score"):
        value = context.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_SCORE:
            return False
    return True


class MatchStateMachine:
    TRANSITIONS = [
        Transition(MatchState.SCHEDULED, MatchState.LIVE, "kick_off"),
        Transition(MatchState.SCHEDULED, MatchState.COMPLETED, "record_score", scores_present_guard),
        Transition(MatchState.LIVE, MatchState.COMPLETED, "record_score", scores_present_guard),
        # Corrections re-record the score on a completed match
        Transition(MatchState.COMPLETED, MatchState.COMPLETED, "record_score", scores_present_guard),
        Transition(MatchState.SCHEDULED, MatchState.CANCELLED, "cancel"),
        Transition(MatchState.LIVE, MatchState.CANCELLED, "cancel"),
        Transition(MatchState.CANCELLED, MatchState.SCHEDULED, "reschedule"),
    ]

    ALLOWED_ACTIONS = {
        MatchState.SCHEDULED: ["kick_off", "record_score", "cancel"],
        MatchState.LIVE: ["record_score", "cancel"],
        MatchState.COMPLETED: ["record_score"],
        MatchState.CANCELLED: ["reschedule"],
    }

    def __init__(self, initial_state: MatchState = MatchState.SCHEDULED):
        self._state = initial_state
        self._history: List[tuple] = []

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def allowed_actions(self) -> List[str]:
        return self.ALLOWED_ACTIONS.get(self._state, [])

    @property
    def counts_towards_standings(self) -> bool:
        return self._state == MatchState.COMPLETED

    def can_transition(self, action: str) -> bool:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                return True
        return False

    def can_perform(self, action: str) -> bool:
        return action in self.allowed_actions

    def transition(self, action: str, guard_context: dict = None) -> MatchState:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                if t.guard and not t.guard(guard_context or {}):
                    raise TransitionError(
                        self._state.value,
                        t.to_state.value,
                        f"Guard condition failed for action '{action}'"
                    )

                old_state = self._state
                self._state = t.to_state
                self._history.append((old_state, action, self._state))
                return self._state

        raise TransitionError(
            self._state.value,
            "unknown",
            f"No valid transition for action '{action}' from state '{self._state.value}'"
        )

    def get_history(self) -> List[tuple]:
        return self._history.copy()

    @classmethod
    def from_state_string(cls, state_str: str) -> "MatchStateMachine":
        try:
            state = MatchState(state_str)
        except ValueError:
            state = MatchState.SCHEDULED
        return cls(initial_state=state)
