from enum import Enum
from typing import Optional, List
from dataclasses import dataclass


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: Enum
    to_state: Enum
    action: str


class StateMachine:
    """Table-driven state machine. Subclasses set STATES, INITIAL and TRANSITIONS."""

    STATES = None
    INITIAL = None
    TRANSITIONS: List[Transition] = []

    def __init__(self, initial_state: Enum = None):
        self._state = initial_state if initial_state is not None else self.INITIAL
        self._history: List[tuple] = []

    @property
    def state(self) -> Enum:
        return self._state

    @property
    def allowed_actions(self) -> List[str]:
        return [t.action for t in self.TRANSITIONS if t.from_state == self._state]

    def can_transition(self, action: str) -> bool:
        return self._find(action) is not None

    def can_reach(self, target: Enum) -> bool:
        return any(
            t.from_state == self._state and t.to_state == target
            for t in self.TRANSITIONS
        )

    def transition(self, action: str) -> Enum:
        t = self._find(action)
        if t is None:
            raise TransitionError(
                self._state.value,
                "unknown",
                f"No valid transition for action '{action}' from state '{self._state.value}'"
            )
        old_state = self._state
        self._state = t.to_state
        self._history.append((old_state, action, self._state))
        return self._state

    def move_to(self, target: Enum) -> Enum:
        """Apply whichever transition leads from the current state to `target`."""
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.to_state == target:
                return self.transition(t.action)
        raise TransitionError(self._state.value, target.value)

    def get_history(self) -> List[tuple]:
        return self._history.copy()

    def _find(self, action: str) -> Optional[Transition]:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                return t
        return None

    @classmethod
    def from_state_string(cls, state_str: str) -> "StateMachine":
        try:
            state = cls.STATES(state_str)
        except ValueError:
            state = cls.INITIAL
        return cls(initial_state=state)


class BindingState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    CLOSED = "closed"


class BindingStateMachine(StateMachine):
    STATES = BindingState
    INITIAL = BindingState.IDLE
    TRANSITIONS = [
        Transition(BindingState.IDLE, BindingState.LOADING, "fetch"),
        Transition(BindingState.READY, BindingState.LOADING, "fetch"),
        Transition(BindingState.LOADING, BindingState.LOADING, "fetch"),
        Transition(BindingState.LOADING, BindingState.READY, "resolve"),
        Transition(BindingState.LOADING, BindingState.ERROR, "fail"),
        Transition(BindingState.ERROR, BindingState.READY, "recover"),
        Transition(BindingState.IDLE, BindingState.CLOSED, "close"),
        Transition(BindingState.LOADING, BindingState.CLOSED, "close"),
        Transition(BindingState.READY, BindingState.CLOSED, "close"),
        Transition(BindingState.ERROR, BindingState.CLOSED, "close"),
    ]


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RegistrationStateMachine(StateMachine):
    STATES = RegistrationStatus
    INITIAL = RegistrationStatus.PENDING
    TRANSITIONS = [
        Transition(RegistrationStatus.PENDING, RegistrationStatus.APPROVED, "approve"),
        Transition(RegistrationStatus.PENDING, RegistrationStatus.REJECTED, "reject"),
        # Admin re-toggle
        Transition(RegistrationStatus.REJECTED, RegistrationStatus.APPROVED, "approve"),
        Transition(RegistrationStatus.APPROVED, RegistrationStatus.REJECTED, "reject"),
    ]


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"


class MatchStateMachine(StateMachine):
    STATES = MatchStatus
    INITIAL = MatchStatus.SCHEDULED
    TRANSITIONS = [
        Transition(MatchStatus.SCHEDULED, MatchStatus.LIVE, "start"),
        Transition(MatchStatus.SCHEDULED, MatchStatus.COMPLETED, "complete"),
        Transition(MatchStatus.LIVE, MatchStatus.COMPLETED, "complete"),
        Transition(MatchStatus.LIVE, MatchStatus.SCHEDULED, "reschedule"),
    ]

    @property
    def scores_editable(self) -> bool:
        return self._state != MatchStatus.COMPLETED
