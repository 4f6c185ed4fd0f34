from enum import Enum


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESTORING = "restoring"
    ACTIVE = "active"
    COMPLETING = "completing"
    COMPLETED = "completed"
    RETAKING = "retaking"


_TRANSITIONS: dict[tuple[SessionState, str], SessionState] = {
    (SessionState.UNINITIALIZED, "start"): SessionState.RESTORING,
    (SessionState.RESTORING, "restored"): SessionState.ACTIVE,
    (SessionState.RESTORING, "restored_completed"): SessionState.COMPLETED,
    (SessionState.RESTORING, "retake"): SessionState.RETAKING,
    (SessionState.ACTIVE, "complete"): SessionState.COMPLETING,
    (SessionState.COMPLETING, "completed"): SessionState.COMPLETED,
    (SessionState.ACTIVE, "retake"): SessionState.RETAKING,
    (SessionState.COMPLETING, "retake"): SessionState.RETAKING,
    (SessionState.COMPLETED, "retake"): SessionState.RETAKING,
    (SessionState.RETAKING, "reset"): SessionState.UNINITIALIZED,
}


def transition_session_state(current: SessionState, event: str) -> SessionState:
    # Unknown (state, event) pairs leave the state unchanged.
    return _TRANSITIONS.get((current, event), current)


def can_transition(current: SessionState, event: str) -> bool:
    return (current, event) in _TRANSITIONS
