"""Error codes and exceptions for LoadTrack."""
from enum import Enum, auto


class ErrorCode(Enum):
    """Enumeration of all possible error codes in the library."""

    ILLEGAL_STATE_TRANSITION = auto()
    INVALID_STATE = auto()


class LoadTrackError(Exception):
    """Base exception for LoadTrack errors."""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code.name}] {message}")


class IllegalStateTransition(LoadTrackError):
    """Raised when a transition is attempted along an edge that is not allowed."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(
            ErrorCode.ILLEGAL_STATE_TRANSITION,
            f"Transition from {_state_name(current)} to {_state_name(target)} not allowed",
        )


class InvalidStateError(LoadTrackError):
    """Raised when an operation needs the machine to be in a specific state."""

    def __init__(self, operation: str, required, current):
        self.operation = operation
        self.required = required
        self.current = current
        super().__init__(
            ErrorCode.INVALID_STATE,
            f"{operation} is only allowed during {_state_name(required)} state "
            f"(current: {_state_name(current)})",
        )


def _state_name(state) -> str:
    return getattr(state, "value", str(state))
