"""Data models for LoadTrack."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class LifecycleState(Enum):
    """Lifecycle of a single asynchronous operation."""

    NOT_STARTED = "notStarted"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class NotStartedSnapshot:
    """Nothing has been requested yet (or the last request was cancelled)."""

    state: ClassVar[LifecycleState] = LifecycleState.NOT_STARTED


@dataclass(frozen=True)
class LoadingSnapshot(Generic[T]):
    """A request is in flight; data may hold the previous result while reloading."""

    state: ClassVar[LifecycleState] = LifecycleState.LOADING
    data: Optional[T] = None


@dataclass(frozen=True)
class SuccessSnapshot(Generic[T]):
    """The last request completed."""

    state: ClassVar[LifecycleState] = LifecycleState.SUCCESS
    data: Optional[T] = None


@dataclass(frozen=True)
class ErrorSnapshot:
    """The last request failed; error is whatever the source reported."""

    state: ClassVar[LifecycleState] = LifecycleState.ERROR
    error: Any = None


StateSnapshot = Union[NotStartedSnapshot, LoadingSnapshot, SuccessSnapshot, ErrorSnapshot]


def make_snapshot(state: LifecycleState, data: Any = None, error: Any = None) -> StateSnapshot:
    """Build the snapshot variant for *state*, keeping only the fields it carries."""
    if state is LifecycleState.NOT_STARTED:
        return NotStartedSnapshot()
    if state is LifecycleState.LOADING:
        return LoadingSnapshot(data=data)
    if state is LifecycleState.SUCCESS:
        return SuccessSnapshot(data=data)
    if state is LifecycleState.ERROR:
        return ErrorSnapshot(error=error)
    raise ValueError(f"Unknown lifecycle state: {state!r}")
