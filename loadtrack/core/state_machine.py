"""Loading state machine for a single asynchronous operation."""
import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from loadtrack.core.events import SnapshotFeed
from loadtrack.core.transitions import assert_transition
from loadtrack.shared.errors import InvalidStateError
from loadtrack.shared.logging_ import log_transition
from loadtrack.shared.models import (
    LifecycleState,
    NotStartedSnapshot,
    StateSnapshot,
    make_snapshot,
)
from loadtrack.streams.source import Stream, Subscriber

T = TypeVar("T")


class LoadingStateMachine(Generic[T]):
    """
    Holds the lifecycle state of one operation plus its data/error payload.

    State transitions:
    - not_started -> loading                       (start)
    - loading -> loading                           (update)
    - loading -> success | error | not_started     (succeed / fail / reset)
    - success | error -> loading | not_started     (start / reset)

    Every legal transition publishes exactly one snapshot on the change
    feed before returning. Illegal calls raise and leave the machine
    untouched.
    """

    def __init__(self, name: Optional[str] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize a machine in the not-started state.

        Args:
            name: Label used in log lines
            logger: Optional logger instance
        """
        self.name = name or f"machine-{id(self):x}"
        self.logger = logger or logging.getLogger(__name__)

        self._state = LifecycleState.NOT_STARTED
        self._data: Optional[T] = None
        self._error: Any = None
        self._feed = SnapshotFeed(NotStartedSnapshot())

    # ------------------------------------------------------------------
    # Queries

    @property
    def state(self) -> LifecycleState:
        """The current lifecycle state."""
        return self._state

    @property
    def data(self) -> Optional[T]:
        """Data of the current state; None when not started or failed."""
        return self._data

    @property
    def error(self) -> Any:
        """Error of the current state; None unless the state is error."""
        if self._state is not LifecycleState.ERROR:
            return None
        return self._error

    @property
    def snapshot(self) -> StateSnapshot:
        """The snapshot most recently published on the change feed."""
        return self._feed.value

    def is_not_started(self) -> bool:
        return self._state is LifecycleState.NOT_STARTED

    def is_loading(self) -> bool:
        return self._state is LifecycleState.LOADING

    def is_success(self) -> bool:
        return self._state is LifecycleState.SUCCESS

    def is_error(self) -> bool:
        return self._state is LifecycleState.ERROR

    # ------------------------------------------------------------------
    # Change feed

    def as_observable(self) -> Stream:
        """
        Stream of snapshots.

        Each subscriber gets the current snapshot immediately, then every
        snapshot produced afterwards, until it unsubscribes.
        """
        return self._feed.as_stream()

    def subscribe(self, on_next: Callable[[StateSnapshot], None]) -> Subscriber:
        """Shorthand for ``as_observable().subscribe(on_next)``."""
        return self.as_observable().subscribe(on_next)

    # ------------------------------------------------------------------
    # Transitions

    def start(self) -> None:
        """Enter loading. Keeps existing data so reloads can show stale values."""
        assert_transition(self._state, LifecycleState.LOADING)
        self._transition("start", LifecycleState.LOADING, data=self._data, error=None)

    def update(self, value: Optional[T] = None) -> None:
        """Replace data while loading."""
        if not self.is_loading():
            raise InvalidStateError("update", LifecycleState.LOADING, self._state)
        self._transition("update", LifecycleState.LOADING, data=value, error=None)

    def succeed(self, value: Optional[T] = None) -> None:
        """Settle as success with *value* as data."""
        assert_transition(self._state, LifecycleState.SUCCESS)
        self._transition("succeed", LifecycleState.SUCCESS, data=value, error=None)

    def fail(self, error: Any) -> None:
        """Settle as error; data is cleared."""
        assert_transition(self._state, LifecycleState.ERROR)
        self._transition("fail", LifecycleState.ERROR, data=None, error=error)

    def reset(self) -> None:
        """Return to not-started, clearing data and error."""
        assert_transition(self._state, LifecycleState.NOT_STARTED)
        self._transition("reset", LifecycleState.NOT_STARTED, data=None, error=None)

    def _transition(self, operation: str, target: LifecycleState, data: Any, error: Any) -> None:
        previous = self._state
        self._state = target
        self._data = data
        self._error = error
        log_transition(self.logger, self.name, operation, previous, target, data=data, error=error)
        self._feed.publish(make_snapshot(target, data=data, error=error))

    # ------------------------------------------------------------------
    # Factories

    @classmethod
    def as_loading(cls, data: Optional[T] = None, **kwargs) -> "LoadingStateMachine[T]":
        """A machine already loading, optionally with data."""
        machine = cls(**kwargs)
        machine.start()
        machine.update(data)
        return machine

    @classmethod
    def as_success(cls, data: T, **kwargs) -> "LoadingStateMachine[T]":
        """A machine that already succeeded with *data*."""
        machine = cls(**kwargs)
        machine.start()
        machine.succeed(data)
        return machine

    @classmethod
    def as_error(cls, error: Any, **kwargs) -> "LoadingStateMachine[T]":
        """A machine that already failed with *error*."""
        machine = cls(**kwargs)
        machine.start()
        machine.fail(error)
        return machine

    def __repr__(self) -> str:
        return f"LoadingStateMachine({self.name!r}, {self.snapshot!r})"
