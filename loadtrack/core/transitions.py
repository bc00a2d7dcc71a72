"""Lifecycle state machine – validates and enforces legal state transitions."""
from loadtrack.shared.errors import IllegalStateTransition
from loadtrack.shared.models import LifecycleState

# Legal transitions: current_state -> set of allowed next states
TRANSITIONS: dict[LifecycleState, set[LifecycleState]] = {
    LifecycleState.NOT_STARTED: {LifecycleState.LOADING},
    LifecycleState.LOADING:     {LifecycleState.SUCCESS, LifecycleState.ERROR, LifecycleState.NOT_STARTED},
    LifecycleState.SUCCESS:     {LifecycleState.LOADING, LifecycleState.NOT_STARTED},
    LifecycleState.ERROR:       {LifecycleState.LOADING, LifecycleState.NOT_STARTED},
}

ALL_STATES = set(TRANSITIONS.keys())
SETTLED_STATES = {LifecycleState.SUCCESS, LifecycleState.ERROR}


def is_valid_transition(current: LifecycleState, target: LifecycleState) -> bool:
    """Return True if *current -> target* is a legal transition."""
    return target in TRANSITIONS.get(current, set())


def assert_transition(current: LifecycleState, target: LifecycleState) -> None:
    """Raise IllegalStateTransition if the transition is illegal."""
    if not is_valid_transition(current, target):
        raise IllegalStateTransition(current, target)
