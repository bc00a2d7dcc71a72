"""Tests for track_loading_by driving a machine from a source."""
import pytest

from loadtrack.core.binding import track_loading_by
from loadtrack.core.state_machine import LoadingStateMachine
from loadtrack.shared.errors import IllegalStateTransition
from loadtrack.shared.models import (
    ErrorSnapshot,
    LifecycleState,
    LoadingSnapshot,
    NotStartedSnapshot,
    SuccessSnapshot,
)
from loadtrack.streams.qt_source import PushSource
from loadtrack.streams.source import Stream, Subscriber, from_iterable, take, throw_error


def _observed(machine):
    seen = []
    machine.subscribe(seen.append)
    return seen


def _collect(stream):
    events = []
    subscription = stream.subscribe(
        lambda v: events.append(("next", v)),
        lambda e: events.append(("error", e)),
        lambda: events.append(("complete",)),
    )
    return events, subscription


def test_finite_source_drives_loading_then_success():
    machine = LoadingStateMachine()
    seen = _observed(machine)

    events, _ = _collect(from_iterable([1, 2, 3, 4]).pipe(track_loading_by(machine)))

    assert seen[1:] == [
        LoadingSnapshot(data=None),
        LoadingSnapshot(data=1),
        LoadingSnapshot(data=2),
        LoadingSnapshot(data=3),
        LoadingSnapshot(data=4),
        SuccessSnapshot(data=4),
    ]
    assert events == [("next", 1), ("next", 2), ("next", 3), ("next", 4), ("complete",)]


def test_empty_source_succeeds_with_existing_data():
    machine = LoadingStateMachine.as_success("cached")
    seen = _observed(machine)

    _collect(from_iterable([]).pipe(track_loading_by(machine)))

    assert seen == [
        SuccessSnapshot(data="cached"),
        LoadingSnapshot(data="cached"),
        SuccessSnapshot(data="cached"),
    ]


def test_failing_source_drives_loading_then_error():
    machine = LoadingStateMachine()
    seen = _observed(machine)
    error = ValueError("E")

    events, _ = _collect(throw_error(error).pipe(track_loading_by(machine)))

    assert seen[1:] == [LoadingSnapshot(data=None), ErrorSnapshot(error=error)]
    assert events == [("error", error)]
    assert machine.error is error


def test_source_error_without_handler_is_raised():
    machine = LoadingStateMachine()
    with pytest.raises(ValueError, match="E"):
        throw_error(ValueError("E")).pipe(track_loading_by(machine)).subscribe(lambda v: None)
    assert machine.is_error() is True


def test_cancellation_resets_machine_and_tears_down_source():
    machine = LoadingStateMachine()
    seen = _observed(machine)
    source = PushSource()

    events, subscription = _collect(source.stream().pipe(track_loading_by(machine)))
    assert machine.is_loading() is True
    source.emit_value(1)

    subscription.unsubscribe()

    assert machine.is_not_started() is True
    assert machine.data is None
    assert source.subscriber_count == 0

    source.emit_value(2)
    source.emit_complete()
    assert events == [("next", 1)]
    assert seen[1:] == [
        LoadingSnapshot(data=None),
        LoadingSnapshot(data=1),
        NotStartedSnapshot(),
    ]


def test_source_is_cancelled_before_reset():
    machine = LoadingStateMachine()
    order = []

    def producer(subscriber):
        return lambda: order.append(("source-down", machine.state))

    subscription = Stream(producer).pipe(track_loading_by(machine)).subscribe(lambda v: None)
    machine.subscribe(lambda snapshot: order.append(("snapshot", snapshot)))
    subscription.unsubscribe()

    assert order == [
        ("snapshot", LoadingSnapshot(data=None)),
        ("source-down", LifecycleState.LOADING),
        ("snapshot", NotStartedSnapshot()),
    ]


def test_unsubscribe_after_success_keeps_success():
    machine = LoadingStateMachine()
    source = PushSource()
    _, subscription = _collect(source.stream().pipe(track_loading_by(machine)))

    source.emit_value("v")
    source.emit_complete()
    subscription.unsubscribe()

    assert machine.is_success() is True
    assert machine.data == "v"


def test_unsubscribe_after_error_keeps_error():
    machine = LoadingStateMachine()
    source = PushSource()
    _, subscription = _collect(source.stream().pipe(track_loading_by(machine)))

    source.emit_error("E")
    subscription.unsubscribe()

    assert machine.is_error() is True
    assert machine.error == "E"


def test_overlapping_subscription_fails_at_subscribe_time():
    machine = LoadingStateMachine()
    source = PushSource()
    tracked = source.stream().pipe(track_loading_by(machine))
    _collect(tracked)

    events, second = _collect(tracked)

    assert len(events) == 1
    assert events[0][0] == "error"
    assert isinstance(events[0][1], IllegalStateTransition)
    assert second.closed is True
    # the first subscription still owns the machine
    assert machine.is_loading() is True
    assert source.subscriber_count == 1


def test_overlapping_subscription_without_handler_raises():
    machine = LoadingStateMachine.as_loading()
    with pytest.raises(IllegalStateTransition, match="from loading to loading"):
        from_iterable([1]).pipe(track_loading_by(machine)).subscribe(lambda v: None)
    assert machine.is_loading() is True


def test_resubscribe_after_settle_restarts():
    machine = LoadingStateMachine()
    tracked = from_iterable([1, 2]).pipe(track_loading_by(machine))

    _collect(tracked)
    seen = _observed(machine)
    _collect(tracked)

    assert seen == [
        SuccessSnapshot(data=2),
        LoadingSnapshot(data=2),
        LoadingSnapshot(data=1),
        LoadingSnapshot(data=2),
        SuccessSnapshot(data=2),
    ]


def test_mapper_transforms_stored_data_only():
    machine = LoadingStateMachine()
    stored = []
    machine.subscribe(lambda snapshot: stored.append(machine.data))

    events, _ = _collect(
        from_iterable(["1", "2", "3", "4"]).pipe(track_loading_by(machine, lambda x: int(x) * 2))
    )

    assert stored[2:] == [2, 4, 6, 8, 8]
    assert machine.is_success() is True
    assert machine.data == 8
    assert events == [("next", "1"), ("next", "2"), ("next", "3"), ("next", "4"), ("complete",)]


def test_mapper_failure_fails_machine_and_subscription():
    machine = LoadingStateMachine()

    def mapper(value):
        if value == 2:
            raise ValueError("cannot map 2")
        return value

    events, subscription = _collect(from_iterable([1, 2, 3]).pipe(track_loading_by(machine, mapper)))

    assert events[0] == ("next", 1)
    assert events[1][0] == "error"
    assert isinstance(events[1][1], ValueError)
    assert len(events) == 2
    assert machine.is_error() is True
    assert isinstance(machine.error, ValueError)
    assert subscription.closed is True


def test_mapper_failure_cancels_async_source():
    machine = LoadingStateMachine()
    source = PushSource()

    events, _ = _collect(source.stream().pipe(track_loading_by(machine, lambda v: 1 / v)))
    source.emit_value(0)

    assert machine.is_error() is True
    assert isinstance(machine.error, ZeroDivisionError)
    assert source.subscriber_count == 0
    assert events[0][0] == "error"


def test_downstream_take_stops_sync_source_and_resets_machine():
    machine = LoadingStateMachine()
    pulled = []
    states_after_first = []

    def values():
        for value in range(1000):
            pulled.append(value)
            yield value

    def on_next(value):
        states_after_first.append(machine.state)

    events = []
    from_iterable(values()).pipe(track_loading_by(machine), take(1)).subscribe(
        on_next, lambda e: events.append(("error", e)), lambda: events.append(("complete",))
    )

    assert pulled == [0]
    assert states_after_first == [LifecycleState.LOADING]
    assert events == [("complete",)]
    # the consumer gave up before the source settled
    assert machine.is_not_started() is True


def test_downstream_error_mid_emission_cancels_sync_source():
    machine = LoadingStateMachine()
    pulled = []

    def values():
        for value in range(10):
            pulled.append(value)
            yield value

    def stop_on_second(source):
        def producer(subscriber):
            inner = Subscriber(
                lambda v: subscriber.error("stop") if v == 1 else subscriber.next(v),
                subscriber.error,
                subscriber.complete,
            )
            subscriber.add(inner)
            source.subscribe_with(inner)

        return Stream(producer)

    events = []
    from_iterable(values()).pipe(track_loading_by(machine), stop_on_second).subscribe(
        lambda v: events.append(("next", v)), lambda e: events.append(("error", e))
    )

    assert pulled == [0, 1]
    assert events == [("next", 0), ("error", "stop")]
    assert machine.is_not_started() is True


def test_take_after_settle_keeps_success():
    machine = LoadingStateMachine()
    events, _ = _collect(from_iterable([5]).pipe(track_loading_by(machine), take(3)))

    assert events == [("next", 5), ("complete",)]
    assert machine.is_success() is True
    assert machine.data == 5
