"""Operator that drives a LoadingStateMachine from a source stream."""
from typing import Any, Callable, Optional

from loadtrack.core.state_machine import LoadingStateMachine
from loadtrack.streams.source import Source, Stream, Subscriber, subscribe_source


def track_loading_by(
    machine: LoadingStateMachine,
    mapper: Optional[Callable[[Any], Any]] = None,
) -> Callable[[Source], Stream]:
    """
    Return an operator that mirrors a source's lifecycle into *machine*.

    Per subscription to the returned stream:
    - subscribe: machine.start(); a machine that is already loading makes
      this subscription fail with IllegalStateTransition
    - value v: machine.update(mapper(v)), then v is forwarded unchanged
    - complete: machine.succeed(machine.data), then complete
    - error e: machine.fail(e), then error
    - unsubscribe before settling: the source is cancelled first, then the
      machine is reset if it is still loading

    A mapper that raises fails the machine and the subscription with that
    exception, and the source is cancelled.

    Args:
        machine: Machine to drive
        mapper: Optional function applied to each value before it is stored
    """
    transform = mapper or (lambda value: value)

    def operator(source: Source) -> Stream:
        def producer(subscriber: Subscriber):
            machine.start()

            def on_next(value):
                try:
                    machine.update(transform(value))
                except Exception as exc:
                    inner.unsubscribe()
                    if machine.is_loading():
                        machine.fail(exc)
                    subscriber.error(exc)
                    return
                subscriber.next(value)

            def on_error(error):
                machine.fail(error)
                subscriber.error(error)

            def on_complete():
                machine.succeed(machine.data)
                subscriber.complete()

            inner = Subscriber(on_next, on_error, on_complete)

            def teardown():
                inner.unsubscribe()
                # the source may already have settled the machine
                if machine.is_loading():
                    machine.reset()

            # linked before the source runs, so a downstream that stops
            # mid-emission cancels the source and resets the machine at once
            subscriber.add(teardown)
            subscribe_source(source, inner)
            return None

        return Stream(producer)

    return operator
