"""Push-based source streams.

A stream emits zero or more values and then at most one of error/complete.
Subscribing returns a Subscription whose unsubscribe() cancels the stream and
releases whatever the producer registered as teardown.
"""
import logging
from functools import reduce
from typing import Any, Callable, Iterable, Optional, Protocol, Union

logger = logging.getLogger(__name__)

Teardown = Union[Callable[[], None], "Subscription", None]

_NO_ERROR = object()


class Cancellable(Protocol):
    def unsubscribe(self) -> None: ...


class Source(Protocol):
    """Anything that can be subscribed to with three callbacks."""

    def subscribe(
        self,
        on_next: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Any], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> Cancellable: ...


class Subscription:
    """Cancellation handle. unsubscribe() is idempotent."""

    def __init__(self, teardown: Teardown = None):
        self.closed = False
        self._teardowns: list = []
        if teardown is not None:
            self.add(teardown)

    def add(self, teardown: Teardown) -> None:
        """Register a teardown; runs immediately if already closed."""
        if teardown is None or teardown is self:
            return
        if self.closed:
            _run_teardown(teardown)
            return
        self._teardowns.append(teardown)

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        teardowns, self._teardowns = self._teardowns, []
        for teardown in teardowns:
            _run_teardown(teardown)


def _run_teardown(teardown: Teardown) -> None:
    if hasattr(teardown, "unsubscribe"):
        teardown.unsubscribe()
    else:
        teardown()


class Subscriber(Subscription):
    """
    Consumer side of one subscription.

    Callbacks stop once a terminal event arrived or the subscription was
    cancelled. Terminal events run the registered teardowns after the
    callback. Without an on_error callback, an error is logged and kept
    in ``unhandled_error``; Stream.subscribe() re-raises it when it was
    emitted synchronously during subscription.
    """

    def __init__(
        self,
        on_next: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Any], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ):
        super().__init__()
        self.unhandled_error: Any = _NO_ERROR
        self._on_next = on_next
        self._on_error = on_error
        self._on_complete = on_complete

    def next(self, value: Any) -> None:
        if self.closed:
            return
        if self._on_next is not None:
            self._on_next(value)

    def error(self, error: Any) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            if self._on_error is None:
                self.unhandled_error = error
                logger.error(
                    f"Unhandled stream error: {error!r}",
                    exc_info=error if isinstance(error, BaseException) else None,
                )
            else:
                self._on_error(error)
        finally:
            self._finalize()

    def raise_unhandled(self) -> None:
        """Re-raise an error that arrived without an on_error callback."""
        error = self.unhandled_error
        if error is _NO_ERROR:
            return
        self.unhandled_error = _NO_ERROR
        if isinstance(error, BaseException):
            raise error
        raise RuntimeError(f"Unhandled stream error: {error!r}")

    def complete(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            if self._on_complete is not None:
                self._on_complete()
        finally:
            self._finalize()

    def _finalize(self) -> None:
        # closed is already set; run what was registered so far
        teardowns, self._teardowns = self._teardowns, []
        for teardown in teardowns:
            _run_teardown(teardown)


class Stream:
    """
    Cold stream: every subscribe() runs the producer function anew.

    The producer receives a Subscriber and may return a teardown
    (callable or Subscription) that runs on cancellation or settle.
    """

    def __init__(self, producer: Callable[[Subscriber], Teardown]):
        self._producer = producer

    def subscribe(
        self,
        on_next: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Any], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> Subscriber:
        subscriber = self.subscribe_with(Subscriber(on_next, on_error, on_complete))
        # errors emitted synchronously without a handler surface here
        subscriber.raise_unhandled()
        return subscriber

    def subscribe_with(self, subscriber: Subscriber) -> Subscriber:
        """
        Run the producer against an existing Subscriber.

        Operators link the Subscriber to their own downstream first, so a
        downstream that stops during a synchronous emission closes it and
        the producer sees ``subscriber.closed`` right away.
        """
        try:
            teardown = self._producer(subscriber)
        except Exception as exc:
            if subscriber.closed:
                raise
            # Subscription-time failure
            subscriber.error(exc)
        else:
            subscriber.add(teardown)
        return subscriber

    def pipe(self, *operators: Callable[["Stream"], "Stream"]) -> "Stream":
        """Apply operators left to right."""
        return reduce(lambda stream, operator: operator(stream), operators, self)


def subscribe_source(source: Source, subscriber: Subscriber) -> Subscriber:
    """Subscribe *subscriber* to any Source, chaining it when the source is a Stream."""
    if isinstance(source, Stream):
        return source.subscribe_with(subscriber)
    subscriber.add(source.subscribe(subscriber.next, subscriber.error, subscriber.complete))
    return subscriber


def take(count: int) -> Callable[[Stream], Stream]:
    """Operator: forward the first *count* values, then complete and cancel the source."""

    def operator(source: Source) -> Stream:
        def producer(subscriber: Subscriber):
            remaining = [count]

            def on_next(value):
                remaining[0] -= 1
                subscriber.next(value)
                if remaining[0] <= 0:
                    subscriber.complete()

            if count <= 0:
                subscriber.complete()
                return None
            inner = Subscriber(on_next, subscriber.error, subscriber.complete)
            subscriber.add(inner)
            subscribe_source(source, inner)
            return None

        return Stream(producer)

    return operator


def from_iterable(values: Iterable[Any]) -> Stream:
    """Emit every item synchronously, then complete."""

    def producer(subscriber: Subscriber):
        if subscriber.closed:
            return None
        for value in values:
            subscriber.next(value)
            # stop pulling as soon as the consumer is gone
            if subscriber.closed:
                return None
        subscriber.complete()
        return None

    return Stream(producer)


def throw_error(error: Any) -> Stream:
    """Error immediately on subscribe."""

    def producer(subscriber: Subscriber):
        subscriber.error(error)

    return Stream(producer)


def empty() -> Stream:
    """Complete immediately without values."""

    def producer(subscriber: Subscriber):
        subscriber.complete()

    return Stream(producer)
