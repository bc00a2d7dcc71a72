"""Sources driven by Qt signals."""
from typing import Any, Optional

from PySide6.QtCore import QObject, Signal

from loadtrack.streams.source import Stream, Subscriber


def from_signals(value_signal, error_signal=None, finished_signal=None) -> Stream:
    """
    Build a Stream from bound Qt signals.

    Each subscription connects its own slots and disconnects them on
    teardown, so a cancelled subscriber stops receiving immediately.

    Args:
        value_signal: Signal carrying one value per emission
        error_signal: Optional signal carrying an error payload
        finished_signal: Optional argument-less signal marking completion
    """

    def producer(subscriber: Subscriber):
        connections = []

        def on_value(value):
            subscriber.next(value)

        def on_error(error):
            subscriber.error(error)

        def on_finished():
            subscriber.complete()

        value_signal.connect(on_value)
        connections.append((value_signal, on_value))
        if error_signal is not None:
            error_signal.connect(on_error)
            connections.append((error_signal, on_error))
        if finished_signal is not None:
            finished_signal.connect(on_finished)
            connections.append((finished_signal, on_finished))

        def teardown():
            for signal, slot in connections:
                signal.disconnect(slot)

        return teardown

    return Stream(producer)


class PushSource(QObject):
    """
    Hot source driven by hand, e.g. from a worker's progress callbacks.

    Usage:
        source = PushSource()
        subscription = source.stream().subscribe(print)
        source.emit_value(1)
        source.emit_complete()
    """

    value = Signal(object)
    failed = Signal(object)
    finished = Signal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._subscriber_count = 0
        self._signals = from_signals(self.value, self.failed, self.finished)

    @property
    def subscriber_count(self) -> int:
        """Number of subscriptions not yet torn down."""
        return self._subscriber_count

    def stream(self) -> Stream:
        def producer(subscriber: Subscriber):
            self._subscriber_count += 1
            inner = self._signals.subscribe(subscriber.next, subscriber.error, subscriber.complete)

            def teardown():
                inner.unsubscribe()
                self._subscriber_count -= 1

            return teardown

        return Stream(producer)

    def emit_value(self, value: Any) -> None:
        self.value.emit(value)

    def emit_error(self, error: Any) -> None:
        self.failed.emit(error)

    def emit_complete(self) -> None:
        self.finished.emit()
