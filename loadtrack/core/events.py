"""Replay-latest change feed built on Qt signals."""
from typing import Callable

from PySide6.QtCore import QObject, Signal

from loadtrack.shared.models import StateSnapshot
from loadtrack.streams.source import Stream, Subscriber, Subscription


class FeedSubscription(Subscription):
    """Handle for one feed observer. unsubscribe() only detaches that observer."""

    def __init__(self, feed: "SnapshotFeed", slot: Callable[[StateSnapshot], None]):
        super().__init__(lambda: feed._disconnect(slot))


class SnapshotFeed(QObject):
    """
    Multicast feed that remembers the latest snapshot.

    Observers are connected to a Qt signal (direct, synchronous delivery).
    A new observer first receives the current snapshot, then every
    snapshot published after it joined. Nothing older is kept.
    """

    changed = Signal(object)

    def __init__(self, initial: StateSnapshot, parent=None):
        super().__init__(parent)
        self._value = initial
        self._observer_count = 0

    @property
    def value(self) -> StateSnapshot:
        return self._value

    @property
    def observer_count(self) -> int:
        """Number of connected observers."""
        return self._observer_count

    def publish(self, snapshot: StateSnapshot) -> None:
        self._value = snapshot
        # PySide6 6.12 crashes at exit after emitting Signal(object) with no receivers
        if self._observer_count:
            self.changed.emit(snapshot)

    def subscribe(self, callback: Callable[[StateSnapshot], None]) -> FeedSubscription:
        # one slot per subscription, so the same callback can join twice
        def slot(snapshot):
            callback(snapshot)

        self.changed.connect(slot)
        self._observer_count += 1
        subscription = FeedSubscription(self, slot)
        try:
            callback(self._value)
        except BaseException:
            subscription.unsubscribe()
            raise
        return subscription

    def _disconnect(self, slot: Callable[[StateSnapshot], None]) -> None:
        self.changed.disconnect(slot)
        self._observer_count -= 1

    def as_stream(self) -> Stream:
        """Expose the feed as a Stream that never completes on its own."""

        def producer(subscriber: Subscriber):
            return self.subscribe(subscriber.next)

        return Stream(producer)
