"""History recorder for a machine's change feed.

The machine itself only keeps the current snapshot. SnapshotRecorder is an
ordinary feed subscriber that retains what it sees:
- Records every snapshot with a timestamp, optionally bounded
- Derives load statistics (success rate, average load duration)
- Never transitions the machine it observes
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from loadtrack.core.state_machine import LoadingStateMachine
from loadtrack.shared.models import LifecycleState, StateSnapshot

logger = logging.getLogger(__name__)


@dataclass
class SnapshotRecord:
    """One observed snapshot."""
    snapshot: StateSnapshot
    timestamp: float      # clock() value when observed

    @property
    def state(self) -> LifecycleState:
        return self.snapshot.state


@dataclass
class LoadStats:
    """Aggregated statistics over the recorded loads."""
    total_loads: int = 0
    successful_loads: int = 0
    failed_loads: int = 0
    cancelled_loads: int = 0
    total_duration: float = 0.0

    @property
    def settled_loads(self) -> int:
        return self.successful_loads + self.failed_loads

    @property
    def success_rate(self) -> float:
        """Success rate of settled loads as a percentage (0-100)."""
        if self.settled_loads == 0:
            return 0.0
        return (self.successful_loads / self.settled_loads) * 100.0

    @property
    def avg_duration(self) -> float:
        """Average seconds from start to settle/cancel."""
        finished = self.settled_loads + self.cancelled_loads
        if finished == 0:
            return 0.0
        return self.total_duration / finished


class SnapshotRecorder:
    """
    Retains the snapshots a machine publishes.

    A load begins at a loading snapshot that follows a non-loading one and
    ends at the next success (successful), error (failed) or not-started
    (cancelled) snapshot.
    """

    def __init__(
        self,
        machine: LoadingStateMachine,
        max_records: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Attach a recorder to *machine*.

        Args:
            machine: Machine to observe
            max_records: Keep at most this many records (None keeps all)
            clock: Time source for record timestamps
        """
        self.machine = machine
        self.max_records = max_records
        self.clock = clock
        self.records: List[SnapshotRecord] = []
        self._subscription = machine.subscribe(self._record)

    @classmethod
    def from_settings(cls, machine: LoadingStateMachine, settings) -> "SnapshotRecorder":
        """Attach a recorder bounded by ``settings.history_limit``."""
        return cls(machine, max_records=settings.history_limit)

    def _record(self, snapshot: StateSnapshot) -> None:
        self.records.append(SnapshotRecord(snapshot=snapshot, timestamp=self.clock()))

        # Keep only recent records
        if self.max_records is not None and len(self.records) > self.max_records:
            self.records = self.records[-self.max_records:]

        logger.debug(f"Recorded snapshot for {self.machine.name}: {snapshot!r}")

    @property
    def attached(self) -> bool:
        return not self._subscription.closed

    def detach(self) -> None:
        """Stop recording. Already recorded snapshots are kept."""
        self._subscription.unsubscribe()

    def clear(self) -> None:
        self.records = []

    def snapshots(self) -> List[StateSnapshot]:
        return [r.snapshot for r in self.records]

    def states(self) -> List[LifecycleState]:
        return [r.state for r in self.records]

    def get_stats(self) -> LoadStats:
        """
        Get aggregated statistics over the recorded history.

        Returns:
            LoadStats for every load that started within the history
        """
        stats = LoadStats()
        started_at: Optional[float] = None

        for record in self.records:
            if record.state is LifecycleState.LOADING:
                if started_at is None:
                    started_at = record.timestamp
                    stats.total_loads += 1
                continue

            if started_at is None:
                continue

            if record.state is LifecycleState.SUCCESS:
                stats.successful_loads += 1
            elif record.state is LifecycleState.ERROR:
                stats.failed_loads += 1
            else:
                stats.cancelled_loads += 1
            stats.total_duration += record.timestamp - started_at
            started_at = None

        return stats
