from typing import Dict, NamedTuple, Optional


class QueueDescriptor(NamedTuple):
    """A registered queue and its per-worker concurrency limit (None or 0 means uncapped)."""
    name: str
    worker_concurrency: Optional[int]


class QueueBacklogCount(NamedTuple):
    """Number of tasks enqueued or in flight for a queue at poll time."""
    name: str
    count: int


class QueueState(NamedTuple):
    """Snapshot returned by a queue backend for one poll."""
    concurrency: Dict[str, Optional[int]]
    backlog: Dict[str, int]

    @classmethod
    def from_records(cls, descriptors, backlog_counts):
        return cls(
            concurrency={d.name: d.worker_concurrency for d in descriptors},
            backlog={b.name: b.count for b in backlog_counts}
        )


class ScalingDecision(NamedTuple):
    """Result of a single poll."""
    expected_workers: int

    def to_dict(self):
        return {'expected_workers': self.expected_workers}
