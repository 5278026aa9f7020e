import logging
from typing import Dict, Mapping, Optional

from workerscale.exceptions import InvalidInput

# Returned when no queue caps its per-worker concurrency, and the floor for every result
MIN_EXPECTED_WORKERS = 1


def _validate_count(kind, queue_name, value):
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{kind} for queue {queue_name!r} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInput(f"{kind} for queue {queue_name!r} must not be negative, got {value}")


def queue_demand(backlog: int, concurrency: int) -> int:
    """Workers needed to run `backlog` tasks at `concurrency` tasks per worker (ceiling division)."""
    return -(-backlog // concurrency)


def estimate(concurrency_by_queue: Mapping[str, Optional[int]], backlog_by_queue: Mapping[str, int]) -> int:
    """
    Compute the number of worker replicas needed to drain the busiest queue.

    Only queues with a positive worker concurrency are considered. For each of
    them the demand is ceil(backlog / concurrency), with a missing backlog
    entry counting as zero. The result is the maximum demand across those
    queues, never less than one.

    Args:
        concurrency_by_queue: Queue name -> per-worker concurrency (None or 0 means uncapped)
        backlog_by_queue: Queue name -> number of enqueued or in-flight tasks

    Returns:
        int: Expected worker count, always >= 1

    Raises:
        InvalidInput: If any concurrency or backlog value is negative or not an integer
    """
    for queue_name, concurrency in concurrency_by_queue.items():
        if concurrency is not None:
            _validate_count('Worker concurrency', queue_name, concurrency)
    for queue_name, backlog in backlog_by_queue.items():
        _validate_count('Backlog', queue_name, backlog)

    candidates: Dict[str, int] = {
        name: concurrency for name, concurrency in concurrency_by_queue.items() if concurrency
    }
    if not candidates:
        logging.info("No queues with worker concurrency, defaulting to "
                     f"{MIN_EXPECTED_WORKERS} expected worker")
        return MIN_EXPECTED_WORKERS

    expected_workers = 0
    for queue_name, concurrency in candidates.items():
        backlog = backlog_by_queue.get(queue_name, 0)
        demand = queue_demand(backlog, concurrency)
        logging.debug(f"Queue {queue_name}: backlog={backlog}, worker_concurrency={concurrency}, demand={demand}")
        expected_workers = max(expected_workers, demand)

    return max(MIN_EXPECTED_WORKERS, expected_workers)
