import json
import logging
import time
import uuid

import redis

from workerscale.exceptions import BackendUnavailable, MalformedResponse
from workerscale.models import QueueBacklogCount, QueueDescriptor, QueueState


def connect(redis_config):
    """Create a Redis client with bounded socket timeouts."""
    timeout = redis_config.get('timeout', 5)
    return redis.Redis(
        host=redis_config.get('host', 'localhost'),
        port=redis_config.get('port', 6379),
        password=redis_config.get('password'),
        ssl=redis_config.get('use_ssl', False),
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        decode_responses=True
    )


def pending_key(redis_config, queue_name):
    return f"{redis_config.get('key_prefix', 'queue:')}{queue_name}:pending"


def processing_key(redis_config, queue_name):
    return f"{redis_config.get('key_prefix', 'queue:')}{queue_name}:processing"


def get_queue_descriptors(r, concurrency_key):
    descriptors = []
    for queue_name, raw_concurrency in sorted(r.hgetall(concurrency_key).items()):
        try:
            concurrency = int(raw_concurrency)
        except (TypeError, ValueError) as e:
            raise MalformedResponse(
                f"Worker concurrency {raw_concurrency!r} for queue {queue_name} in {concurrency_key} "
                f"is not an integer") from e
        descriptors.append(QueueDescriptor(queue_name, concurrency))
    return descriptors


def count_in_flight(r, key):
    """Size of the in-flight collection, which may be a set, list or hash."""
    key_type = r.type(key)
    if key_type == 'set':
        return r.scard(key)
    elif key_type == 'list':
        return r.llen(key)
    elif key_type == 'hash':
        return r.hlen(key)
    elif key_type == 'none':
        return 0
    raise MalformedResponse(f"Unsupported Redis type {key_type!r} for in-flight key {key}")


def get_backlog_counts(r, redis_config, queue_names):
    backlog_counts = []
    for queue_name in queue_names:
        count = r.llen(pending_key(redis_config, queue_name)) + \
            count_in_flight(r, processing_key(redis_config, queue_name))
        if count:
            backlog_counts.append(QueueBacklogCount(queue_name, count))
    return backlog_counts


def fetch_queue_state(aws_wrapper, redis_config):
    """
    Get the concurrency configuration and backlog of Redis list-based queues.

    Args:
        aws_wrapper: Unused, kept for a uniform backend interface
        redis_config: Dict containing Redis configuration with:
                      - host, port, password, use_ssl: connection settings
                      - concurrency_key: Hash mapping queue name to worker concurrency
                      - key_prefix: Prefix of the per-queue pending list and processing keys
                      - timeout: Socket timeout in seconds

    Returns:
        QueueState: Concurrency and backlog mappings keyed by queue name

    Raises:
        BackendUnavailable: If Redis cannot be reached
        MalformedResponse: If stored values have an unexpected type or format
    """
    r = connect(redis_config)
    try:
        descriptors = get_queue_descriptors(r, redis_config.get('concurrency_key', 'queues:concurrency'))
        backlog_counts = get_backlog_counts(r, redis_config, [d.name for d in descriptors])
    except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
        logging.error(f"Error getting Redis queue state: {e}", exc_info=True)
        raise BackendUnavailable(f"Failed to query Redis: {e}") from e
    except redis.exceptions.ResponseError as e:
        logging.error(f"Unexpected Redis response: {e}", exc_info=True)
        raise MalformedResponse(f"Unexpected Redis response: {e}") from e
    finally:
        r.close()

    logging.info(f"Retrieved Redis state for {len(descriptors)} queues, "
                 f"{sum(b.count for b in backlog_counts)} tasks in backlog")
    return QueueState.from_records(descriptors, backlog_counts)


def submit_task(aws_wrapper, redis_config, queue_name, duration_seconds):
    """
    Push one sleep task onto the pending list of the named queue.

    Returns:
        str: Generated task ID
    """
    task_id = str(uuid.uuid4())
    task = {
        'task_id': task_id,
        'duration_seconds': duration_seconds,
        'enqueued_at': time.time()
    }
    r = connect(redis_config)
    try:
        r.lpush(pending_key(redis_config, queue_name), json.dumps(task))
    except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
        logging.error(f"Error pushing task to Redis queue {queue_name}: {e}", exc_info=True)
        raise BackendUnavailable(f"Failed to push task to Redis queue {queue_name}: {e}") from e
    finally:
        r.close()

    return task_id
