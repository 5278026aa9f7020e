import logging
from collections import Counter
from contextlib import contextmanager

import requests
from dbos import DBOSClient

from workerscale.exceptions import BackendUnavailable, MalformedResponse
from workerscale.models import QueueBacklogCount, QueueDescriptor, QueueState

QUEUES_METADATA_PATH = '/dbos-workflow-queues-metadata'


def parse_queue_metadata(payload):
    """
    Turn the admin server's queue metadata payload into queue descriptors.

    The payload is a JSON array of objects carrying at least "name"; a missing
    or null "workerConcurrency" means the queue is uncapped.
    """
    if not isinstance(payload, list):
        raise MalformedResponse(f"Expected a list of queues, got {type(payload).__name__}")

    descriptors = []
    for entry in payload:
        if not isinstance(entry, dict):
            raise MalformedResponse(f"Expected a queue object, got {entry!r}")
        name = entry.get('name')
        if not isinstance(name, str) or not name:
            raise MalformedResponse(f"Queue entry without a valid name: {entry!r}")
        concurrency = entry.get('workerConcurrency')
        if concurrency is not None and (isinstance(concurrency, bool) or not isinstance(concurrency, int)):
            raise MalformedResponse(f"Worker concurrency of queue {name} is not an integer: {concurrency!r}")
        descriptors.append(QueueDescriptor(name, concurrency))
    return descriptors


def get_queue_descriptors(dbos_config):
    """
    Query the DBOS admin server for registered queues and their worker concurrency.

    Raises:
        BackendUnavailable: On connection errors, timeouts or a non-200 status
        MalformedResponse: If the body is not the expected JSON shape
    """
    url = dbos_config.get('admin_url', 'http://localhost:3001').rstrip('/') + QUEUES_METADATA_PATH
    try:
        response = requests.get(url, timeout=dbos_config.get('timeout', 5))
    except requests.exceptions.RequestException as e:
        raise BackendUnavailable(f"Failed to fetch queue metadata: {e}") from e

    if response.status_code != 200:
        raise BackendUnavailable(f"Admin endpoint returned status {response.status_code}: {response.text}")

    try:
        payload = response.json()
    except ValueError as e:
        raise MalformedResponse(f"Failed to decode queue metadata: {e}") from e
    return parse_queue_metadata(payload)


@contextmanager
def dbos_client(dbos_config):
    """Open a DBOS client on the system database for the duration of one call."""
    database_url = dbos_config.get('system_database_url')
    if not database_url:
        raise BackendUnavailable("DBOS_SYSTEM_DATABASE_URL is not configured")
    try:
        client = DBOSClient(system_database_url=database_url)
    except Exception as e:
        raise BackendUnavailable(f"Failed to connect to the DBOS system database: {e}") from e
    try:
        yield client
    finally:
        client.destroy()


def get_backlog_counts(dbos_config):
    """Count enqueued and pending workflows per queue."""
    with dbos_client(dbos_config) as client:
        try:
            workflows = client.list_queued_workflows(load_input=False, load_output=False)
        except Exception as e:
            raise BackendUnavailable(f"Failed to list workflows: {e}") from e

    counts = Counter()
    for workflow in workflows:
        queue_name = getattr(workflow, 'queue_name', None)
        if queue_name:
            counts[queue_name] += 1
    return [QueueBacklogCount(name, count) for name, count in sorted(counts.items())]


def fetch_queue_state(aws_wrapper, dbos_config):
    """
    Get queue concurrency from the DBOS admin server and backlog from the system database.

    Args:
        aws_wrapper: Unused, kept for a uniform backend interface
        dbos_config: Dict containing DBOS configuration with:
                     - admin_url: Base URL of the application's admin server
                     - system_database_url: Postgres URL of the DBOS system database
                     - timeout: HTTP timeout in seconds

    Returns:
        QueueState: Concurrency and backlog mappings keyed by queue name

    Raises:
        BackendUnavailable: If the admin server or the system database cannot be reached
        MalformedResponse: If the queue metadata cannot be parsed
    """
    try:
        descriptors = get_queue_descriptors(dbos_config)
        backlog_counts = get_backlog_counts(dbos_config)
    except (BackendUnavailable, MalformedResponse) as e:
        logging.error(f"Error getting DBOS queue state: {e}", exc_info=True)
        raise

    logging.info(f"Retrieved DBOS state for {len(descriptors)} queues, "
                 f"{sum(b.count for b in backlog_counts)} workflows in backlog")
    return QueueState.from_records(descriptors, backlog_counts)


def submit_task(aws_wrapper, dbos_config, queue_name, duration_seconds):
    """
    Enqueue one sleep workflow on the named DBOS queue.

    Returns:
        str: Workflow ID of the enqueued workflow
    """
    options = {
        'queue_name': queue_name,
        'workflow_name': dbos_config.get('workflow_name', 'sleep_workflow')
    }
    with dbos_client(dbos_config) as client:
        try:
            handle = client.enqueue(options, duration_seconds)
        except Exception as e:
            logging.error(f"Error enqueuing workflow on queue {queue_name}: {e}", exc_info=True)
            raise BackendUnavailable(f"Error enqueuing workflow: {e}") from e
        return handle.get_workflow_id()
