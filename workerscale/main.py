import json
import logging
from typing import Dict, Any

from workerscale.aws.wrapper import AWSWrapper
from workerscale.config import load_config, Config
from workerscale.estimator import estimate
from workerscale.exceptions import ScalerError, BackendUnavailable, MalformedResponse, InvalidInput
from workerscale.models import QueueState, ScalingDecision

# Queue backends
from workerscale.queue_state import dbos, redis, sqs

QUEUE_BACKENDS = {
    'dbos': dbos,
    'sqs': sqs,
    'redis': redis
}

ERROR_STATUS_CODES = {
    BackendUnavailable: 503,
    MalformedResponse: 502,
    InvalidInput: 500
}


def get_backend(config: Config):
    """
    Resolve the queue backend module for the configured backend name.

    Raises:
        ValueError: If the backend is not supported
    """
    queue_backend = config.queue_backend.lower()
    if queue_backend not in QUEUE_BACKENDS:
        supported = ', '.join(QUEUE_BACKENDS.keys())
        raise ValueError(f"Unsupported queue backend: {queue_backend}. Supported backends: {supported}")
    return QUEUE_BACKENDS[queue_backend]


def create_aws_wrapper(config: Config):
    """Only the SQS backend talks to AWS; other backends get no wrapper."""
    if config.queue_backend.lower() != 'sqs':
        return None
    return AWSWrapper(
        sso_profile_name=config.sso_profile,
        region_name=config.region,
        timeout=config.backend_timeout
    )


def fetch_queue_state(aws_wrapper, config: Config) -> QueueState:
    """
    Get queue concurrency and backlog from the configured queue backend.

    Args:
        aws_wrapper: AWS API wrapper instance, or None for non-AWS backends
        config: Configuration object

    Returns:
        QueueState: Concurrency and backlog mappings keyed by queue name
    """
    backend = get_backend(config)
    return backend.fetch_queue_state(aws_wrapper, config.queue_config)


def poll(config: Config = None, aws_wrapper=None) -> ScalingDecision:
    """
    Run one poll: fetch the queue state and estimate the expected worker count.

    Args:
        config: Optional configuration, loaded from the environment when omitted
        aws_wrapper: Optional AWS wrapper, created for the SQS backend when omitted

    Returns:
        ScalingDecision: The expected worker count for this instant

    Raises:
        BackendUnavailable: If the queue backend cannot be reached
        MalformedResponse: If the queue backend returns unparseable data
        InvalidInput: If the backend reports negative concurrency or backlog
    """
    config = config or load_config()
    if aws_wrapper is None:
        aws_wrapper = create_aws_wrapper(config)

    state = fetch_queue_state(aws_wrapper, config)
    expected_workers = estimate(state.concurrency, state.backlog)

    logging.info(f"Expected workers: {expected_workers} (backend={config.queue_backend}, "
                 f"queues={len(state.concurrency)}, backlog={sum(state.backlog.values())})")
    return ScalingDecision(expected_workers=expected_workers)


def submit_task(config: Config, duration_seconds: int, queue_name: str = None, aws_wrapper=None) -> Dict[str, Any]:
    """
    Submit one sleep task of the given duration to a queue, to generate backlog.

    Args:
        config: Configuration object
        duration_seconds: How long the task should sleep
        queue_name: Target queue, defaults to the configured submission queue
        aws_wrapper: Optional AWS wrapper, created for the SQS backend when omitted

    Returns:
        dict: Task ID, queue name and duration of the submitted task

    Raises:
        InvalidInput: If the duration is negative
        BackendUnavailable: If the queue backend rejects the submission
    """
    if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int) or duration_seconds < 0:
        raise InvalidInput(f"Duration must be a non-negative integer, got {duration_seconds!r}")

    queue_name = queue_name or config.submit_queue
    backend = get_backend(config)
    if aws_wrapper is None:
        aws_wrapper = create_aws_wrapper(config)

    task_id = backend.submit_task(aws_wrapper, config.queue_config, queue_name, duration_seconds)
    logging.info(f"Submitted task {task_id} to queue {queue_name} with duration {duration_seconds}s")
    return {
        'task_id': task_id,
        'queue': queue_name,
        'duration': duration_seconds
    }


def error_status_code(error: Exception) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler returning the expected worker count as an API Gateway proxy response.

    Configuration can be provided via environment variables or in the event payload.

    Args:
        event: AWS Lambda event object, can contain configuration overrides
        context: AWS Lambda context object

    Returns:
        dict: Proxy response whose body is {"expected_workers": n} or {"error": message}
    """
    try:
        config = load_config(event)
        decision = poll(config)
    except ScalerError as e:
        logging.error(f"Error computing metrics: {e}", exc_info=True)
        return _response(error_status_code(e), {'error': f"Error computing metrics: {e}"})
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}", exc_info=True)
        return _response(500, {'error': f"Invalid configuration: {e}"})

    return _response(200, decision.to_dict())
