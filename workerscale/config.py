import os
from typing import Dict, Any, Optional, NamedTuple


class Config(NamedTuple):
    """Configuration for the worker scaler."""
    # Queue backend configuration
    queue_backend: str
    queue_config: Dict[str, Any]
    backend_timeout: float

    # Task submission
    submit_queue: str

    # AWS configuration
    region: str
    sso_profile: Optional[str]

    # Metrics server
    host: str
    port: int


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in ('true', '1', 't', 'yes')


def load_queue_config(queue_backend: str) -> Dict[str, Any]:
    """
    Build the backend-specific queue configuration from environment variables.

    Args:
        queue_backend: Name of the queue backend ('dbos', 'sqs' or 'redis')

    Returns:
        dict: Backend settings, empty for an unknown backend
    """
    queue_backend = queue_backend.lower()
    if queue_backend == 'dbos':
        return {
            'admin_url': os.environ.get('DBOS_ADMIN_URL', 'http://localhost:3001'),
            'system_database_url': os.environ.get('DBOS_SYSTEM_DATABASE_URL'),
            'workflow_name': os.environ.get('DBOS_WORKFLOW_NAME', 'sleep_workflow')
        }
    elif queue_backend == 'sqs':
        return {
            'queue_name_prefix': os.environ.get('SQS_QUEUE_NAME_PREFIX', ''),
            'concurrency_tag': os.environ.get('SQS_CONCURRENCY_TAG', 'worker_concurrency')
        }
    elif queue_backend == 'redis':
        return {
            'host': os.environ.get('REDIS_HOST'),
            'port': os.environ.get('REDIS_PORT'),
            'password': os.environ.get('REDIS_PASSWORD'),
            'use_ssl': os.environ.get('REDIS_USE_SSL'),
            'concurrency_key': os.environ.get('REDIS_CONCURRENCY_KEY', 'queues:concurrency'),
            'key_prefix': os.environ.get('REDIS_KEY_PREFIX', 'queue:')
        }
    return {}


def load_config(event: Dict[str, Any] = None) -> Config:
    """
    Load configuration from environment variables and optional event payload.

    Event payload values override environment variables when present.

    Args:
        event: Optional Lambda event that may contain configuration overrides

    Returns:
        Config: Configuration object with all scaler settings

    Raises:
        ValueError: If a numeric setting cannot be parsed
    """
    event = event or {}
    config_from_event = event.get('config', {})

    queue_backend = (config_from_event.get('queue_backend') or os.environ.get('QUEUE_BACKEND', 'dbos')).lower()
    backend_timeout = float(config_from_event.get('backend_timeout') or os.environ.get('BACKEND_TIMEOUT', '5'))
    if backend_timeout <= 0:
        raise ValueError(f"BACKEND_TIMEOUT must be positive, got {backend_timeout}")

    queue_config = dict(load_queue_config(queue_backend))
    queue_config.update(config_from_event.get('queue_config', {}))

    # Clean None values from queue_config
    queue_config = {k: v for k, v in queue_config.items() if v is not None}
    if 'port' in queue_config:
        queue_config['port'] = int(queue_config['port'])
    if 'use_ssl' in queue_config:
        queue_config['use_ssl'] = _parse_bool(queue_config['use_ssl'])
    queue_config['timeout'] = backend_timeout

    submit_queue = config_from_event.get('submit_queue') or os.environ.get('SUBMIT_QUEUE_NAME', 'queue1')

    # AWS configuration
    region = config_from_event.get('region') or os.environ.get('AWS_REGION', 'us-east-1')
    sso_profile = config_from_event.get('sso_profile') or os.environ.get('SSO_PROFILE')

    host = config_from_event.get('host') or os.environ.get('HOST', '0.0.0.0')
    port = int(config_from_event.get('port') or os.environ.get('PORT', '8000'))

    return Config(
        queue_backend=queue_backend,
        queue_config=queue_config,
        backend_timeout=backend_timeout,
        submit_queue=submit_queue,
        region=region,
        sso_profile=sso_profile,
        host=host,
        port=port
    )
