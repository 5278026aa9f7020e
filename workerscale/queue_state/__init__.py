"""
Queue backends.

Each backend module exposes the same two functions:

    fetch_queue_state(aws_wrapper, queue_config) -> QueueState
    submit_task(aws_wrapper, queue_config, queue_name, duration_seconds) -> str
"""
