"""
Demo DBOS worker.

Declares the queue and the sleep workflow that the task submission endpoint
enqueues, and runs them with the admin server enabled so the scaler can read
the queue's worker concurrency. Each replica of this process is one worker.
"""

import logging
import os
import threading

from dbos import DBOS, Queue

from workerscale.common.logger import setup_logging

QUEUE_NAME = os.environ.get('WORKER_QUEUE_NAME', 'queue1')
WORKER_CONCURRENCY = int(os.environ.get('WORKER_CONCURRENCY', '1'))
ADMIN_PORT = int(os.environ.get('DBOS_ADMIN_PORT', '3001'))

queue = Queue(QUEUE_NAME, worker_concurrency=WORKER_CONCURRENCY)


@DBOS.workflow()
def sleep_workflow(duration_seconds: int) -> str:
    DBOS.sleep(duration_seconds)
    return f"Slept for {duration_seconds} seconds"


def build_dbos_config(system_database_url=None, admin_port=ADMIN_PORT):
    return {
        'name': os.environ.get('DBOS_APP_NAME', 'workerscale-worker'),
        'system_database_url': system_database_url or os.environ.get('DBOS_SYSTEM_DATABASE_URL'),
        'run_admin_server': True,
        'admin_port': admin_port,
    }


def launch_runtime(system_database_url=None, admin_port=ADMIN_PORT):
    """Initialize and launch the DBOS runtime; must be paired with shutdown_runtime()."""
    dbos_config = build_dbos_config(system_database_url, admin_port)
    if not dbos_config['system_database_url']:
        raise ValueError("DBOS_SYSTEM_DATABASE_URL must be configured")

    DBOS(config=dbos_config)
    DBOS.launch()
    logging.info(f"DBOS worker launched: queue={QUEUE_NAME}, worker_concurrency={WORKER_CONCURRENCY}, "
                 f"admin_port={admin_port}")


def shutdown_runtime():
    DBOS.destroy()
    logging.info("DBOS worker shut down")


def run():
    setup_logging()
    launch_runtime()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logging.info("Interrupted, shutting down")
    finally:
        shutdown_runtime()


if __name__ == '__main__':
    run()
