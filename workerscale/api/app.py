# workerscale/api/app.py
import logging

import uvicorn
from fastapi import FastAPI

from workerscale import __version__
from workerscale.common.logger import setup_logging
from workerscale.config import Config, load_config
from .router import router

logger = logging.getLogger(__name__)


def create_app(config: Config = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Worker Replica Scaler",
        description="Expected worker count for queue-driven autoscaling",
        version=__version__,
    )
    app.state.config = config or load_config()
    app.include_router(router)

    logger.info(f"Serving metrics for queue backend {app.state.config.queue_backend}")
    return app


def run():
    """Console entry point: serve the metrics API with uvicorn."""
    setup_logging()
    config = load_config()
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    run()
