# workerscale/api/router.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from workerscale import main
from workerscale.config import Config
from workerscale.exceptions import ScalerError, InvalidInput
from .exceptions import MetricsError, TaskSubmissionError, TaskValidationError
from .models import EnqueueResponse, HealthResponse, MetricsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def get_config(request: Request) -> Config:
    return request.app.state.config


# Handlers are plain functions so FastAPI runs each request in its thread pool;
# overlapping scrapes poll the backend independently.
@router.get("/metrics", response_model=MetricsResponse)
def get_metrics(config: Config = Depends(get_config)):
    """
    Run one poll and return the expected worker count for the autoscaler
    """
    try:
        decision = main.poll(config)
    except ScalerError as e:
        logger.error(f"Error computing metrics: {e}")
        raise MetricsError(main.error_status_code(e), f"Error computing metrics: {e}")
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        raise MetricsError(HTTP_500_INTERNAL_SERVER_ERROR, f"Invalid configuration: {e}")

    return MetricsResponse(expected_workers=decision.expected_workers)


@router.get("/enqueue/{duration}", response_model=EnqueueResponse)
def enqueue_task(
    duration: str,
    queue: Optional[str] = Query(None, description="Target queue, defaults to SUBMIT_QUEUE_NAME"),
    config: Config = Depends(get_config),
):
    """
    Submit one sleep task of `duration` seconds to generate queue backlog
    """
    try:
        duration_seconds = int(duration)
    except ValueError:
        raise TaskValidationError(f"Invalid duration: {duration!r}")

    try:
        result = main.submit_task(config, duration_seconds, queue_name=queue)
    except InvalidInput as e:
        raise TaskValidationError(str(e))
    except ScalerError as e:
        logger.error(f"Error enqueuing task: {e}")
        raise TaskSubmissionError(f"Error enqueuing task: {e}")
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        raise TaskSubmissionError(f"Invalid configuration: {e}")

    return EnqueueResponse(
        message="Task enqueued successfully",
        task_id=result["task_id"],
        duration=result["duration"],
        queue=result["queue"],
    )


@router.get("/healthz", response_model=HealthResponse)
def health():
    return HealthResponse()
