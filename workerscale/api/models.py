from pydantic import BaseModel, Field


class MetricsResponse(BaseModel):
    expected_workers: int = Field(..., ge=1)


class EnqueueResponse(BaseModel):
    message: str
    task_id: str
    duration: int
    queue: str


class HealthResponse(BaseModel):
    status: str = "ok"
