"""
Health check endpoints.

`/health` only says the process is up. `/ready` asks the `Database` the
lifespan put on `app.state` whether it is connected and then runs a
trivial query through it.
"""

import logging

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from deckvault.db.database import Database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    database: str | None = None


def _not_ready(response: Response) -> HealthResponse:
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status="not ready", database="disconnected")


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Does not touch the database."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(request: Request, response: Response) -> HealthResponse:
    """
    Readiness probe.

    503 while the database handle is missing or closed (startup/shutdown)
    or when it cannot answer ``SELECT 1``.
    """
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None or not database.is_connected:
        logger.warning("Not ready: database is not connected")
        return _not_ready(response)

    try:
        async with database.session() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Not ready: database check failed: %s", e)
        return _not_ready(response)

    return HealthResponse(status="ready", database="connected")
