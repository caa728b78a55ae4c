"""
GET /health — liveness plus a MongoDB ping.

200 {"status": "healthy"} when the ping succeeds, 503 {"status": "unhealthy"}
otherwise; nothing in the API works without the database.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


async def _ping_mongodb(request: Request) -> bool:
    try:
        await request.app.state.db.client.admin.command("ping")
    except Exception as exc:
        log.warning("health_mongodb_failed", error=str(exc), error_type=type(exc).__name__)
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def health_check(request: Request) -> JSONResponse:
    mongo_ok = await _ping_mongodb(request)
    body = HealthResponse(
        status="healthy" if mongo_ok else "unhealthy",
        checks={"mongodb": "ok" if mongo_ok else "error"},
    )
    return JSONResponse(status_code=200 if mongo_ok else 503, content=body.model_dump())
