from __future__ import annotations

from fastapi import APIRouter

from ...schemas.status import StatusResponse, utc_now

router = APIRouter(tags=["status"])


@router.api_route(
    "/status",
    methods=["GET", "HEAD"],
    response_model=StatusResponse,
    summary="Service health check",
)
async def get_status() -> StatusResponse:
    """
    Liveness probe. Always answers "ok" with the current server time;
    suitable for Docker healthchecks and load balancers.
    """
    return StatusResponse(timestamp=utc_now())
