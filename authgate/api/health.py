"""Liveness endpoint: database reachability and token signing readiness."""

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from authgate.core import check_db_connection

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    # "missing" means login and protected routes will fail until JWT_SECRET_KEY is set
    token_signing: str


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        status.HTTP_200_OK: {"description": "Database reachable"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Database unreachable"},
    },
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """Report database connectivity (503 when down) and whether a signing key is set."""
    state = request.app.state
    db_healthy = await check_db_connection(state.session_maker)
    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if db_healthy else "unhealthy",
        version=state.settings.app_version,
        database="connected" if db_healthy else "disconnected",
        token_signing="configured" if state.auth_config.signing_key else "missing",
    )
