"""Health check endpoints."""

from fastapi import APIRouter, HTTPException, Request
from starlette import status

from core.database import check_db_connection, get_pool_status
from core.logger import get_logger
from core.ratelimit import limiter
from schemas import DetailedHealthResponse, HealthResponse, PoolStatusResponse

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

SERVICE_NAME = "ecotrack-api"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", service=SERVICE_NAME)


@router.get("/health/detailed", response_model=DetailedHealthResponse)
@limiter.limit("30/minute")
async def health_detailed(request: Request) -> DetailedHealthResponse:
    """Detailed health check with component status.

    Returns status of:
    - database: Can execute queries
    - pool: Connection pool metrics (null for non-pooled engines)

    Always returns 200 - check individual component statuses for health.
    """
    engine = request.app.state.engine
    try:
        await check_db_connection(engine)
        database_ok = True
    except Exception as e:
        logger.warning("health.database.failed", error=str(e))
        database_ok = False

    pool = get_pool_status(engine)
    pool_status = PoolStatusResponse(**pool._asdict()) if pool else None

    return DetailedHealthResponse(
        status="healthy" if database_ok else "unhealthy",
        service=SERVICE_NAME,
        database=database_ok,
        pool=pool_status,
    )


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={
        503: {
            "description": "Service unavailable - init failed or DB unreachable",
            "content": {
                "application/json": {"example": {"detail": "Database unavailable"}}
            },
        }
    },
)
@limiter.limit("30/minute")
async def ready(request: Request) -> HealthResponse:
    """Readiness endpoint.

    Returns 200 only when:
    - Startup initialization has completed successfully
    - The database is reachable
    """
    init_error = getattr(request.app.state, "init_error", None)
    if init_error:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Initialization failed: {init_error}",
        )

    init_done = bool(getattr(request.app.state, "init_done", False))
    if not init_done:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Starting",
        )

    try:
        await check_db_connection(request.app.state.engine)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        ) from e

    return HealthResponse(status="ready", service=SERVICE_NAME)
