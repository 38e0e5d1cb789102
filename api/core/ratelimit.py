"""Rate limiting configuration using slowapi.

memory:// storage keeps separate counters per worker; production deployments
with more than one replica must set RATELIMIT_STORAGE_URI to a Redis URL.
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)

settings = get_settings()

if (
    settings.environment != "development"
    and settings.ratelimit_storage_uri == "memory://"
):
    logger.warning(
        "ratelimit.memory_storage",
        environment=settings.environment,
        hint="Set RATELIMIT_STORAGE_URI to a Redis URL for distributed limiting",
    )


def _get_request_identifier(request: Request) -> str:
    """Participant id when authenticated, otherwise the client IP."""
    if getattr(request.state, "user_id", None):
        return f"user:{request.state.user_id}"

    return get_remote_address(request)


_using_redis = settings.ratelimit_storage_uri.startswith("redis://")

limiter = Limiter(
    key_func=_get_request_identifier,
    default_limits=["100/minute"],
    storage_uri=settings.ratelimit_storage_uri,
    in_memory_fallback_enabled=_using_redis,
    key_prefix="eco:",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    logger.warning(
        "ratelimit.exceeded",
        identifier=_get_request_identifier(request),
        limit=exc.detail,
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please slow down.",
            "retry_after": exc.detail,
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


CHECKIN_LIMIT = "10/minute"

WRITE_LIMIT = "30/minute"

READ_LIMIT = "60/minute"
