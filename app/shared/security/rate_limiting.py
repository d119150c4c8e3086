"""
Per-client request limits.

Every route gets ``settings.rate_limit_default``. Batch create and CSV
import write many rows per request and are decorated with
``settings.rate_limit_heavy`` instead. Clients are keyed by remote
address.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings

limiter = Limiter(
    key_func=get_remote_address, default_limits=[settings.rate_limit_default]
)


async def rate_limit_exceeded_handler(
    _request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Render a 429 in the same ``{error, detail}`` shape as domain errors."""
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded", "detail": str(exc.detail)},
    )
