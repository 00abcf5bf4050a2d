"""Request rate limiting (slowapi).

Limits are keyed by the authenticated user when a valid bearer token is
present and by client address otherwise:

- every route: 100 per 15 minutes
- /auth/register, /auth/login: 20 per 15 minutes
- /agent/*: 10 per minute (model calls are slow and expensive)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from student_records.core.config import settings
from student_records.core.security import decode_access_token

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = "100 per 15 minutes"
AUTH_LIMIT = "20 per 15 minutes"
AGENT_LIMIT = "10 per minute"


def get_client_identifier(request: Request) -> str:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        user_id = decode_access_token(auth[len("Bearer "):])
        if user_id is not None:
            return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[DEFAULT_LIMIT],
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded for %s: %s", get_client_identifier(request), exc.detail)
    return JSONResponse(
        status_code=429,
        content={
            "kind": "RateLimited",
            "message": "Too many requests, please try again later",
            "detail": str(exc.detail),
        },
    )
