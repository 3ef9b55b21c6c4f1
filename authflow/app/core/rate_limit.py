# authflow/app/core/rate_limit.py
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from authflow.app.core.exceptions import RateLimitError

# Counters live in process memory, keyed by client address
limiter = Limiter(key_func=get_remote_address)

LOGIN_RATE_LIMIT = "5/15minutes"
LOGIN_RATE_LIMIT_MESSAGE = "Too many login attempts, please try again after 15 minutes"


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    error = RateLimitError(LOGIN_RATE_LIMIT_MESSAGE)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())
