"""Request logging and rate limiting middleware"""

import time
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from stockledger.core.config import settings
from stockledger.logging_config import get_logger

logger = get_logger("middleware")

# Rate limiter
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests with timing and status"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        # Log request
        logger.info(
            f"[REQUEST] {request.method} {request.url.path} - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000  # ms

            # Log response
            logger.info(
                f"[RESPONSE] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - Duration: {process_time:.2f}ms"
            )

            response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
            return response

        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[ERROR] {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - Error: {str(e)}",
                exc_info=True
            )
            raise


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Custom handler for rate limit errors"""
    logger.warning(
        f"[RATE_LIMIT] Client {request.client.host if request.client else 'unknown'} "
        f"exceeded rate limit on {request.url.path}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "details": {"limit": str(exc.detail)},
            "path": request.url.path
        }
    )
