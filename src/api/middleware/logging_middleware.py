"""
Request Logging Middleware

Logs every API call with its status code and duration.
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status code and processing time; sets X-Process-Time."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        logger.info(f"→ {request.method} {request.url.path}")

        response: Response = await call_next(request)

        process_time = time.perf_counter() - start_time
        log = logger.warning if response.status_code >= 500 else logger.info
        log(f"← {request.method} {request.url.path} [{response.status_code}] {process_time:.3f}s")

        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        return response
