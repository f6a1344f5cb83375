"""Request logging middleware for Docchain.

Every request gets a correlation ID (taken from the X-Correlation-ID header
or freshly generated) that is bound to all log lines emitted while the
request is served and echoed back in the response headers.

Example:
    >>> from fastapi import FastAPI
    >>> from docchain.web.middleware import RequestLoggingMiddleware
    >>>
    >>> app = FastAPI()
    >>> app.add_middleware(RequestLoggingMiddleware)
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from docchain.logging import get_logger, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# probes hit these constantly; keep them out of info-level logs
QUIET_PATH_PREFIXES = ("/health",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request with its status, duration and correlation ID.

    Responses with a 5xx status are logged as errors, 4xx as warnings and
    everything else at info (debug for health probes).
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        path = request.url.path
        quiet = path.startswith(QUIET_PATH_PREFIXES)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(exc),
                exc_info=True,
            )
            raise
        else:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            if response.status_code >= 500:
                log = logger.error
            elif response.status_code >= 400:
                log = logger.warning
            elif quiet:
                log = logger.debug
            else:
                log = logger.info
            log(
                "request_completed",
                method=request.method,
                path=path,
                query=request.url.query or None,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            set_correlation_id(None)
