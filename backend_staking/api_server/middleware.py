"""
HTTP middleware: request/response logging with timing.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable

from fastapi import Request, Response

from backend_staking.staking_logging import bind_request


async def log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Log method, path, status and duration of every request."""
    log = bind_request(request.method, request.url.path)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        log.exception("http_request_failed", duration_ms=round((time.perf_counter() - start) * 1000, 2))
        raise
    log.info(
        "http_request",
        status=response.status_code,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return response
