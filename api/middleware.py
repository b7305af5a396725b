"""
Global middleware.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI) -> None:
    """Attach app-level middleware: per-request timing and access logging."""

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug(
            "%s %s -> %d in %.3fs (user=%s)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
            getattr(request.state, "user_id", "-"),
        )
        return response
