"""
FastAPI application for the runstats dashboard.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from runstats import __version__
from runstats.config import is_dev_mode

from .router import router

logger = logging.getLogger(__name__)


class AppState:
    """Application state for managing SSE connections during shutdown."""

    def __init__(self) -> None:
        self.active_sse_connections: set[asyncio.Queue] = set()
        self.active_sse_tasks: set[asyncio.Task] = set()
        self.shutting_down = False


app_state = AppState()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Content-Security-Policy"] = "default-src 'self'; connect-src 'self'; frame-ancestors 'none'"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle.

    On shutdown, every open statistics stream is asked to stop, which
    cancels its coordinator. In development mode the SSE tasks are cancelled
    outright for a fast restart.
    """
    app_state.shutting_down = False
    yield

    app_state.shutting_down = True

    for queue in list(app_state.active_sse_connections):
        with contextlib.suppress(RuntimeError, OSError):
            await queue.put(None)  # Sentinel value to signal shutdown

    if is_dev_mode():
        logger.info(f"[DEV MODE] Cancelling {len(app_state.active_sse_tasks)} active SSE tasks")
        for task in list(app_state.active_sse_tasks):
            task.cancel()
        if app_state.active_sse_tasks:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    asyncio.gather(*app_state.active_sse_tasks, return_exceptions=True),
                    timeout=0.1,
                )
    else:
        await asyncio.sleep(0.5)


app = FastAPI(
    title="runstats dashboard",
    description="Live heart rate and cadence statistics of runs",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(SecurityHeadersMiddleware)  # ty: ignore[invalid-argument-type]

# Read-only API: no credentials, GET only
app.add_middleware(
    CORSMiddleware,  # ty: ignore[invalid-argument-type]
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["Content-Type"],
)

app.include_router(router)
