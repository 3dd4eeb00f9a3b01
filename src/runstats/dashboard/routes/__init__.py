"""
runstats dashboard routes.

This package contains route handlers organized by type:
- stats_routes: REST statistics snapshot endpoint
- sse_routes: Server-Sent Events statistics stream
"""

from .sse_routes import router as sse_router
from .stats_routes import router as stats_router

__all__ = ["stats_router", "sse_router"]
