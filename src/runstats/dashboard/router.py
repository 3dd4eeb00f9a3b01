"""
runstats dashboard APIRouter aggregation.
"""

from __future__ import annotations

from fastapi import APIRouter

from .dependencies import configure_data_dir
from .routes import sse_router, stats_router

router = APIRouter()
router.include_router(stats_router)
router.include_router(sse_router)

__all__ = ["router", "configure_data_dir"]
