"""
FastAPI dependency injection for the runstats dashboard.

This module provides reusable dependencies for:
- Run store and sample source instances bound to the data directory
- Path parameter validation (project names, run names)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException
from fastapi import Path as PathParam

from runstats.config import StatsSettings, get_data_dir, get_settings
from runstats.sources import SampleSource, default_sample_source
from runstats.storage import RunStore
from runstats.utils import validators

# Mutable container for custom data directory configuration
_custom_data_dir: list[str | None] = [None]


@lru_cache(maxsize=1)
def _get_cached_store() -> tuple[RunStore, Path]:
    if _custom_data_dir[0] is not None:
        data_dir = Path(_custom_data_dir[0])
    else:
        data_dir = Path(get_data_dir())
    return RunStore(data_dir), data_dir


def get_run_store() -> RunStore:
    """Get the RunStore singleton instance."""
    return _get_cached_store()[0]


def get_data_dir_path() -> Path:
    """Get the data directory path."""
    return _get_cached_store()[1]


def get_sample_source(data_dir: Annotated[Path, Depends(get_data_dir_path)]) -> SampleSource:
    """Live log source with the stored archive as fallback, one per request."""
    return default_sample_source(data_dir)


def get_stats_settings() -> StatsSettings:
    return get_settings()


def configure_data_dir(data_dir: str | None = None) -> None:
    """Configure the data directory and drop cached instances.

    Args:
        data_dir: Custom data directory path. If None, uses default.
    """
    _get_cached_store.cache_clear()
    _custom_data_dir[0] = data_dir


def get_validated_project(project: Annotated[str, PathParam(description="Project name")]) -> str:
    """Validate project name path parameter.

    Raises:
        HTTPException: 400 if project name is invalid.
    """
    try:
        validators.validate_project_name(project)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return project


def get_validated_run(run: Annotated[str, PathParam(description="Run name")]) -> str:
    """Validate run name path parameter.

    Raises:
        HTTPException: 400 if run name is invalid.
    """
    try:
        validators.validate_run_name(run)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return run


# Type aliases for dependency injection
ValidatedProject = Annotated[str, Depends(get_validated_project)]
ValidatedRun = Annotated[str, Depends(get_validated_run)]
RunStoreDep = Annotated[RunStore, Depends(get_run_store)]
SampleSourceDep = Annotated[SampleSource, Depends(get_sample_source)]
SettingsDep = Annotated[StatsSettings, Depends(get_stats_settings)]
