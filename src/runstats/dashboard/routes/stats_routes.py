"""
REST API routes for run statistics.

This module handles the one-shot statistics snapshot of a run metric.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query

from runstats.exceptions import RunNotFoundError
from runstats.ingest import advisory_message
from runstats.models import MetricKind, Sample
from runstats.series import SeriesReducer

from ..dependencies import RunStoreDep, SampleSourceDep, SettingsDep, ValidatedProject, ValidatedRun
from ..models import MetricStatsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/projects/{project}/runs/{run}/stats")
async def get_run_stats(
    project: ValidatedProject,
    run: ValidatedRun,
    store: RunStoreDep,
    source: SampleSourceDep,
    settings: SettingsDep,
    metric: MetricKind = Query(MetricKind.HEART_RATE, description="Metric to summarise"),
) -> MetricStatsResponse:
    """Get the statistics and display series of one metric of a run.

    Every sample currently available for the run is read (live log first,
    archive as fallback) and reduced once.

    Args:
        project: Project name.
        run: Run name.
        metric: ``heart_rate`` or ``cadence``.

    Returns:
        Display series, statistics and advisory message of the metric.

    Raises:
        HTTPException: 400 if project/run name is invalid, 404 if the run does not exist.
    """
    try:
        context = await asyncio.to_thread(store.load_context, project, run)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None

    limits = settings.limits_for(metric)
    samples = await source.prewarm(metric, context, 0)

    reducer: SeriesReducer[Sample] = SeriesReducer(limits.downsample_threshold, limits.downsample_limit)
    update = await reducer.reset(samples)
    logger.debug(f"[API] {project}/{run} {metric.value}: {reducer.sample_count} samples, {len(update.display_samples)} displayed")

    return MetricStatsResponse(
        project=project,
        run=run,
        metric=metric,
        update=update,
        message=advisory_message(metric, update, limits.min_samples),
        is_finished=context.is_finished,
    )
