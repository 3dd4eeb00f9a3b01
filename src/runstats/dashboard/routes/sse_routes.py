"""
Server-Sent Events (SSE) routes for run statistics.

This module handles the live statistics stream of a run: one
``StatsCoordinator`` per connection publishes to a ``DisplayBoard`` whose
events are forwarded to the client.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import suppress

from fastapi import APIRouter, HTTPException
from sse_starlette.sse import EventSourceResponse

from runstats.exceptions import RunNotFoundError
from runstats.ingest import DisplayBoard, DisplayEvent, StatsCoordinator

from ..dependencies import RunStoreDep, SampleSourceDep, SettingsDep, ValidatedProject, ValidatedRun

logger = logging.getLogger(__name__)

router = APIRouter()


def _event_payload(event: DisplayEvent) -> dict[str, str]:
    name = "update" if event.update is not None else "message"
    return {"event": name, "data": json.dumps(event.to_dict())}


@router.get("/api/projects/{project}/runs/{run}/stats/stream")
async def stream_run_stats(
    project: ValidatedProject,
    run: ValidatedRun,
    store: RunStoreDep,
    source: SampleSourceDep,
    settings: SettingsDep,
) -> EventSourceResponse:
    """Stream heart rate and cadence statistics of a run using Server-Sent Events (SSE).

    Args:
        project: Project name.
        run: Run name.

    Returns:
        EventSourceResponse streaming display events of the run.
        Event types:
        - `update`: `{"metric": ..., "update": <SeriesUpdate JSON>, "message": ..., "published_at": ...}`
        - `message`: advisory message without a series (same payload, `update` is null)
        - `done`: every metric stream has finished; the stream ends

    Raises:
        HTTPException: 400 if project/run name is invalid, 404 if the run does not exist.
    """
    try:
        context = await asyncio.to_thread(store.load_context, project, run)
    except RunNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None

    from ..main import app_state

    async def event_generator():
        logger.info(f"[SSE] Streaming stats of {project}/{run}")

        # Register current task for dev mode forced cancellation
        current_task = asyncio.current_task()
        if current_task is not None:
            app_state.active_sse_tasks.add(current_task)

        shutdown_queue: asyncio.Queue[None] = asyncio.Queue()
        app_state.active_sse_connections.add(shutdown_queue)

        board = DisplayBoard(max_events=settings.event_queue_size)
        coordinator = StatsCoordinator(context, source, board, settings=settings)

        async def close_when_finished() -> None:
            await coordinator.wait()
            board.close()

        async def close_on_shutdown() -> None:
            await shutdown_queue.get()
            logger.info("[SSE] Shutdown requested")
            coordinator.disappear()
            board.close()

        coordinator.appear()
        helpers = [
            asyncio.create_task(close_when_finished(), name="close_when_finished"),
            asyncio.create_task(close_on_shutdown(), name="close_on_shutdown"),
        ]

        try:
            async for event in board.events():
                logger.debug(f"[SSE] Sending {event.kind.value} event to client")
                yield _event_payload(event)

            if coordinator.done and not app_state.shutting_down:
                states = {kind.value: stream.state.value for kind, stream in coordinator.streams.items()}
                yield {"event": "done", "data": json.dumps({"project": project, "run": run, "states": states})}
        except asyncio.CancelledError:
            logger.info("[SSE] Generator cancelled")
            raise
        except Exception as e:
            logger.error(f"[SSE] Exception in event_generator: {e}", exc_info=True)
            yield {"event": "error", "data": str(e)}
        finally:
            logger.info(f"[SSE] Stats stream of {project}/{run} finished, cleaning up")
            coordinator.disappear()
            for helper in helpers:
                helper.cancel()
            app_state.active_sse_connections.discard(shutdown_queue)
            if current_task is not None:
                app_state.active_sse_tasks.discard(current_task)
            with suppress(asyncio.TimeoutError, asyncio.CancelledError):
                await asyncio.wait_for(coordinator.wait(), timeout=2.0)
            source.close()

    return EventSourceResponse(event_generator())
