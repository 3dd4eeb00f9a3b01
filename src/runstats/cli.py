#!/usr/bin/env python3
"""
runstats CLI tool

Command line interface for serving the dashboard, following a run while it
is recorded, summarising runs and archiving finished ones.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

import uvicorn

from runstats.config import get_data_dir, get_settings
from runstats.exceptions import RunNotFoundError
from runstats.ingest import DisplayBoard, DisplayEvent, StatsCoordinator, advisory_message
from runstats.models import MetricKind, Sample, SeriesUpdate
from runstats.series import SeriesReducer
from runstats.sources import default_sample_source
from runstats.storage import RunStore


def format_update(kind: MetricKind, update: SeriesUpdate | None, message: str | None = None) -> str:
    """One-line rendering of a metric update."""
    label = f"{kind.label:<10}"
    if update is None or update.stats is None:
        return f"{label} {message or '-'}"

    stats = update.stats
    line = (
        f"{label} n={stats.count} min={stats.min:.0f} max={stats.max:.0f} avg={stats.average:.1f}"
        f" shown={len(update.display_samples)}"
    )
    if update.dropped_points:
        line += f" dropped={update.dropped_points}"
    if message:
        line += f" ({message})"
    return line


def format_event(event: DisplayEvent) -> str:
    return f"[{event.published_at:%H:%M:%S}] {format_update(event.kind, event.update, event.message)}"


def run_dashboard(
    host: str = "127.0.0.1",
    port: int = 3141,
    data_dir: str | None = None,
    dev: bool = False,
) -> None:
    """
    Start dashboard server

    Args:
        host: Host name
        port: Port number
        data_dir: Data directory. Defaults to XDG-based default (~/.local/share/runstats)
        dev: Enable development mode with auto-reload
    """
    if dev:
        os.environ["RUNSTATS_DEV_MODE"] = "1"

    if data_dir is None:
        data_dir = str(get_data_dir())
    # Propagate to reloaded worker processes
    os.environ["RUNSTATS_DATA_DIR"] = os.path.abspath(data_dir)

    from runstats.dashboard.router import configure_data_dir

    configure_data_dir(data_dir)

    print("Starting runstats dashboard server...")
    print(f"Stats API: http://{host}:{port}/api/projects/<project>/runs/<run>/stats")
    print(f"Data directory: {os.path.abspath(data_dir)}")
    if dev:
        print("Development mode: auto-reload enabled")

    uvicorn.run("runstats.dashboard.main:app", host=host, port=port, reload=dev)


async def watch_run(project: str, run: str, data_dir: str, resume: bool = False) -> None:
    """Print statistics updates of a run until it finishes."""
    context = RunStore(data_dir).load_context(project, run)
    source = default_sample_source(data_dir, resume=resume)
    board = DisplayBoard(max_events=get_settings().event_queue_size)

    try:
        async with StatsCoordinator(context, source, board) as coordinator:

            async def close_when_finished() -> None:
                await coordinator.wait()
                board.close()

            closer = asyncio.create_task(close_when_finished())
            async for event in board.events():
                print(format_event(event), flush=True)
            await closer
    finally:
        source.close()


async def summarise_run(project: str, run: str, data_dir: str) -> list[str]:
    """Reduce every available sample of a run once and render the result."""
    context = RunStore(data_dir).load_context(project, run)
    source = default_sample_source(data_dir)
    settings = get_settings()

    duration_min, duration_sec = divmod(int(context.duration), 60)
    status = "finished" if context.is_finished else "in progress"
    lines = [f"{project}/{run} ({status}, {duration_min}:{duration_sec:02d})"]
    try:
        for kind in MetricKind:
            limits = settings.limits_for(kind)
            reducer: SeriesReducer[Sample] = SeriesReducer(limits.downsample_threshold, limits.downsample_limit)
            update = await reducer.reset(await source.prewarm(kind, context, 0))
            lines.append(format_update(kind, update, advisory_message(kind, update, limits.min_samples)))
    finally:
        source.close()
    return lines


def run_watch(project: str, run: str, data_dir: str | None = None, resume: bool = False) -> None:
    """
    Follow a run in the terminal

    Args:
        project: Project name
        run: Run name
        data_dir: Data directory
        resume: Continue from where the previous watch of this run stopped
    """
    if data_dir is None:
        data_dir = str(get_data_dir())

    print(f"Watching {project}/{run} (Ctrl-C to stop)")
    try:
        asyncio.run(watch_run(project, run, data_dir, resume=resume))
    except (RunNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("Stopped")


def run_summary(project: str, run: str, data_dir: str | None = None) -> None:
    """
    Print the statistics of a run

    Args:
        project: Project name
        run: Run name
        data_dir: Data directory
    """
    if data_dir is None:
        data_dir = str(get_data_dir())

    try:
        lines = asyncio.run(summarise_run(project, run, data_dir))
    except (RunNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    for line in lines:
        print(line)


def run_archive(project: str, run: str, data_dir: str | None = None) -> None:
    """
    Archive the sample log of a run to Parquet

    Args:
        project: Project name
        run: Run name
        data_dir: Data directory
    """
    if data_dir is None:
        data_dir = str(get_data_dir())

    try:
        path = RunStore(data_dir).archive_run(project, run)
    except (RunNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Archived {project}/{run} to {path}")


def main() -> None:
    """
    CLI main entry point
    """
    parser = argparse.ArgumentParser(description="runstats management tool")
    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    dashboard_parser = subparsers.add_parser("dashboard", help="Start dashboard server")
    dashboard_parser.add_argument("--host", default="127.0.0.1", help="Host name (default: 127.0.0.1)")
    dashboard_parser.add_argument("--port", type=int, default=3141, help="Port number (default: 3141)")
    dashboard_parser.add_argument("--data-dir", default=None, help="Data directory (default: XDG-based ~/.local/share/runstats)")
    dashboard_parser.add_argument("--dev", action="store_true", help="Enable development mode with auto-reload")

    watch_parser = subparsers.add_parser("watch", help="Print live statistics of a run until it finishes")
    watch_parser.add_argument("project", help="Project name")
    watch_parser.add_argument("run", help="Run name")
    watch_parser.add_argument("--data-dir", default=None, help="Data directory (default: XDG-based ~/.local/share/runstats)")
    watch_parser.add_argument("--resume", action="store_true", help="Resume from the position of the previous watch")

    summary_parser = subparsers.add_parser("summary", help="Print statistics of a run")
    summary_parser.add_argument("project", help="Project name")
    summary_parser.add_argument("run", help="Run name")
    summary_parser.add_argument("--data-dir", default=None, help="Data directory (default: XDG-based ~/.local/share/runstats)")

    archive_parser = subparsers.add_parser("archive", help="Archive the sample log of a run to Parquet")
    archive_parser.add_argument("project", help="Project name")
    archive_parser.add_argument("run", help="Run name")
    archive_parser.add_argument("--data-dir", default=None, help="Data directory (default: XDG-based ~/.local/share/runstats)")

    args = parser.parse_args()

    if args.command == "dashboard":
        run_dashboard(host=args.host, port=args.port, data_dir=args.data_dir, dev=args.dev)
    elif args.command == "watch":
        run_watch(args.project, args.run, data_dir=args.data_dir, resume=args.resume)
    elif args.command == "summary":
        run_summary(args.project, args.run, data_dir=args.data_dir)
    elif args.command == "archive":
        run_archive(args.project, args.run, data_dir=args.data_dir)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
