"""
Simulated run recorder for watching statistics update live.

Writes heart rate every second and cadence every two seconds, occasionally
delivering a reading late (out of order), the way a wearable does when it
reconnects.

Usage:
    # Terminal 1: Start the recorder
    uv run python examples/simulate_run.py --run morning_10k

    # Terminal 2: Follow the run
    runstats watch demo morning_10k

    # Or stream from the dashboard
    runstats dashboard
    curl -N http://localhost:3141/api/projects/demo/runs/morning_10k/stats/stream
"""

import argparse
import math
import random
import time
from datetime import datetime, timedelta, timezone

from runstats import MetricKind, RunWriter
from runstats.config import get_data_dir


def main():
    parser = argparse.ArgumentParser(description="Simulated run recorder")
    parser.add_argument("--project", default="demo", help="Project name")
    parser.add_argument("--run", default="run_1", help="Run name")
    parser.add_argument("--seconds", type=int, default=300, help="Run length in seconds")
    parser.add_argument("--speed", type=float, default=1.0, help="Simulated seconds per real second")
    parser.add_argument("--data-dir", default=None, help="Data directory")
    args = parser.parse_args()

    random.seed(hash(args.run) % 1000)
    resting = random.uniform(55, 70)
    target = random.uniform(150, 170)

    start = datetime.now(timezone.utc)
    writer = RunWriter(args.data_dir or get_data_dir(), args.project, args.run, start_time=start)
    late: list[tuple[datetime, float]] = []

    print(f"Recording {args.project}/{args.run} ({args.seconds}s at {args.speed}x)")

    for second in range(args.seconds):
        ts = start + timedelta(seconds=second)
        effort = 1 - math.exp(-second / 60)
        bpm = resting + (target - resting) * effort + random.gauss(0, 2)

        if random.random() < 0.05:
            late.append((ts, bpm))
        else:
            writer.log(MetricKind.HEART_RATE, bpm, timestamp=ts)
        if late and random.random() < 0.3:
            writer.log_many(MetricKind.HEART_RATE, late)
            late = []

        if second % 2 == 0 and second > 10:
            spm = 165 + 10 * effort + random.gauss(0, 3)
            writer.log(MetricKind.CADENCE, spm, timestamp=ts)

        if second % 10 == 0:
            writer.checkpoint(duration=second)
            print(f"[{datetime.now():%H:%M:%S}] t={second:4d}s hr={bpm:.0f}")

        time.sleep(1 / args.speed)

    writer.log_many(MetricKind.HEART_RATE, late)
    writer.finish(duration=args.seconds)
    print(f"Finished {args.project}/{args.run}")


if __name__ == "__main__":
    main()
