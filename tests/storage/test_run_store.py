"""Tests for RunStore and the polars frame helpers."""

import json

import polars as pl
import pytest

from runstats.exceptions import ArchiveNotFoundError, RunNotFoundError
from runstats.models import MetricKind
from runstats.storage import RunStore, frame_to_samples, parse_log_line, read_log_frame


class TestParseLogLine:
    """Tests for parse_log_line."""

    def test_valid_line(self):
        row = parse_log_line('{"timestamp": 1714807800000, "metric": "heart_rate", "value": 150}')

        assert row == {"timestamp": 1714807800000, "metric": "heart_rate", "value": 150.0}

    def test_iso_timestamp_is_converted(self):
        row = parse_log_line('{"timestamp": "2024-05-04T07:30:00Z", "metric": "cadence", "value": 170}')

        assert row["timestamp"] == 1714807800000

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "   ",
            "{broken",
            '{"metric": "heart_rate", "value": 1}',
            '{"timestamp": 1, "metric": "heart_rate", "value": "fast"}',
            '{"timestamp": 1, "metric": "heart_rate", "value": true}',
            '{"timestamp": 1e20, "metric": "heart_rate", "value": 150}',
            '{"timestamp": -5, "metric": "heart_rate", "value": 150}',
            '{"timestamp": Infinity, "metric": "heart_rate", "value": 150}',
            '{"timestamp": 1714807800000, "metric": "heart_rate", "value": ' + "1" * 400 + "}",
        ],
    )
    def test_malformed_lines_are_skipped(self, line):
        assert parse_log_line(line) is None


class TestFrames:
    """Tests for reading sample logs into samples."""

    def test_read_log_frame_sorts_and_skips_malformed(self, tmp_path):
        log = tmp_path / "run.jsonl"
        log.write_text(
            "\n".join(
                [
                    json.dumps({"timestamp": 3000, "metric": "heart_rate", "value": 3}),
                    "not json",
                    json.dumps({"timestamp": 1000, "metric": "heart_rate", "value": 1}),
                ]
            )
            + "\n"
        )

        frame = read_log_frame(log)

        assert frame["timestamp"].to_list() == [1000, 3000]

    def test_out_of_range_timestamp_does_not_break_frame(self, tmp_path):
        log = tmp_path / "run.jsonl"
        log.write_text(
            json.dumps({"timestamp": 1000, "metric": "heart_rate", "value": 1})
            + "\n"
            + '{"timestamp": 1e20, "metric": "heart_rate", "value": 2}\n'
            + json.dumps({"timestamp": 2000, "metric": "heart_rate", "value": 3})
            + "\n"
        )

        frame = read_log_frame(log)

        assert frame["value"].to_list() == [1.0, 3.0]

    def test_invalid_utf8_skips_only_that_line(self, tmp_path):
        """Test that one undecodable line does not hide the rest of the log."""
        log = tmp_path / "run.jsonl"
        good = [json.dumps({"timestamp": t, "metric": "heart_rate", "value": t / 1000}).encode() for t in (1000, 2000)]
        log.write_bytes(good[0] + b"\n" + b'{"note": "\xff"}\n' + good[1] + b"\n")

        frame = read_log_frame(log)

        assert frame["timestamp"].to_list() == [1000, 2000]

    def test_missing_log_is_empty(self, tmp_path):
        frame = read_log_frame(tmp_path / "missing.jsonl")

        assert frame.is_empty()
        assert frame.columns == ["timestamp", "metric", "value"]

    def test_frame_to_samples_filters_metric_start_and_since(self, run_start):
        start_ms = int(run_start.timestamp() * 1000)
        frame = pl.DataFrame(
            {
                "timestamp": [start_ms - 1000, start_ms, start_ms + 5000, start_ms + 10000, start_ms + 10000],
                "metric": ["heart_rate", "heart_rate", "heart_rate", "heart_rate", "cadence"],
                "value": [99.0, 140.0, 145.0, float("nan"), 170.0],
            }
        )

        samples = frame_to_samples(frame, MetricKind.HEART_RATE, run_start)
        assert [s.relative_time for s in samples] == [0.0, 5.0]

        recent = frame_to_samples(frame, MetricKind.HEART_RATE, run_start, since=run_start.replace(second=3))
        assert [s.value for s in recent] == [145.0]

        cadence = frame_to_samples(frame, MetricKind.CADENCE, run_start)
        assert [type(s).__name__ for s in cadence] == ["CadenceSample"]


class TestRunStore:
    """Tests for RunStore lookups and archiving."""

    def test_load_context(self, tmp_path, make_run, write_run_files):
        run = make_run(duration=300, is_finished=True)
        write_run_files(tmp_path, run)

        context = RunStore(tmp_path).load_context(run.project, run.name)

        assert context == run

    def test_missing_run_raises(self, tmp_path):
        with pytest.raises(RunNotFoundError):
            RunStore(tmp_path).load_context("athlete", "nothing")

    def test_invalid_meta_raises(self, tmp_path):
        (tmp_path / "athlete").mkdir()
        (tmp_path / "athlete" / "broken.meta.json").write_text(json.dumps({"run_id": "x"}))

        with pytest.raises(RunNotFoundError, match="invalid metadata"):
            RunStore(tmp_path).load_context("athlete", "broken")

    def test_record_without_archive_raises(self, tmp_path, make_run, write_run_files):
        run = make_run()
        write_run_files(tmp_path, run, [(MetricKind.HEART_RATE, 0, 140)])

        with pytest.raises(ArchiveNotFoundError):
            RunStore(tmp_path).load_record(run.project, run.name)

    def test_archive_and_load_record(self, tmp_path, make_run, write_run_files):
        """Test that an archived log loads back as a record of both metrics."""
        run = make_run(duration=3, is_finished=True)
        write_run_files(
            tmp_path,
            run,
            [
                (MetricKind.HEART_RATE, 2, 150),
                (MetricKind.HEART_RATE, 0, 140),
                (MetricKind.CADENCE, 1, 172),
            ],
        )
        store = RunStore(tmp_path)

        path = store.archive_run(run.project, run.name)
        record = store.load_record(run.project, run.name)

        assert path == tmp_path / run.project / f"{run.name}.parquet"
        assert [s.value for s in record.heart_rate] == [140, 150]
        assert [s.relative_time for s in record.cadence] == [1.0]
        assert record.context.run_id == run.run_id

    def test_archive_keeps_samples_around_invalid_utf8(self, tmp_path, make_run, write_run_files):
        run = make_run(duration=4, is_finished=True)
        log = write_run_files(tmp_path, run, [(MetricKind.HEART_RATE, s, 140 + s) for s in range(5)])
        with open(log, "ab") as f:
            f.write(b'{"note": "\xff"}\n')
        store = RunStore(tmp_path)

        store.archive_run(run.project, run.name)
        record = store.load_record(run.project, run.name)

        assert [s.value for s in record.heart_rate] == [140, 141, 142, 143, 144]

    def test_archive_refuses_unreadable_log(self, tmp_path, make_run, write_run_files):
        """Test that a log with content but no readable samples is not archived as empty."""
        run = make_run(is_finished=True)
        log = write_run_files(tmp_path, run)
        log.write_text("garbage\n{broken\n")

        with pytest.raises(ValueError, match="no readable samples"):
            RunStore(tmp_path).archive_run(run.project, run.name)
        assert not (tmp_path / run.project / f"{run.name}.parquet").exists()

    def test_archive_of_empty_log_is_allowed(self, tmp_path, make_run, write_run_files):
        run = make_run(is_finished=True)
        write_run_files(tmp_path, run)

        path = RunStore(tmp_path).archive_run(run.project, run.name)

        assert path.exists()

    def test_corrupt_archive_raises_value_error(self, tmp_path, make_run, write_run_files):
        run = make_run(is_finished=True)
        write_run_files(tmp_path, run)
        (tmp_path / run.project / f"{run.name}.parquet").write_bytes(b"not a parquet file")

        with pytest.raises(ValueError, match="Corrupt sample archive"):
            RunStore(tmp_path).load_record(run.project, run.name)

    def test_archive_without_log_raises(self, tmp_path, make_run, write_run_files):
        run = make_run()
        write_run_files(tmp_path, run)
        (tmp_path / run.project / f"{run.name}.jsonl").unlink()

        with pytest.raises(RunNotFoundError, match="no sample log"):
            RunStore(tmp_path).archive_run(run.project, run.name)
