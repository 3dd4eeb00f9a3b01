"""File helpers for run recordings.

Sample logs are append-only JSONL files written while a run is in progress.
Run metadata and stream anchors are small JSON documents that are replaced
whole, so a reader tailing the data directory never sees half of one.
"""

import contextlib
import json
import os
import platform
import stat
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import IO, Any


def datasync(fd: int) -> None:
    """Flush appended samples or a metadata checkpoint to disk.

    Uses fdatasync on Linux, fsync on macOS/other platforms.

    Args:
        fd: File descriptor to sync
    """
    if hasattr(os, "fdatasync") and platform.system() != "Darwin":
        os.fdatasync(fd)
    else:
        os.fsync(fd)


@contextlib.contextmanager
def secure_open_append(path: str | Path) -> Generator[IO[str], None, None]:
    """Open a sample log for appending, creating it with 0o600 permissions.

    Each write lands at the end of the log even if another recorder process
    appends to the same file.

    Args:
        path: Sample log path

    Yields:
        Text file opened for appending

    Examples:
        with secure_open_append(data_dir / "athlete" / "morning_10k.jsonl") as f:
            f.write(line + "\\n")
    """
    file_path = Path(path)
    # Project directory of a fresh run
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # O_CREAT with mode 0o600: heart rate logs are readable by the owner only
    flags = os.O_WRONLY | os.O_APPEND | os.O_CREAT
    fd = os.open(str(file_path), flags, 0o600)

    fd_to_close: int | None = fd
    try:
        with os.fdopen(fd, "a") as f:
            fd_to_close = None  # fd is now owned by the file object
            yield f
    finally:
        if fd_to_close is not None:
            os.close(fd_to_close)


def atomic_write_json(path: str | Path, data: dict[str, Any]) -> None:
    """Replace a run metadata file or anchor file in one step.

    The document is written to a temporary file beside the target and renamed
    over it, so the live source polling ``is_finished`` never reads a partial
    checkpoint.

    Args:
        path: Target file path
        data: Dictionary to write as JSON
    """
    target_path = Path(path)
    target_dir = target_path.parent
    target_dir.mkdir(parents=True, exist_ok=True)

    tmp_fd = None
    tmp_path = None
    try:
        # Same directory as the target, so the rename stays on one filesystem
        tmp_fd, tmp_name = tempfile.mkstemp(
            suffix=".json",
            prefix=".tmp_",
            dir=str(target_dir),
        )
        tmp_path = Path(tmp_name)

        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            tmp_fd = None  # fd is now owned by the file object
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            datasync(f.fileno())

        os.chmod(tmp_path, stat.S_IRUSR | stat.S_IWUSR)

        # Watchers see a single modification of the metadata file
        os.replace(tmp_path, target_path)
        tmp_path = None

    finally:
        if tmp_fd is not None:
            os.close(tmp_fd)
        # Leftover temporary checkpoint after a failed write
        if tmp_path is not None and tmp_path.exists():
            with contextlib.suppress(OSError):
                tmp_path.unlink()


def read_json(path: str | Path) -> dict[str, Any] | None:
    """Read run metadata or an anchor document.

    Returns:
        The document, or None when it is missing, unreadable or not an object
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, OSError):
        return None
    return data if isinstance(data, dict) else None
