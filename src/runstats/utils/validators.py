"""Validators for project/run names and data directory paths.

Names end up as file names under the data directory, so they are restricted
to a safe character set and resolved paths must stay below the base directory.
"""

import os
import re
from pathlib import Path

__all__ = ["validate_safe_path", "validate_name", "validate_project_name", "validate_run_name"]

# Only allow alphanumeric characters, underscores, and hyphens
_SAFE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def validate_safe_path(path: Path, base_dir: Path) -> None:
    """Check that a run file resolves below the data directory.

    Run names come from URLs and the command line; a symlinked project
    directory could otherwise point the sample log reader anywhere.

    Args:
        path: Sample log, archive or metadata path
        base_dir: Data directory

    Raises:
        ValueError: If the path leaves the data directory, crosses a symlink or cannot be resolved

    Examples:
        >>> base = Path("/data")
        >>> validate_safe_path(Path("/data/project/run.jsonl"), base)  # OK
        >>> validate_safe_path(Path("/data/../etc/passwd"), base)  # Raises ValueError
    """
    try:
        resolved_path = path.resolve()
        resolved_base = base_dir.resolve()

        # Walk from the path up to the base directory, rejecting symlinks
        current = path
        while current != current.parent:
            if current.exists() and current.is_symlink():
                raise ValueError(f"Path contains symlink: {current}")
            try:
                current.relative_to(resolved_base)
            except ValueError:
                break
            current = current.parent

        if not str(resolved_path).startswith(str(resolved_base) + os.sep) and resolved_path != resolved_base:
            raise ValueError(f"Path {path} is outside base directory {base_dir}")
    except (ValueError, OSError) as e:
        if isinstance(e, ValueError) and str(e).startswith("Path"):
            raise
        raise ValueError(f"Invalid path: {path}") from e


def validate_name(name: str, name_type: str = "name") -> None:
    """Check that a project or run name is usable as a file name stem.

    Args:
        name: Name from a request path or CLI argument
        name_type: Used in the error message, e.g. "project name"

    Raises:
        ValueError: If name is empty or contains invalid characters

    Examples:
        >>> validate_name("morning_run", "run")  # OK
        >>> validate_name("../etc/passwd", "project")  # Raises ValueError
    """
    if not name or not _SAFE_NAME_PATTERN.match(name):
        raise ValueError(f"Invalid {name_type}. Only alphanumeric characters, underscores, and hyphens are allowed.")


def validate_project_name(project: str) -> None:
    """Project names are directories under the data directory."""
    validate_name(project, "project name")


def validate_run_name(run: str) -> None:
    """Run names prefix the ``.jsonl``, ``.meta.json`` and ``.parquet`` files of a run."""
    validate_name(run, "run name")
