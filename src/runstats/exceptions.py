"""
runstats exceptions module.

Contains exception classes used across multiple modules to avoid circular dependencies.
"""


class RunNotFoundError(Exception):
    """Exception raised when a run has no metadata in the data directory."""

    pass


class ArchiveNotFoundError(Exception):
    """Exception raised when a run has no stored archive."""

    pass
