"""
Pathwatcher: watch a configured set of filesystem paths and log changes.

Provides both a CLI and library API for relaying filesystem notifications
to the log, one listening thread per watched path.
"""

__version__ = "0.1.0"


class PathwatcherError(Exception):
    """Base class for startup-fatal errors."""

    pass
