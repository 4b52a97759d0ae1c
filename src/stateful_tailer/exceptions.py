"""Exception hierarchy for stateful tailing.

Errors raised at construction time (ConfigError, NotReadableError,
StateLoadError) are fatal to the session. FileAccessError is recovered by
TailSession on a per-file basis, and StateSaveError aborts a single read pass.
"""

from __future__ import annotations


class TailerError(Exception):
    """Base class for all tailer errors."""


class ConfigError(TailerError):
    """A required construction parameter is missing or invalid."""


class NotReadableError(TailerError):
    """A configured path cannot be opened for reading."""

    def __init__(self, path: str, reason: str | None = None):
        self.path = path
        self.reason = reason
        message = f"{path} is not readable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FileAccessError(TailerError):
    """Opening, stat-ing or reading a tracked file failed during a pass."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class StateLoadError(TailerError):
    """The persisted state file exists but could not be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"could not load state from {path}: {reason}")


class StateSaveError(TailerError):
    """The persisted state file could not be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"could not save state to {path}: {reason}")
