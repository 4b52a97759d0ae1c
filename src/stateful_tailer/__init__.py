"""Stateful tailing of multiple files.

This package reads lines appended to a fixed set of files, remembers how far
each file has been read across process restarts, and delivers only the lines
that pass include/exclude filters. Rotated or truncated files are detected
via inode and size changes and re-read from the beginning.

Key Components:
    - models: Stat identity and persisted snapshot records
    - tracked_file: Incremental reading and rotation detection for one file
    - filters: Include/exclude regular expression filtering
    - state_store: YAML persistence of snapshots with file locking
    - session: Read passes over all tracked files

Example:
    >>> from stateful_tailer import TailSession
    >>> session = TailSession(
    ...     ["/var/log/messages"],
    ...     include_patterns=[r"sshd"],
    ...     state_path="/var/db/tailer.state",
    ...     deliver=print,
    ... )
    >>> batches = session.read()
"""

from __future__ import annotations

from .exceptions import (
    ConfigError,
    FileAccessError,
    NotReadableError,
    StateLoadError,
    StateSaveError,
    TailerError,
)
from .filters import LineFilter
from .models import FileSnapshot, FileStat
from .session import TailSession
from .state_store import StateStore
from .tracked_file import TrackedFile

__all__ = [
    "TailSession",
    "TrackedFile",
    "StateStore",
    "LineFilter",
    "FileSnapshot",
    "FileStat",
    "TailerError",
    "ConfigError",
    "NotReadableError",
    "FileAccessError",
    "StateLoadError",
    "StateSaveError",
]

__version__ = "0.1.0"
