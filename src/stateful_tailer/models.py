"""Data models for tracked file state.

This module defines the stat snapshot used for rotation detection and the
persisted per-file record that lets a tailer resume where it left off.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

STAT_FIELDS = ("ino", "size", "atime", "mtime", "ctime")


@dataclass
class FileStat:
    """Identity of a file as seen by the most recent successful read.

    Only ``ino`` and ``size`` take part in rotation detection; the timestamps
    are carried along so that a snapshot fully describes the file that was read.

    Attributes:
        ino: Inode number, or None if the file has not been read yet.
        size: Size in bytes at the time of the read.
        atime: Last access time (seconds since the epoch).
        mtime: Last modification time.
        ctime: Last status change time.
    """

    ino: int | None = None
    size: int | None = None
    atime: float | None = None
    mtime: float | None = None
    ctime: float | None = None

    @classmethod
    def from_os_stat(cls, st: os.stat_result) -> FileStat:
        return cls(
            ino=st.st_ino,
            size=st.st_size,
            atime=st.st_atime,
            mtime=st.st_mtime,
            ctime=st.st_ctime,
        )

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in STAT_FIELDS}

    @classmethod
    def from_dict(cls, data: Any) -> FileStat:
        """Build a FileStat from its persisted form.

        Raises:
            ValueError: If ``data`` is not a mapping or holds non-numeric values.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"stat must be a mapping, got {type(data).__name__}")

        values: dict[str, Any] = {}
        for name in STAT_FIELDS:
            value = data.get(name)
            if value is None:
                values[name] = None
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"stat field {name!r} must be numeric, got {value!r}")
            if name in ("ino", "size") and not isinstance(value, int):
                raise ValueError(f"stat field {name!r} must be an integer, got {value!r}")
            values[name] = value
        return cls(**values)


@dataclass
class FileSnapshot:
    """Persisted reading state for one tracked file.

    Attributes:
        path: Path of the tracked file, used as the key in the state file.
        position: Byte offset where the next read resumes.
        stat: Identity of the file after the last successful read.
    """

    path: str
    position: int = 0
    stat: FileStat = field(default_factory=FileStat)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "pos": self.position,
            "stat": self.stat.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any, path: str | None = None) -> FileSnapshot:
        """Build a snapshot from its persisted form.

        Args:
            data: Mapping with ``path``, ``pos`` and ``stat`` keys.
            path: Key the record was stored under. When given, a record without
                its own ``path`` inherits it and a mismatching one is rejected.

        Raises:
            ValueError: If the record is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"snapshot must be a mapping, got {type(data).__name__}")

        record_path = data.get("path", path)
        if not isinstance(record_path, str) or not record_path:
            raise ValueError(f"snapshot path must be a non-empty string, got {record_path!r}")
        if path is not None and record_path != path:
            raise ValueError(f"snapshot for {record_path!r} stored under {path!r}")

        position = data.get("pos", 0)
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise ValueError(f"pos must be a non-negative integer, got {position!r}")

        return cls(path=record_path, position=position, stat=FileStat.from_dict(data.get("stat")))
