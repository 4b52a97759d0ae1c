"""Incremental reading of a single file with rotation detection.

A TrackedFile remembers the byte offset it has read up to and the identity
(inode and size) of the file it read from. Before every read the path is
stat-ed again; a changed inode, a shrunken file or an offset past the end of
the file means the file was rotated or truncated, and reading restarts from
the beginning of whatever now lives at the path.
"""

from __future__ import annotations

import codecs
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO

from .exceptions import ConfigError, FileAccessError, NotReadableError
from .models import FileSnapshot, FileStat


class TrackedFile:
    """Reads lines appended to one file since the previous read.

    The open handle is owned exclusively by this object. It is opened lazily
    on the first read, replaced when a rotation is detected, and dropped on
    close() or after any access error so that the next read starts clean.

    Lines are returned without their ``\\n`` terminator. An unterminated
    fragment at end of file is returned as-is and the position moves past it,
    so the remainder of that line shows up as a separate line on a later read.
    Bytes of a character cut off at end of file are left unread until the
    rest of the character has been written.

    Attributes:
        path: Path of the tracked file.
        position: Byte offset where the next read starts.
        identity: Stat snapshot of the file after the last successful read.
        rotated: Whether the most recent read_lines() detected a rotation.
        rotation_count: Number of rotations detected over the object's life.
    """

    def __init__(
        self,
        path: str | Path,
        encoding: str = "utf-8",
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        """Register a path for tailing.

        Args:
            path: File to tail.
            encoding: Encoding used to decode lines; undecodable bytes are replaced.
            logger: Destination for diagnostics. Defaults to this module's logger.

        Raises:
            ConfigError: If ``encoding`` is not a known codec.
            NotReadableError: If the path does not exist, is a directory or
                cannot be read by this process.
        """
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise ConfigError(f"unknown encoding: {encoding}") from e

        self.path = str(path)
        self.encoding = encoding
        self.position = 0
        self.identity = FileStat()
        self.rotated = False
        self.rotation_count = 0
        self._handle: BinaryIO | None = None
        self._logger = logger or logging.getLogger(__name__)

        if not os.path.exists(self.path):
            raise NotReadableError(self.path, "no such file")
        if os.path.isdir(self.path):
            raise NotReadableError(self.path, "is a directory")
        if not os.access(self.path, os.R_OK):
            raise NotReadableError(self.path, "permission denied")

    def __repr__(self) -> str:
        return f"TrackedFile({self.path!r}, position={self.position})"

    def __enter__(self) -> TrackedFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def restore_state(self, snapshot: FileSnapshot | None) -> None:
        """Resume from a previously persisted snapshot.

        Only the in-memory position and identity are replaced; the file is
        not touched until the next read_lines().

        Args:
            snapshot: Snapshot saved by get_state(), or None to keep the
                initial state.

        Raises:
            ValueError: If the snapshot belongs to another path.
            RuntimeError: If the file has already been opened for reading.
        """
        if snapshot is None:
            return
        if snapshot.path != self.path:
            raise ValueError(f"snapshot for {snapshot.path} cannot restore {self.path}")
        if self._handle is not None:
            raise RuntimeError(f"{self.path} is already open, restore state before reading")

        self.position = snapshot.position
        self.identity = replace(snapshot.stat)
        self._logger.debug(f"Restored {self.path} at offset {self.position}")

    def get_state(self) -> FileSnapshot:
        return FileSnapshot(path=self.path, position=self.position, stat=replace(self.identity))

    def read_lines(self) -> list[str]:
        """Read every complete or partial line appended since the last read.

        Returns:
            Lines in file order, empty if no new bytes are available.

        Raises:
            FileAccessError: If the file cannot be opened, stat-ed or read.
                The handle is closed and the position is left unchanged.
        """
        self.rotated = False
        start = self.position
        try:
            self._ensure_open()
            current = os.stat(self.path)

            reason = self._rotation_reason(current)
            if reason is not None:
                self._logger.info(f"{self.path} {reason}, reading from the start")
                self._reopen()

            if self._handle is None:
                raise ValueError(f"{self.path} should be open before reading")
            read_from = self.position
            data = self._handle.read()
            lines, held = self._split_lines(data)
            self.position = self._handle.tell() - held
            if held:
                # Incomplete trailing character, re-read on the next pass
                self._handle.seek(self.position)
            self.identity = FileStat.from_os_stat(os.fstat(self._handle.fileno()))
        except OSError as e:
            self.close()
            self.position = start
            raise FileAccessError(self.path, e.strerror or str(e)) from e

        if lines:
            self._logger.debug(
                f"Read {len(lines)} lines from {self.path} (offset {read_from} -> {self.position})"
            )
        return lines

    def close(self) -> None:
        """Release the file handle. Safe to call any number of times."""
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()

    def _ensure_open(self) -> None:
        if self._handle is not None:
            return
        self._handle = open(self.path, "rb")
        self._handle.seek(self.position)

    def _rotation_reason(self, current: os.stat_result) -> str | None:
        """Describe why the file must be re-read from the start, if it must."""
        if self.identity.ino is not None and current.st_ino != self.identity.ino:
            return f"inode has changed ({self.identity.ino} -> {current.st_ino})"
        if self.identity.size is not None and current.st_size < self.identity.size:
            return (
                f"is smaller than expected ({current.st_size} < {self.identity.size}), "
                "possible truncation"
            )
        if self.position > current.st_size:
            return f"offset {self.position} is past end of file ({current.st_size})"
        return None

    def _reopen(self) -> None:
        self.close()
        self.position = 0
        self.rotated = True
        self.rotation_count += 1
        self._ensure_open()

    def _split_lines(self, data: bytes) -> tuple[list[str], int]:
        """Decode complete lines and any unterminated fragment at the end.

        Returns:
            The lines, and how many trailing bytes form an incomplete
            character that must be left for the next read.
        """
        if not data:
            return [], 0
        chunks = data.split(b"\n")
        fragment = chunks.pop()
        lines = [chunk.decode(self.encoding, errors="replace") for chunk in chunks]
        if not fragment:
            return lines, 0

        decoder = codecs.getincrementaldecoder(self.encoding)(errors="replace")
        text = decoder.decode(fragment, final=False)
        pending = decoder.getstate()[0]
        if text:
            lines.append(text)
        return lines, len(pending)
