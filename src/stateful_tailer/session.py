"""Read passes over a fixed set of tracked files.

A TailSession owns one TrackedFile per configured path. Each call to read()
performs a single non-blocking pass: every file is read up to its current end,
lines are filtered, the state of all files is persisted once, and each file's
surviving lines are handed to the delivery callback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from .exceptions import ConfigError, FileAccessError, NotReadableError
from .filters import LineFilter, PatternLike
from .models import FileSnapshot
from .state_store import StateStore
from .tracked_file import TrackedFile

DeliveryCallback = Callable[[list[str]], None]


class TailSession:
    """Tails multiple files and keeps their state between invocations.

    Example:
        >>> def deliver(lines):
        ...     for line in lines:
        ...         print(line)
        >>> with TailSession(
        ...     ["/var/log/messages"],
        ...     include_patterns=[r"greyd\\[\\d+\\]:"],
        ...     exclude_patterns=[r"^greylogd"],
        ...     state_path="/var/db/tailer.state",
        ...     deliver=deliver,
        ... ) as session:
        ...     session.read()

    Attributes:
        files: Tracked files keyed by path, in configuration order.
        line_filter: Include/exclude filter applied to every line.
        store: Persistence for the per-file snapshots.
        last_errors: File access errors from the most recent read(), by path.
    """

    def __init__(
        self,
        paths: Iterable[str | Path],
        include_patterns: Iterable[PatternLike] | None = None,
        exclude_patterns: Iterable[PatternLike] | None = None,
        state_path: str | Path | None = None,
        deliver: DeliveryCallback | None = None,
        *,
        store: StateStore | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        skip_unreadable: bool = False,
        encoding: str = "utf-8",
    ):
        """Build the session and restore any persisted state.

        Args:
            paths: Files to tail.
            include_patterns: If non-empty, only lines matching one of these are kept.
            exclude_patterns: Lines matching any of these are always dropped.
            state_path: Where snapshots are persisted. Required.
            deliver: Called once per file with that file's non-empty batch of lines.
            store: Custom state store; defaults to a StateStore on ``state_path``.
            logger: Destination for diagnostics, shared with the tracked files.
            skip_unreadable: Log and leave out unreadable paths instead of failing.
            encoding: Encoding used to decode lines.

        Raises:
            ConfigError: If ``state_path`` is missing, a pattern is invalid or
                ``encoding`` is not a known codec.
            NotReadableError: If a path cannot be read and ``skip_unreadable`` is False.
            StateLoadError: If the existing state file cannot be parsed.
            StateSaveError: If a missing state file cannot be created.
        """
        if state_path is None or str(state_path) == "":
            raise ConfigError("state_path required")

        self.state_path = Path(state_path)
        self.deliver = deliver
        self.line_filter = LineFilter(include_patterns, exclude_patterns)
        self.store = store if store is not None else StateStore(self.state_path)
        self.last_errors: dict[str, FileAccessError] = {}
        self.files: dict[str, TrackedFile] = {}
        self._logger = logger or logging.getLogger(__name__)

        for path in paths:
            key = str(path)
            if key in self.files:
                continue
            try:
                self.files[key] = TrackedFile(key, encoding=encoding, logger=self._logger)
            except NotReadableError as e:
                if not skip_unreadable:
                    raise
                self._logger.warning(f"Skipping {e}")

        self._load_state()

    def __enter__(self) -> TailSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close_all()

    def __del__(self) -> None:
        files = getattr(self, "files", None)
        if files:
            for tracked in files.values():
                tracked.close()

    @property
    def include_patterns(self) -> list[str]:
        return [pattern.pattern for pattern in self.line_filter.include]

    @property
    def exclude_patterns(self) -> list[str]:
        return [pattern.pattern for pattern in self.line_filter.exclude]

    def read(self) -> dict[str, list[str]]:
        """Run one read pass over all tracked files.

        A file that cannot be accessed is closed, recorded in ``last_errors``
        and skipped; the remaining files are still read. State is persisted
        exactly once, after all files have been read, whether or not any
        lines were produced.

        Returns:
            The delivered batches keyed by path. Files whose filtered batch is
            empty are absent.

        Raises:
            StateSaveError: If the state could not be persisted. No lines are
                delivered in that case, but in-memory positions are kept.
        """
        self.last_errors = {}
        batches: dict[str, list[str]] = {}

        for path, tracked in self.files.items():
            try:
                lines = tracked.read_lines()
            except FileAccessError as e:
                self._logger.warning(f"Skipping {path} for this pass: {e.reason}")
                tracked.close()
                self.last_errors[path] = e
                continue

            kept = self.line_filter.apply(lines)
            if len(kept) != len(lines):
                self._logger.debug(
                    f"Filtered {len(lines) - len(kept)} of {len(lines)} lines from {path}"
                )
            if kept:
                batches[path] = kept

        self.store.save(self.snapshots())

        if self.deliver is not None:
            for lines in batches.values():
                self.deliver(lines)

        return batches

    def snapshots(self) -> dict[str, FileSnapshot]:
        return {path: tracked.get_state() for path, tracked in self.files.items()}

    def close_all(self) -> None:
        """Close every tracked file's handle. Safe to call repeatedly."""
        for tracked in self.files.values():
            tracked.close()

    def _load_state(self) -> None:
        if not self.store.exists():
            self._logger.info(f"State file {self.state_path} does not exist, creating it")
            self.store.touch()
            return

        snapshots = self.store.load()
        for path, tracked in self.files.items():
            tracked.restore_state(snapshots.get(path))

        untracked = set(snapshots) - set(self.files)
        if untracked:
            self._logger.debug(f"Ignoring state for {len(untracked)} untracked paths")
