"""Persistent storage of tracked file snapshots.

The state file is a YAML mapping from file path to snapshot record::

    /var/log/messages:
      path: /var/log/messages
      pos: 5120
      stat: {ino: 1311, size: 5120, atime: 1760774400.0, mtime: ..., ctime: ...}

Reads take a shared fcntl lock. Writes go to a temporary file under an
exclusive lock and are atomically renamed over the state file, so a reader
never observes a half-written state.
"""

from __future__ import annotations

import fcntl
import logging
from collections.abc import Mapping
from pathlib import Path

import yaml

from .exceptions import StateLoadError, StateSaveError
from .models import FileSnapshot

logger = logging.getLogger(__name__)


class StateStore:
    """Loads and saves the ``path -> FileSnapshot`` mapping of a session.

    Attributes:
        state_file: Path to the YAML file holding all snapshots.
    """

    def __init__(self, state_file: str | Path):
        self.state_file = Path(state_file)

    def __repr__(self) -> str:
        return f"StateStore({str(self.state_file)!r})"

    def exists(self) -> bool:
        return self.state_file.exists()

    def touch(self) -> None:
        """Create the state file empty if it is missing.

        Raises:
            StateSaveError: If the file cannot be created or opened for writing.
        """
        try:
            with self.state_file.open("a"):
                pass
        except OSError as e:
            raise StateSaveError(str(self.state_file), e.strerror or str(e)) from e
        logger.debug(f"Created state file {self.state_file}")

    def load(self) -> dict[str, FileSnapshot]:
        """Load all snapshots from disk.

        A missing or empty state file yields an empty mapping.

        Raises:
            StateLoadError: If the file cannot be read, is not valid YAML or
                holds a malformed record.
        """
        if not self.state_file.exists():
            logger.info(f"State file {self.state_file} does not exist, starting fresh")
            return {}

        try:
            with self.state_file.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            raise StateLoadError(str(self.state_file), e.strerror or str(e)) from e
        except yaml.YAMLError as e:
            raise StateLoadError(str(self.state_file), f"invalid YAML: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StateLoadError(
                str(self.state_file), f"expected a mapping, got {type(data).__name__}"
            )

        snapshots: dict[str, FileSnapshot] = {}
        for key, record in data.items():
            if not isinstance(key, str):
                raise StateLoadError(str(self.state_file), f"invalid path key {key!r}")
            try:
                snapshots[key] = FileSnapshot.from_dict(record, path=key)
            except ValueError as e:
                raise StateLoadError(str(self.state_file), f"entry {key}: {e}") from e

        logger.info(f"Loaded {len(snapshots)} snapshots from {self.state_file}")
        return snapshots

    def save(self, snapshots: Mapping[str, FileSnapshot]) -> None:
        """Replace the state file with the given snapshots.

        Raises:
            StateSaveError: If the temporary file cannot be written or renamed.
        """
        data = {path: snapshot.to_dict() for path, snapshot in snapshots.items()}
        temp_file = self.state_file.with_name(self.state_file.name + ".tmp")

        try:
            with temp_file.open("w", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
                    f.flush()
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)

            temp_file.replace(self.state_file)
        except (OSError, yaml.YAMLError) as e:
            temp_file.unlink(missing_ok=True)
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            raise StateSaveError(str(self.state_file), reason) from e

        logger.debug(f"Saved {len(data)} snapshots to {self.state_file}")
