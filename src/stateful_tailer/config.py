"""Configuration for the command line tailer.

Settings come from an optional YAML file and are overridden by command line
arguments. Example file::

    files:
      - /var/log/messages
    state_file: /var/db/tailer.state
    include_patterns:
      - 'greyd\\[\\d+\\]:'
    exclude_patterns:
      - '^greylogd'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class TailerConfig:
    """Configuration for a tailing run.

    Attributes:
        files: Paths of the files to tail.
        state_file: Where per-file positions are persisted (required to run).
        include_patterns: Regular expressions a line must match one of, if any.
        exclude_patterns: Regular expressions that drop a matching line.
        skip_unreadable: Leave out unreadable files instead of failing (default: False).
        interval_seconds: Repeat the read pass at this interval; None reads once.
        log_level: Level for the tailer's console logging (default: WARNING).
        log_file: Optional file receiving debug logs, rotated at 10MB.
    """

    files: list[str] = field(default_factory=list)
    state_file: str | None = None
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)
    skip_unreadable: bool = False
    interval_seconds: float | None = None
    log_level: str = "WARNING"
    log_file: str | None = None

    def merge(self, **overrides: Any) -> TailerConfig:
        """Return a copy with every non-None, non-empty override applied."""
        changes = {
            name: value for name, value in overrides.items() if value is not None and value != []
        }
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def validate(self) -> None:
        """Check that the configuration is complete enough to run.

        Raises:
            ConfigError: If no files or no state file are configured, or the
                interval is not positive.
        """
        if not self.state_file:
            raise ConfigError("state_file required")
        if not self.files:
            raise ConfigError("at least one file to tail is required")
        if self.interval_seconds is not None and self.interval_seconds <= 0:
            raise ConfigError(f"interval must be positive, got {self.interval_seconds}")


_LIST_KEYS = ("files", "include_patterns", "exclude_patterns")


def load_config(config_path: str | Path) -> TailerConfig:
    """Load a TailerConfig from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Parsed configuration. Keys absent from the file keep their defaults.

    Raises:
        ConfigError: If the file cannot be read or parsed, is not a mapping,
            or holds unknown keys or values of the wrong type.
    """
    path = Path(config_path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"could not read configuration {path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse configuration YAML {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"configuration {path} must be a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(TailerConfig)}
    unknown = set(data) - known
    if unknown:
        names = ", ".join(sorted(map(str, unknown)))
        raise ConfigError(f"unknown configuration keys in {path}: {names}")

    for key in _LIST_KEYS:
        value = data.get(key)
        if value is None:
            data.pop(key, None)
            continue
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigError(f"{key} in {path} must be a list of strings")

    for key in ("state_file", "log_level", "log_file"):
        if data.get(key) is not None and not isinstance(data[key], str):
            raise ConfigError(f"{key} in {path} must be a string")

    if "skip_unreadable" in data and not isinstance(data["skip_unreadable"], bool):
        raise ConfigError(f"skip_unreadable in {path} must be true or false")

    interval = data.get("interval_seconds")
    if interval is not None and (
        isinstance(interval, bool) or not isinstance(interval, (int, float))
    ):
        raise ConfigError(f"interval_seconds in {path} must be a number")

    logger.debug(f"Loaded configuration from {path}")
    return TailerConfig(**data)
