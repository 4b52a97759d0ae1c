"""Shared fixtures for tailer tests."""

import logging
from pathlib import Path

import pytest

from stateful_tailer.logging_manager import LOGGER_NAME


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    """Path of a state file that does not exist yet."""
    return tmp_path / "tailer.state"


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    """Create temporary log file with initial content."""
    path = tmp_path / "test.log"
    path.write_text("Line 1\nLine 2\nLine 3\n")
    return path


@pytest.fixture
def empty_log_file(tmp_path: Path) -> Path:
    """Create empty log file."""
    path = tmp_path / "empty.log"
    path.write_text("")
    return path


class Deliveries:
    """Delivery callback that records every batch it receives."""

    def __init__(self) -> None:
        self.batches: list[list[str]] = []

    def __call__(self, lines: list[str]) -> None:
        self.batches.append(list(lines))

    @property
    def lines(self) -> list[str]:
        return [line for batch in self.batches for line in batch]


@pytest.fixture
def deliveries() -> Deliveries:
    return Deliveries()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handler changes made by setup_logging so caplog keeps working."""
    yield
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
