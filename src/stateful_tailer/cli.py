"""Command line entry point.

Runs one read pass over the configured files and prints every delivered line
to stdout, or keeps running passes at a fixed interval. Intended to be
invoked by an external trigger such as a filesystem notifier or cron.

Environment variables provide defaults that the command line overrides:
    TAILER_CONFIG: Path to a YAML configuration file.
    TAILER_STATE_FILE: Path to the state file.
    TAILER_LOG_LEVEL: Console log level.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import TextIO

from .config import TailerConfig, load_config
from .exceptions import ConfigError, NotReadableError, StateLoadError, StateSaveError
from .logging_manager import setup_logging
from .session import TailSession

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stateful-tailer",
        description="Print lines appended to files since the previous invocation.",
    )
    parser.add_argument("files", nargs="*", help="Files to tail")
    parser.add_argument(
        "-c",
        "--config",
        default=os.getenv("TAILER_CONFIG"),
        help="YAML configuration file (env: TAILER_CONFIG)",
    )
    parser.add_argument(
        "-s",
        "--state-file",
        default=os.getenv("TAILER_STATE_FILE"),
        help="File where read positions are kept (env: TAILER_STATE_FILE)",
    )
    parser.add_argument(
        "-i",
        "--include",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Only print lines matching one of these patterns (repeatable)",
    )
    parser.add_argument(
        "-e",
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Never print lines matching this pattern (repeatable)",
    )
    parser.add_argument(
        "--skip-unreadable",
        action="store_true",
        default=None,
        help="Ignore files that cannot be read instead of failing",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Repeat the read pass every SECONDS until interrupted",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("TAILER_LOG_LEVEL"),
        help="Console log level (default: WARNING, env: TAILER_LOG_LEVEL)",
    )
    parser.add_argument("--log-file", default=None, help="Also write debug logs to this file")
    return parser


def resolve_config(args: argparse.Namespace) -> TailerConfig:
    """Combine the optional configuration file with command line arguments.

    Raises:
        ConfigError: If the result is incomplete or invalid.
    """
    config = load_config(args.config) if args.config else TailerConfig()
    config = config.merge(
        files=args.files,
        state_file=args.state_file,
        include_patterns=args.include,
        exclude_patterns=args.exclude,
        skip_unreadable=args.skip_unreadable,
        interval_seconds=args.interval,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    config.validate()
    return config


def print_lines(lines: list[str], stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    for line in lines:
        print(line, file=out)
    out.flush()


def run(config: TailerConfig, *, sleep=time.sleep, max_passes: int | None = None) -> int:
    """Build a session from ``config`` and run its read passes.

    Args:
        config: Validated configuration.
        sleep: Used between passes when an interval is configured.
        max_passes: Stop after this many passes (interval mode only).

    Returns:
        Process exit code.
    """
    try:
        session = TailSession(
            config.files,
            include_patterns=config.include_patterns,
            exclude_patterns=config.exclude_patterns,
            state_path=config.state_file,
            deliver=print_lines,
            skip_unreadable=config.skip_unreadable,
        )
    except (ConfigError, NotReadableError, StateLoadError) as e:
        print(f"stateful-tailer: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except StateSaveError as e:
        print(f"stateful-tailer: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    with session:
        passes = 0
        try:
            while True:
                session.read()
                passes += 1
                if config.interval_seconds is None:
                    break
                if max_passes is not None and passes >= max_passes:
                    break
                sleep(config.interval_seconds)
        except StateSaveError as e:
            print(f"stateful-tailer: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        except KeyboardInterrupt:
            logger.info(f"Interrupted after {passes} passes")

    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
        setup_logging(config.log_level, config.log_file)
    except ConfigError as e:
        print(f"stateful-tailer: {e}", file=sys.stderr)
        raise SystemExit(EXIT_CONFIG_ERROR) from e
    except OSError as e:
        print(f"stateful-tailer: could not open log file: {e}", file=sys.stderr)
        raise SystemExit(EXIT_CONFIG_ERROR) from e

    exit_code = run(config)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
