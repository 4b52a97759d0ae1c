"""Tests for the command line entry point."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

from stateful_tailer.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    EXIT_RUNTIME_ERROR,
    build_parser,
    main,
    resolve_config,
    run,
)
from stateful_tailer.config import TailerConfig
from stateful_tailer.exceptions import ConfigError, StateSaveError
from stateful_tailer.state_store import StateStore


class TestArguments:
    """Tests for argument parsing and config resolution."""

    def test_parse_arguments(self) -> None:
        """Test that repeatable patterns are collected in order."""
        args = build_parser().parse_args(
            ["-s", "/s", "-i", "a", "-i", "b", "-e", "c", "--interval", "2", "/x.log"]
        )

        assert args.files == ["/x.log"]
        assert args.state_file == "/s"
        assert args.include == ["a", "b"]
        assert args.exclude == ["c"]
        assert args.interval == 2.0
        assert args.skip_unreadable is None

    def test_state_file_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that TAILER_STATE_FILE provides the default state file."""
        monkeypatch.setenv("TAILER_STATE_FILE", "/env/tailer.state")

        args = build_parser().parse_args(["/x.log"])

        assert args.state_file == "/env/tailer.state"

    def test_command_line_overrides_config_file(self, tmp_path: Path) -> None:
        """Test that arguments win over the configuration file."""
        config_path = tmp_path / "tailer.yaml"
        config_path.write_text(
            yaml.safe_dump(
                {
                    "files": ["/from-config.log"],
                    "state_file": "/config.state",
                    "exclude_patterns": ["^debug"],
                }
            )
        )
        args = build_parser().parse_args(["-c", str(config_path), "-s", "/cli.state"])

        config = resolve_config(args)

        assert config.files == ["/from-config.log"]
        assert config.state_file == "/cli.state"
        assert config.exclude_patterns == ["^debug"]

    def test_incomplete_configuration(self) -> None:
        """Test that running without a state file is rejected."""
        args = build_parser().parse_args(["/x.log"])

        with pytest.raises(ConfigError):
            resolve_config(args)


class TestRun:
    """Tests for running read passes."""

    def test_single_pass(
        self, log_file: Path, state_file: Path, capsys: pytest.CaptureFixture
    ) -> None:
        """Test that delivered lines are printed and state is saved."""
        config = TailerConfig(files=[str(log_file)], state_file=str(state_file))

        assert run(config) == EXIT_OK

        assert capsys.readouterr().out == "Line 1\nLine 2\nLine 3\n"
        assert StateStore(state_file).load()[str(log_file)].position == log_file.stat().st_size

    def test_second_invocation_prints_only_new_lines(
        self, log_file: Path, state_file: Path, capsys: pytest.CaptureFixture
    ) -> None:
        """Test that state carries over between invocations."""
        config = TailerConfig(
            files=[str(log_file)], state_file=str(state_file), exclude_patterns=["^noise"]
        )
        run(config)
        capsys.readouterr()

        with log_file.open("a") as f:
            f.write("noise here\nLine 4\n")
        run(config)

        assert capsys.readouterr().out == "Line 4\n"

    def test_interval_passes(self, log_file: Path, state_file: Path) -> None:
        """Test that interval mode sleeps between passes."""
        sleep = MagicMock()
        config = TailerConfig(
            files=[str(log_file)], state_file=str(state_file), interval_seconds=0.5
        )

        assert run(config, sleep=sleep, max_passes=3) == EXIT_OK

        assert sleep.call_count == 2
        sleep.assert_called_with(0.5)

    def test_interrupt_stops_cleanly(self, log_file: Path, state_file: Path) -> None:
        """Test that Ctrl-C in interval mode exits successfully."""
        sleep = MagicMock(side_effect=KeyboardInterrupt)
        config = TailerConfig(files=[str(log_file)], state_file=str(state_file), interval_seconds=1)

        assert run(config, sleep=sleep) == EXIT_OK

    def test_unreadable_file(
        self, tmp_path: Path, state_file: Path, capsys: pytest.CaptureFixture
    ) -> None:
        """Test that an unreadable file is a configuration error."""
        config = TailerConfig(files=[str(tmp_path / "missing.log")], state_file=str(state_file))

        assert run(config) == EXIT_CONFIG_ERROR
        assert "missing.log" in capsys.readouterr().err

    def test_skip_unreadable_file(
        self, log_file: Path, tmp_path: Path, state_file: Path, capsys: pytest.CaptureFixture
    ) -> None:
        """Test that unreadable files can be skipped."""
        config = TailerConfig(
            files=[str(tmp_path / "missing.log"), str(log_file)],
            state_file=str(state_file),
            skip_unreadable=True,
        )

        assert run(config) == EXIT_OK
        assert capsys.readouterr().out == "Line 1\nLine 2\nLine 3\n"

    def test_corrupt_state(
        self, log_file: Path, state_file: Path, capsys: pytest.CaptureFixture
    ) -> None:
        """Test that a corrupt state file is reported as a configuration error."""
        state_file.write_text("- not\n- a mapping\n")
        config = TailerConfig(files=[str(log_file)], state_file=str(state_file))

        assert run(config) == EXIT_CONFIG_ERROR
        assert "could not load state" in capsys.readouterr().err

    def test_save_failure(
        self, log_file: Path, state_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a failed save is a runtime error."""

        def failing_save(self, snapshots):
            raise StateSaveError(str(self.state_file), "read-only file system")

        monkeypatch.setattr(StateStore, "save", failing_save)
        config = TailerConfig(files=[str(log_file)], state_file=str(state_file))

        assert run(config) == EXIT_RUNTIME_ERROR


class TestMain:
    """Tests for the process entry point."""

    def test_main_success(
        self, log_file: Path, state_file: Path, capsys: pytest.CaptureFixture
    ) -> None:
        """Test a full invocation from arguments to output."""
        main(["--state-file", str(state_file), "-i", "2$", str(log_file)])

        assert capsys.readouterr().out == "Line 2\n"

    def test_main_config_error(self, log_file: Path, capsys: pytest.CaptureFixture) -> None:
        """Test that a missing state file exits with status 2."""
        with pytest.raises(SystemExit) as exc_info:
            main([str(log_file)])

        assert exc_info.value.code == EXIT_CONFIG_ERROR
        assert "state_file required" in capsys.readouterr().err

    def test_main_bad_log_level(self, log_file: Path, state_file: Path) -> None:
        """Test that an unknown log level exits with status 2."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-s", str(state_file), "--log-level", "chatty", str(log_file)])

        assert exc_info.value.code == EXIT_CONFIG_ERROR

    def test_main_unreadable_file_exit_code(self, tmp_path: Path, state_file: Path) -> None:
        """Test that run failures become the process exit status."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-s", str(state_file), str(tmp_path / "missing.log")])

        assert exc_info.value.code == EXIT_CONFIG_ERROR
