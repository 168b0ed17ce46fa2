"""Unit tests for CLI argument parsing."""
from __future__ import annotations

import pytest

from watcher.cli import build_parser


class TestBuildParser:
    @pytest.mark.parametrize("command", ["run", "scan", "arbitrage", "check"])
    def test_commands(self, command: str) -> None:
        parser = build_parser()
        args = parser.parse_args([command])
        assert args.command == command

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "run"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "scan"])
        assert args.log_level == "DEBUG"

    def test_defaults(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["run"])
        assert args.config is None
        assert args.log_level == "INFO"

    def test_unknown_command_exits(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["report"])

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None
