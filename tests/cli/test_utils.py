"""Tests for CLI utilities.

Covers:
- cli_log_level() flag mapping
- load_cli_config() error conversion and -v/-q precedence
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
import pytest

from shipshape.cli.utils import cli_log_level, load_cli_config


def make_ctx(**obj: object) -> click.Context:
    ctx = click.Context(click.Command("test"))
    ctx.obj = dict(obj)
    return ctx


class TestCliLogLevel:
    """Tests for cli_log_level function."""

    @pytest.mark.parametrize(
        ("verbose", "quiet", "expected"),
        [(True, False, "DEBUG"), (False, True, "ERROR"), (False, False, None)],
    )
    def test_flags(self, verbose: bool, quiet: bool, expected: str | None) -> None:
        assert cli_log_level(verbose, quiet) == expected


class TestLoadCliConfig:
    """Tests for load_cli_config function."""

    def test_reads_repo_config(self, tmp_path: Path) -> None:
        (tmp_path / ".shipshape.yml").write_text("discovery:\n  timeout_sec: 3\n")
        config = load_cli_config(make_ctx(), tmp_path)
        assert config.discovery.timeout_sec == 3.0

    def test_config_error_becomes_click_exception(self, tmp_path: Path) -> None:
        (tmp_path / ".shipshape.yml").write_text("discovery: [broken\n")
        with pytest.raises(click.ClickException) as exc_info:
            load_cli_config(make_ctx(), tmp_path)
        assert "Cannot parse config file" in exc_info.value.message

    def test_verbose_flag_wins_over_configured_level(self, tmp_path: Path) -> None:
        """The returned config keeps its own level; only logging is forced."""
        (tmp_path / ".shipshape.yml").write_text("logging:\n  level: ERROR\n")
        config = load_cli_config(make_ctx(verbose=True), tmp_path)
        assert config.logging.level == "ERROR"
        assert logging.getLogger().level == logging.DEBUG
