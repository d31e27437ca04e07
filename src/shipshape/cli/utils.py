"""CLI utilities."""

from pathlib import Path

import click

from shipshape.config import ShipShapeConfig, load_config
from shipshape.core.errors import ConfigError
from shipshape.core.logging import configure_logging


def cli_log_level(verbose: bool, quiet: bool) -> str | None:
    """Level forced by -v/-q, or None to defer to configuration."""
    if verbose:
        return "DEBUG"
    if quiet:
        return "ERROR"
    return None


def load_cli_config(ctx: click.Context, repo_root: Path) -> ShipShapeConfig:
    """Load config for ``repo_root`` and reconfigure logging from it.

    -v/-q given on the command line still win over the configured level.

    Raises:
        click.ClickException: If the config file is missing or invalid
    """
    obj = ctx.ensure_object(dict)
    try:
        config = load_config(repo_root, config_path=obj.get("config_path"))
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    logging_config = config.logging
    forced = cli_log_level(obj.get("verbose", False), obj.get("quiet", False))
    if forced is not None:
        logging_config = logging_config.model_copy(update={"level": forced})
    configure_logging(config=logging_config, colors=not obj.get("no_color", False))
    return config
