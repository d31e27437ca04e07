"""Ship Shape CLI - shipshape command."""

from pathlib import Path

import click

from shipshape.cli.discover import discover_command
from shipshape.cli.utils import cli_log_level
from shipshape.cli.version import get_version, version_command
from shipshape.core.logging import configure_logging
from shipshape.core.progress import configure_console


@click.group()
@click.version_option(version=get_version(), prog_name="shipshape")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: <repo>/.shipshape.yml)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    config_path: Path | None,
) -> None:
    """Ship Shape - discover the languages, tools and layout of a repository."""
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["no_color"] = no_color
    ctx.obj["config_path"] = config_path
    configure_console(no_color=no_color)
    configure_logging(level=cli_log_level(verbose, quiet) or "WARNING", colors=not no_color)


cli.add_command(discover_command, name="discover")
cli.add_command(version_command, name="version")


if __name__ == "__main__":
    cli()
