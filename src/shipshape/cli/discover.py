"""shipshape discover command - describe a repository."""

from pathlib import Path

import click

from shipshape.cli.utils import load_cli_config
from shipshape.core.errors import ShipShapeError
from shipshape.core.logging import get_logger
from shipshape.core.progress import pluralize, spinner, status
from shipshape.discovery import DiscoveryEngine, DiscoveryOptions, render_json, render_text

log = get_logger("cli.discover")


@click.command()
@click.argument(
    "directory",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "--exclude",
    "excludes",
    multiple=True,
    metavar="PATTERN",
    help="Path segment to exclude (repeatable). Replaces the default list.",
)
@click.option(
    "--include-hidden/--no-include-hidden",
    default=None,
    help="Walk all hidden entries, not only known config dotfiles",
)
@click.option(
    "--timeout",
    "timeout_sec",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Abort discovery after this many seconds",
)
@click.pass_context
def discover_command(
    ctx: click.Context,
    directory: Path,
    as_json: bool,
    excludes: tuple[str, ...],
    include_hidden: bool | None,
    timeout_sec: float | None,
) -> None:
    """Discover languages, tools and workspace layout.

    DIRECTORY is the repository root (default: current directory).

    \b
    Examples:
      shipshape discover .
      shipshape discover /path/to/repo
      shipshape discover --json > repo-context.json
    """
    repo_root = directory.resolve()
    config = load_cli_config(ctx, repo_root)

    options = DiscoveryOptions.from_config(
        config.discovery,
        exclude_patterns=excludes or None,
        include_hidden=include_hidden,
        timeout_sec=timeout_sec,
    )
    engine = DiscoveryEngine(options)

    try:
        with spinner(f"Discovering {repo_root.name or repo_root}", enabled=not as_json):
            repo = engine.discover(repo_root)
    except ShipShapeError as e:
        log.error("discovery_failed", code=e.error_name, path=e.path, message=e.message)
        raise click.ClickException(e.message) from e

    if as_json:
        click.echo(render_json(repo))
        return

    click.echo(render_text(repo))
    if repo.warnings and not ctx.obj.get("quiet"):
        status(f"Completed with {pluralize(len(repo.warnings), 'warning')}", style="warning")
