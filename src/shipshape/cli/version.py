"""shipshape version command - show version information."""

import importlib.metadata
import json
import platform
import sys

import click


def get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return importlib.metadata.version("shipshape")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def version_info() -> dict[str, str]:
    return {
        "version": get_version(),
        "python_version": platform.python_version(),
        "platform": f"{sys.platform}/{platform.machine() or 'unknown'}",
    }


@click.command()
@click.option("--short", is_flag=True, help="Show the version number only")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def version_command(short: bool, as_json: bool) -> None:
    """Show version information."""
    info = version_info()
    if short:
        click.echo(info["version"])
        return
    if as_json:
        click.echo(json.dumps(info, indent=2))
        return
    click.echo(f"shipshape {info['version']}")
    click.echo(f"Python: {info['python_version']}")
    click.echo(f"Platform: {info['platform']}")
