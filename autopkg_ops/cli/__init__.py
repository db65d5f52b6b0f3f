"""CLI interface for AutoPkg Ops.

Modular CLI structure with command groups split by functionality.
"""

import logging

import click
from dotenv import load_dotenv

from autopkg_ops import __version__

# Load environment variables from .env file
load_dotenv(override=True)

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    help="Show the autopkg-ops version and exit.",
)
@click.pass_context
def main(ctx: click.Context, version: bool) -> None:
    """AutoPkg Ops - AutoPkg and Jamf Pro fleet maintenance.

    \b
      autopkg-ops ea check        Report an app's update status (EA script)
      autopkg-ops ea render       Render a per-app EA script
      autopkg-ops cleanup pkgs    Prune old AutoPkg-built packages
      autopkg-ops nightly run     Run the nightly AutoPkg pipeline
      autopkg-ops searches sync   Sync "Needs Update" advanced searches
      autopkg-ops prefs show      Show AutoPkg preferences used here
    """
    if version:
        click.echo(__version__)
        ctx.exit()

    # If no subcommand, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def register_commands() -> None:
    """Register all command groups with the main CLI."""
    from autopkg_ops.cli.cleanup import cleanup
    from autopkg_ops.cli.ea import ea
    from autopkg_ops.cli.nightly import nightly
    from autopkg_ops.cli.prefs import prefs
    from autopkg_ops.cli.searches import searches

    main.add_command(ea)
    main.add_command(cleanup)
    main.add_command(nightly)
    main.add_command(searches)
    main.add_command(prefs)


# Register commands at import time
register_commands()

__all__ = ["main"]
