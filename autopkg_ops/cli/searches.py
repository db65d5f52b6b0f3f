"""Advanced search commands - Jamf Pro "Needs Update" smart reporting."""

import logging
from pathlib import Path

import click

from autopkg_ops.cli.logging import configure_cli_logging

logger = logging.getLogger(__name__)

SEARCH_LOG = "jamf_advanced_search_api.log"
NAMES_FILE = "application_names.txt"


@click.group()
def searches() -> None:
    """Jamf Pro advanced computer searches.

    \b
      autopkg-ops searches sync   Create or update one search per app
    """
    pass


@searches.command("sync")
@click.option(
    "--recipe-dir",
    type=click.Path(path_type=Path),
    help="Directory scanned for .jamf.recipe files",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    help=f"Validated application names (default: <pkg dir>/{NAMES_FILE})",
)
@click.option(
    "--preferences",
    type=click.Path(path_type=Path),
    help="AutoPkg preferences plist holding JSS_URL and API credentials",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help=f"Log file (default: <log dir>/{SEARCH_LOG})",
)
@click.option("-v", "--verbose", is_flag=True, help="Show HTTP debug output")
def searches_sync(
    recipe_dir: Path | None,
    output: Path | None,
    preferences: Path | None,
    log_file: Path | None,
    verbose: bool,
) -> None:
    """Create or update an advanced search for every Jamf recipe app.

    Only applications whose update-status extension attribute exists in
    Jamf Pro get a search.
    """
    from autopkg_ops.jamf import (
        JamfAuthError,
        JamfClient,
        JamfRequestError,
        sync_searches,
    )
    from autopkg_ops.preferences import JamfCredentials, PreferencesError
    from autopkg_ops.settings import get_paths

    paths = get_paths()
    configure_cli_logging(
        "searches", log_file=log_file or paths.log_dir / SEARCH_LOG, verbose=verbose
    )

    try:
        credentials = JamfCredentials.from_preferences(preferences or paths.preferences)
    except PreferencesError as e:
        logger.error(str(e))
        raise SystemExit(1) from None
    if not credentials.complete:
        logger.error(
            "JSS_URL, API_CLIENT_ID and API_CLIENT_SECRET must be set in "
            f"{preferences or paths.preferences}"
        )
        raise SystemExit(1)

    with JamfClient(
        credentials.url, credentials.client_id, credentials.client_secret
    ) as client:
        try:
            sync_searches(
                recipe_dir or paths.recipe_dir,
                output or paths.pkg_dir / NAMES_FILE,
                client,
            )
        except (JamfAuthError, JamfRequestError):
            raise SystemExit(1) from None
