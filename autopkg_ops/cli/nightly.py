"""Nightly commands - the scheduled AutoPkg run."""

from pathlib import Path

import click

from autopkg_ops.cli.logging import configure_cli_logging
from autopkg_ops.cli.rich_output import make_console


@click.group()
def nightly() -> None:
    """Scheduled AutoPkg runs.

    \b
      autopkg-ops nightly run     Update repos, verify trust, run recipes
    """
    pass


@nightly.command("run")
@click.option(
    "--recipe-list",
    type=click.Path(path_type=Path),
    help="Recipe list file (default: AutoPkgr recipe_list.txt)",
)
@click.option(
    "--log-dir",
    type=click.Path(path_type=Path),
    help="Directory for the run's log files",
)
@click.option(
    "--no-repo-update", is_flag=True, help="Skip `autopkg repo-update all`"
)
@click.option("--no-trust", is_flag=True, help="Skip recipe trust verification")
@click.option(
    "--syslog/--no-syslog",
    default=True,
    show_default=True,
    help="Forward summary lines to the system log",
)
def nightly_run(
    recipe_list: Path | None,
    log_dir: Path | None,
    no_repo_update: bool,
    no_trust: bool,
    syslog: bool,
) -> None:
    """Run every recipe in the recipe list.

    Waits for the network, clears the AutoPkg cache, updates recipe repos,
    verifies recipe trust and runs each trusted recipe with a timeout.
    Exits 1 only when the run could not start.
    """
    from autopkg_ops import settings
    from autopkg_ops.nightly import (
        NetworkUnavailableError,
        NightlyConfig,
        NightlyRun,
        PrerequisiteError,
        RunLog,
    )

    paths = settings.get_paths()
    config = NightlyConfig(
        autopkg_bin=settings.get_autopkg_bin(),
        recipe_list=recipe_list or paths.recipe_list,
        log_dir=log_dir or paths.log_dir,
        cache_dir=paths.cache_dir,
        preferences=paths.preferences,
        check_url=settings.get_network_check_url(),
        dns_server=settings.get_dns_server(),
        max_retries=settings.get_network_max_retries(),
        retry_interval=settings.get_network_retry_interval(),
        repo_timeout=settings.get_repo_timeout(),
        recipe_timeout=settings.get_recipe_timeout(),
        update_repos=settings.get_update_repos() and not no_repo_update,
        trust_recipes=settings.get_trust_recipes() and not no_trust,
    )

    # Console and files are written by RunLog; the logger only feeds syslog
    configure_cli_logging(
        "nightly", console=False, syslog_tag="autopkg" if syslog else None
    )

    run = NightlyRun(config, RunLog(config.log_dir, console=make_console()))
    try:
        run.run()
    except (PrerequisiteError, NetworkUnavailableError):
        raise SystemExit(1) from None
