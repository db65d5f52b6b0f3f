"""Cleanup commands - prune AutoPkg build output."""

from pathlib import Path

import click

from autopkg_ops.cli.logging import configure_cli_logging

CLEANER_LOG = "autopkg_pkg_cleaner.log"


@click.group()
def cleanup() -> None:
    """Remove old AutoPkg build output.

    \b
      autopkg-ops cleanup pkgs    Keep the newest packages per app
    """
    pass


@cleanup.command("pkgs")
@click.option(
    "--pkg-dir",
    type=click.Path(path_type=Path),
    help="Directory of AutoPkg_<App>-<version>.pkg files",
)
@click.option("--keep", type=click.IntRange(min=1), help="Versions to keep per app")
@click.option(
    "--tmp-root",
    type=click.Path(path_type=Path),
    help="Directory scanned for jamf_upload* leftovers",
)
@click.option(
    "--trash-dir",
    type=click.Path(path_type=Path),
    help="Trash directory to empty (default: the AutoPkg user's Trash)",
)
@click.option("--no-trash", is_flag=True, help="Leave the Trash alone")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help=f"Log file (default: <log dir>/{CLEANER_LOG})",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def cleanup_pkgs(
    pkg_dir: Path | None,
    keep: int | None,
    tmp_root: Path | None,
    trash_dir: Path | None,
    no_trash: bool,
    log_file: Path | None,
    verbose: bool,
) -> None:
    """Delete all but the newest packages of every application.

    Also removes jamf_upload* folders left in the temp root and empties the
    visible items of the AutoPkg user's Trash.
    """
    from autopkg_ops.cleanup import PackageFolderMissing, clean_packages
    from autopkg_ops.settings import get_keep_versions, get_paths

    paths = get_paths()
    configure_cli_logging(
        "cleanup", log_file=log_file or paths.log_dir / CLEANER_LOG, verbose=verbose
    )
    try:
        clean_packages(
            pkg_dir or paths.pkg_dir,
            keep=keep or get_keep_versions(),
            tmp_root=tmp_root or paths.tmp_root,
            trash_dir=None if no_trash else (trash_dir or paths.trash_dir),
        )
    except PackageFolderMissing:
        raise SystemExit(1) from None
