"""Disk cleanup for the AutoPkg build host.

Keeps the package folder to the newest few builds of each application and
removes other leftovers of recipe runs:

1. Old ``AutoPkg_<name>-<version>.pkg`` builds beyond the newest ``keep``
2. ``jamf_upload*`` folders left in the temp root by JamfUploader
3. Visible items in the AutoPkg user's Trash

Running the cleanup again right away deletes nothing further.
"""

import logging
import re
import shutil
from collections import defaultdict
from dataclasses import dataclass, field
from functools import cmp_to_key
from pathlib import Path

from autopkg_ops.core.timestamps import section_timestamp
from autopkg_ops.core.versions import compare_versions

logger = logging.getLogger(__name__)

PKG_PATTERN = re.compile(r"^AutoPkg_(?P<name>.+)-(?P<version>\d+\.\d+\.\d+(?:\.\d+)?)\.pkg$")


class PackageFolderMissing(Exception):
    """Raised when the package folder does not exist."""


@dataclass
class BuiltPackage:
    """One AutoPkg-built installer package."""

    path: Path
    app: str
    version: str


@dataclass
class CleanupReport:
    """What a cleanup run removed."""

    deleted_packages: dict[str, list[Path]] = field(default_factory=dict)
    untouched_apps: list[str] = field(default_factory=list)
    deleted_upload_dirs: list[Path] = field(default_factory=list)
    trash_emptied: bool = False

    @property
    def cleaned_apps(self) -> list[str]:
        return sorted(self.deleted_packages)


def parse_package_name(path: Path) -> BuiltPackage | None:
    """Parse ``AutoPkg_<app>-<version>.pkg``; None for other names."""
    match = PKG_PATTERN.match(path.name)
    if not match:
        return None
    return BuiltPackage(path=path, app=match["name"], version=match["version"])


def discover_packages(pkg_dir: Path) -> dict[str, list[BuiltPackage]]:
    """Group packages directly inside ``pkg_dir`` by application, oldest first."""
    grouped: dict[str, list[BuiltPackage]] = defaultdict(list)
    for path in pkg_dir.glob("AutoPkg_*.pkg"):
        if not path.is_file():
            continue
        package = parse_package_name(path)
        if package is None:
            logger.debug(f"Ignoring unrecognised package name: {path.name}")
            continue
        grouped[package.app].append(package)

    by_version = cmp_to_key(lambda a, b: compare_versions(a.version, b.version))
    return {app: sorted(pkgs, key=by_version) for app, pkgs in sorted(grouped.items())}


def prune_packages(
    pkg_dir: Path, keep: int, report: CleanupReport
) -> CleanupReport:
    """Delete all but the newest ``keep`` packages of each application."""
    grouped = discover_packages(pkg_dir)

    report.untouched_apps = [app for app, pkgs in grouped.items() if len(pkgs) <= keep]
    for app in report.untouched_apps:
        logger.info(f"No old packages to delete for {app}.")
    logger.info("")

    for app, pkgs in grouped.items():
        if len(pkgs) <= keep:
            continue
        logger.info(
            f"Cleaning old packages for {app} (keeping last {keep} of {len(pkgs)})..."
        )
        deleted = []
        for package in pkgs[: len(pkgs) - keep]:
            if package.path.is_file():
                logger.info(f"Deleting: {package.path.name}")
                package.path.unlink()
                deleted.append(package.path)
        report.deleted_packages[app] = deleted
    logger.info("")
    return report


def remove_upload_folders(tmp_root: Path, report: CleanupReport) -> CleanupReport:
    """Delete ``jamf_upload*`` folders directly under ``tmp_root``."""
    logger.info(f"Additionally, cleaning up {tmp_root}/jamf_upload* folders...")
    if tmp_root.is_dir():
        for folder in sorted(tmp_root.glob("jamf_upload*")):
            if folder.is_dir() and not folder.is_symlink():
                logger.info(f"Deleting folder: {folder}")
                shutil.rmtree(folder, ignore_errors=True)
                report.deleted_upload_dirs.append(folder)
            else:
                logger.info(f"Folder not found (skipping): {folder}")
    logger.info("")
    return report


def empty_trash(trash_dir: Path, report: CleanupReport) -> CleanupReport:
    """Remove visible items from the Trash; dot-files are left alone."""
    if not trash_dir.is_dir():
        logger.info(f"No Trash folder found at {trash_dir} (skipping).")
        logger.info("")
        return report

    logger.info(f"Emptying visible files from Trash at: {trash_dir} ...")
    for item in trash_dir.iterdir():
        if item.name.startswith("."):
            continue
        try:
            if item.is_dir() and not item.is_symlink():
                shutil.rmtree(item)
            else:
                item.unlink()
        except OSError as e:
            logger.debug(f"Could not remove {item}: {e}")
    report.trash_emptied = True
    logger.info("Visible Trash items have been emptied.")
    logger.info("")
    return report


def clean_packages(
    pkg_dir: Path,
    keep: int = 2,
    tmp_root: Path = Path("/private/tmp"),
    trash_dir: Path | None = None,
) -> CleanupReport:
    """Run the full cleanup and log a summary.

    Raises:
        PackageFolderMissing: If ``pkg_dir`` does not exist
    """
    logger.info(f"=== AutoPkg PKG Cleaner Started: {section_timestamp()} ===")
    logger.info("")

    if not pkg_dir.is_dir():
        logger.error(f"Error: Folder {pkg_dir} does not exist.")
        raise PackageFolderMissing(str(pkg_dir))

    report = CleanupReport()
    prune_packages(pkg_dir, keep, report)
    remove_upload_folders(tmp_root, report)
    if trash_dir is not None:
        empty_trash(trash_dir, report)

    logger.info("Summary:")
    logger.info(f" - Apps cleaned (old packages deleted): {len(report.cleaned_apps)}")
    logger.info(f" - Apps with no old packages: {len(report.untouched_apps)}")
    logger.info("")
    logger.info(f"=== AutoPkg PKG Cleaner Finished: {section_timestamp()} ===")
    logger.info("")
    return report
