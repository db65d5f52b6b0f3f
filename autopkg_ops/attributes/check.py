"""Extension attribute check: is an application installed and current?

One check runs per EA invocation on a managed Mac:

1. Probe the install location and read the installed version
2. Classify: Not Installed / Unknown Version / Needs Update / Up-to-date
3. Replace the application's status file in the status directory, writing
   a new one only when an update is needed and the installed version is
   known

The caller prints ``<result>STATUS</result>`` for the management agent.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from autopkg_ops.attributes.models import StatusRecord, UpdateStatus
from autopkg_ops.attributes.probes import InstallProbe, ProbeResult
from autopkg_ops.attributes.store import StatusStore
from autopkg_ops.core.versions import version_lt

logger = logging.getLogger(__name__)


@dataclass
class CheckOutcome:
    """Result of one extension attribute check."""

    app_name: str
    latest_version: str
    status: UpdateStatus
    probe: ProbeResult
    status_file: Path | None = None

    @property
    def installed_version(self) -> str | None:
        return self.probe.installed_version

    @property
    def result_tag(self) -> str:
        return f"<result>{self.status}</result>"


def classify(probe: ProbeResult, latest_version: str) -> UpdateStatus:
    """Map a probe result onto an update status."""
    if not probe.installed:
        return UpdateStatus.NOT_INSTALLED
    if not probe.installed_version:
        return UpdateStatus.UNKNOWN_VERSION
    if version_lt(probe.installed_version, latest_version):
        return UpdateStatus.NEEDS_UPDATE
    return UpdateStatus.UP_TO_DATE


def check_extension_attribute(
    app_name: str,
    latest_version: str,
    probe: InstallProbe,
    store: StatusStore,
    root: Path = Path("/"),
) -> CheckOutcome:
    """Run one EA check and update the status directory.

    Args:
        app_name: Application name (recipe NAME)
        latest_version: Newest version known to AutoPkg
        probe: Install-location probe for this kind of software
        store: Status file directory
        root: Filesystem root the probe searches under

    Returns:
        CheckOutcome with the classified status
    """
    latest_version = probe.normalize_latest(latest_version)
    found = probe.probe(app_name, root=root)

    if found.installed:
        logger.info(f"Found {app_name} at {found.path}")
        if not found.installed_version:
            logger.info(f"{app_name} exists but version could not be read from {found.path}")
    else:
        where = ", ".join(str(p) for p in found.searched) or "standard locations"
        logger.info(f"{app_name} not found in {where}")

    status = classify(found, latest_version)
    outcome = CheckOutcome(
        app_name=app_name,
        latest_version=latest_version,
        status=status,
        probe=found,
    )

    logger.info(f"{app_name} installed version: {found.installed_version or 'N/A'}")
    logger.info(f"{app_name} latest version: {latest_version}")
    logger.info(f"{app_name} status: {status}")

    deleted = store.clear(app_name)
    if deleted:
        logger.info(f"Removing old JSON files for {app_name}...")
        for path in deleted:
            logger.info(f"Deleted: {path}")
    else:
        logger.info(f"No old JSON files found for {app_name}.")

    if status is UpdateStatus.NEEDS_UPDATE and found.installed_version:
        record = StatusRecord.needs_update(
            app_name, found.installed_version, latest_version
        )
        outcome.status_file = store.write(record)
        logger.info(f"JSON file created: {outcome.status_file}")
    else:
        logger.info(
            f"Status is '{status}' or installed version unknown. "
            "Skipping JSON creation."
        )

    return outcome
