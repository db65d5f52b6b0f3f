"""
Nightly AutoPkg run.

Key functions:
- NightlyRun: the fixed preconditions → network → repos → trust → run pipeline
- AutoPkg: repo-update / update-trust-info / run wrapper with deadlines
- RunLog: daily, verbose, codesign and last-run log files
- wait_for_network(): bounded readiness polling
"""

from autopkg_ops.nightly.autopkg import AutoPkg, RepoUpdateResult, parse_repo_update
from autopkg_ops.nightly.network import NetworkUnavailableError, wait_for_network
from autopkg_ops.nightly.orchestrator import (
    NightlyConfig,
    NightlyReport,
    NightlyRun,
    PrerequisiteError,
    read_recipe_list,
)
from autopkg_ops.nightly.reporting import RunLog, filter_last_run

__all__ = [
    "AutoPkg",
    "NetworkUnavailableError",
    "NightlyConfig",
    "NightlyReport",
    "NightlyRun",
    "PrerequisiteError",
    "RepoUpdateResult",
    "RunLog",
    "filter_last_run",
    "parse_repo_update",
    "read_recipe_list",
    "wait_for_network",
]
