"""Thin wrapper around the ``autopkg`` command-line tool.

Only the three subcommands the nightly run needs are wrapped:

- ``autopkg repo-update all --json``
- ``autopkg update-trust-info <recipe>``
- ``autopkg run -v <recipe>``
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from autopkg_ops.executor import CommandResult, run_with_timeout

logger = logging.getLogger(__name__)

ALL_REPOS = "all_repos"


@dataclass
class RepoUpdateResult:
    """Repositories grouped by the outcome reported by repo-update."""

    command: CommandResult
    parsed: bool = False
    updated: list[str] = field(default_factory=list)
    up_to_date: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    timed_out: list[str] = field(default_factory=list)

    @property
    def all_ok(self) -> bool:
        return not self.failed and not self.timed_out


def _extract_json_array(output: str) -> list | None:
    """Find the JSON array in repo-update output, which may carry log lines."""
    try:
        data = json.loads(output)
    except ValueError:
        start, end = output.find("["), output.rfind("]")
        if start == -1 or end <= start:
            return None
        try:
            data = json.loads(output[start : end + 1])
        except ValueError:
            return None
    return data if isinstance(data, list) else None


def parse_repo_update(command: CommandResult) -> RepoUpdateResult:
    """Classify repositories from ``repo-update --json`` output.

    Status values are ``updated``, ``up-to-date``, ``error`` and ``failed``.
    A timed-out command is reported as a single ``all_repos`` entry.
    """
    result = RepoUpdateResult(command=command)
    if command.timed_out:
        result.timed_out.append(ALL_REPOS)

    entries = _extract_json_array(command.output)
    if entries is None:
        return result

    result.parsed = True
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("repo_name", "")).strip()
        if not name:
            continue
        status = entry.get("status")
        if status == "updated":
            result.updated.append(name)
        elif status == "up-to-date":
            result.up_to_date.append(name)
        elif status in ("error", "failed"):
            result.failed.append(name)
    return result


class AutoPkg:
    """Runs AutoPkg subcommands under deadlines."""

    def __init__(self, binary: Path, repo_timeout: int = 300, recipe_timeout: int = 600):
        self.binary = Path(binary)
        self.repo_timeout = repo_timeout
        self.recipe_timeout = recipe_timeout

    def _cmd(self, *args: str) -> list[str]:
        return [str(self.binary), *args]

    def repo_update(self) -> RepoUpdateResult:
        command = run_with_timeout(
            self._cmd("repo-update", "all", "--json"), self.repo_timeout
        )
        return parse_repo_update(command)

    def update_trust_info(self, recipe: str) -> CommandResult:
        return run_with_timeout(
            self._cmd("update-trust-info", recipe), self.recipe_timeout
        )

    def run_recipe(self, recipe: str) -> CommandResult:
        return run_with_timeout(self._cmd("run", "-v", recipe), self.recipe_timeout)
