"""Nightly AutoPkg run.

A fixed pipeline, each step under its own section header:

    preconditions → network check → Jamf upload check → cache cleanup
    → repo updates → trust verification → recipe run → summary

A recipe that fails, times out or is untrusted is recorded and the run moves
on to the next one. Only missing preconditions and an unreachable network
stop the run.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from autopkg_ops.core.timestamps import section_timestamp
from autopkg_ops.nightly.autopkg import AutoPkg, RepoUpdateResult
from autopkg_ops.nightly.network import (
    NetworkUnavailableError,
    dns_lookup,
    primary_ipv4,
    wait_for_network,
)
from autopkg_ops.nightly.reporting import (
    CODESIGN_PREFIX,
    GREEN,
    HEADER,
    RED,
    YELLOW,
    RunLog,
)
from autopkg_ops.preferences import PreferencesError, get_jss_url

logger = logging.getLogger(__name__)


class PrerequisiteError(Exception):
    """Raised when the run cannot start (root user, missing AutoPkg, no recipes)."""


@dataclass
class NightlyConfig:
    """Everything the nightly run needs to know."""

    autopkg_bin: Path
    recipe_list: Path
    log_dir: Path
    cache_dir: Path
    preferences: Path
    check_url: str = "https://www.google.com"
    dns_server: str = "8.8.8.8"
    max_retries: int = 30
    retry_interval: int = 10
    repo_timeout: int = 300
    recipe_timeout: int = 600
    update_repos: bool = True
    trust_recipes: bool = True


@dataclass
class NightlyReport:
    """Recipes and repositories grouped by outcome."""

    total_recipes: int = 0
    trusted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    timed_out: list[str] = field(default_factory=list)
    repos: RepoUpdateResult | None = None

    @property
    def repos_ok(self) -> bool:
        return self.repos is None or self.repos.all_ok

    @property
    def recipes_ok(self) -> bool:
        return not self.failed and not self.timed_out


def read_recipe_list(path: Path) -> list[str]:
    """Non-blank, stripped recipe identifiers in file order."""
    return [line.strip() for line in path.read_text().splitlines() if line.strip()]


class NightlyRun:
    """One nightly run; call :meth:`run` once."""

    def __init__(
        self,
        config: NightlyConfig,
        log: RunLog,
        autopkg: AutoPkg | None = None,
        network_client=None,
        sleep=None,
    ):
        self.config = config
        self.log = log
        self.autopkg = autopkg or AutoPkg(
            config.autopkg_bin, config.repo_timeout, config.recipe_timeout
        )
        self.report = NightlyReport()
        self._network_client = network_client
        self._sleep = sleep

    def _report_kill(self, timeout: int) -> None:
        self.log.message(f"Process timed out after {timeout} seconds. Killing...", RED)

    # ─── Steps ─────────────────────────────────────────────────────────────

    def check_prereqs(self) -> None:
        """Refuse to run as root or without AutoPkg and a recipe list."""
        cfg = self.config
        if os.geteuid() == 0:
            problem, style = "Do NOT run this script as root.", RED
        elif not (cfg.autopkg_bin.is_file() and os.access(cfg.autopkg_bin, os.X_OK)):
            problem, style = "AutoPkg not installed.", RED
        elif not (cfg.recipe_list.is_file() and os.access(cfg.recipe_list, os.R_OK)):
            problem, style = "Recipe list missing.", RED
        elif cfg.recipe_list.stat().st_size == 0:
            problem, style = "Recipe list is empty.", YELLOW
        else:
            return
        self.log.message(problem, style)
        raise PrerequisiteError(problem)

    def check_network(self) -> None:
        cfg = self.config
        self.log.message("Checking network connectivity...")

        def waiting(elapsed: int) -> None:
            self.log.message(f"⏳ Waiting for network… ({elapsed} seconds elapsed)", YELLOW)

        kwargs = {}
        if self._network_client is not None:
            kwargs["client"] = self._network_client
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        try:
            elapsed = wait_for_network(
                cfg.check_url, cfg.max_retries, cfg.retry_interval, on_wait=waiting, **kwargs
            )
        except NetworkUnavailableError as e:
            self.log.message(
                f"❌ Network did not become available after {e.elapsed} seconds. Exiting.",
                RED,
            )
            raise

        self.log.message(f"✅ Network is up after {elapsed} seconds.", GREEN)
        host = cfg.check_url.split("://", 1)[-1].split("/", 1)[0]
        self.log.message(f"IP Address: {primary_ipv4() or ''}", GREEN)
        self.log.message(f"DNS Test: {dns_lookup(host, cfg.dns_server) or ''}", GREEN)

    def check_jamf_upload(self) -> None:
        try:
            jss_url = get_jss_url(self.config.preferences)
        except PreferencesError as e:
            logger.warning(str(e))
            jss_url = None
        if jss_url:
            self.log.message(
                f"Jamf Upload is enabled. Jamf Pro server URL: {jss_url}", GREEN
            )
        else:
            self.log.message(
                "Jamf Upload not configured. Recipes will run locally only.", YELLOW
            )

    def clear_cache(self) -> None:
        cache_dir = self.config.cache_dir
        if cache_dir.is_dir() and any(cache_dir.iterdir()):
            for item in cache_dir.iterdir():
                if item.is_dir() and not item.is_symlink():
                    shutil.rmtree(item, ignore_errors=True)
                else:
                    item.unlink(missing_ok=True)
            self.log.message(f"🧹 Cleared AutoPkg cache: {cache_dir}", GREEN)
        else:
            self.log.message(f"ℹ AutoPkg cache empty or missing: {cache_dir}", YELLOW)

    def update_repos(self) -> None:
        if not self.config.update_repos:
            return
        self.log.message("Starting AutoPkg repo updates...", HEADER)
        repos = self.autopkg.repo_update()
        self.report.repos = repos
        self.log.append_verbose(repos.command.output.rstrip("\n"))

        if repos.command.timed_out:
            self._report_kill(self.config.repo_timeout)
            self.log.message("❌ Repo update timed out.", RED)
        if not repos.parsed:
            self.log.message("⚠ Could not parse repo-update output, skipping detailed repo parsing.", YELLOW)
            if not repos.command.ok:
                self.log.message("❌ Repo update may have failed.", YELLOW)
        elif repos.failed:
            self.log.message(f"❌ Repo update errors: {' '.join(repos.failed)}", YELLOW)

        self.log.print_list("Updated Repos:", repos.updated, GREEN)
        self.log.print_list("Already Up To Date Repos:", repos.up_to_date, YELLOW)
        self.log.print_list("Failed Repos:", repos.failed, RED)
        self.log.print_list("Timed Out Repos:", repos.timed_out, RED)

    def verify_trust(self, recipes: list[str]) -> None:
        if not recipes:
            self.log.message("Recipe list missing/empty. No recipes to process.", YELLOW)
            return
        for recipe in recipes:
            if not self.config.trust_recipes:
                self.report.trusted.append(recipe)
                continue
            result = self.autopkg.update_trust_info(recipe)
            if result.timed_out:
                self._report_kill(self.config.recipe_timeout)
            if result.output:
                self.log.append_daily(result.output.rstrip("\n"))
            if result.ok:
                self.report.trusted.append(recipe)
            else:
                self.report.skipped.append(recipe)
                self.log.message(f"Skipping untrusted recipe: {recipe}", YELLOW)
        self.log.message(f"Total trusted recipes: {len(self.report.trusted)}", GREEN)
        self.log.message(
            f"Total skipped recipes due to trust issues: {len(self.report.skipped)}",
            YELLOW,
        )

    def run_recipes(self) -> None:
        trusted = self.report.trusted
        if not trusted:
            self.log.message("No trusted recipes to run.", YELLOW)
            return

        self.log.append_codesign(
            f"=== CodeSignatureVerifier Started: {section_timestamp()} ==="
        )
        for count, recipe in enumerate(trusted, start=1):
            self.log.message(f"{section_timestamp()} Running recipe: {recipe}")
            result = self.autopkg.run_recipe(recipe)

            for line in result.lines:
                self.log.append_verbose(line)
                if line.startswith(CODESIGN_PREFIX):
                    self.log.append_daily(line)
                    self.log.append_codesign(line)

            finished = section_timestamp()
            if result.timed_out:
                self._report_kill(self.config.recipe_timeout)
                self.report.timed_out.append(recipe)
                self.log.message(f"{finished} Recipe timed out: {recipe}", RED)
            elif result.returncode != 0:
                self.report.failed.append(recipe)
                self.log.message(f"{finished} Recipe failed: {recipe}", RED)
            else:
                self.report.completed.append(recipe)
                self.log.message(f"{finished} Recipe completed: {recipe}", GREEN)

            if count < len(trusted):
                self.log.append_daily("")

        self.log.append_codesign("")
        self.log.append_codesign(
            f"=== CodeSignatureVerifier Finished: {section_timestamp()} ==="
        )

    def summarize(self) -> None:
        r = self.report
        self.log.message(f"Total recipes in list: {r.total_recipes}")
        self.log.message(f"Trusted recipes run: {len(r.trusted)}", GREEN)
        self.log.message(f"Skipped due to trust issues: {len(r.skipped)}", YELLOW)
        self.log.message(f"Failed recipes: {len(r.failed)}", RED)
        self.log.message(f"Timed out recipes: {len(r.timed_out)}", RED)

        if r.repos_ok:
            self.log.message("✅ All repositories updated successfully.", GREEN)
        else:
            self.log.message(
                "❌ Some repositories failed or timed out. Check above details.", RED
            )
        if r.recipes_ok:
            self.log.message("✅ All recipes completed successfully.", GREEN)
        else:
            self.log.message(
                "❌ Some recipes failed or timed out. Check above details.", RED
            )

    # ─── Pipeline ──────────────────────────────────────────────────────────

    def run(self) -> NightlyReport:
        """Run every step in order.

        Raises:
            PrerequisiteError: If preconditions are not met
            NetworkUnavailableError: If the network never came up
        """
        self.log.reset()
        self.check_prereqs()
        recipes = read_recipe_list(self.config.recipe_list)
        self.report.total_recipes = len(recipes)

        self.log.section("AutoPkg Nightly Run Started")
        self.log.section("Network Check")
        self.check_network()
        self.log.section("Jamf Upload Check")
        self.check_jamf_upload()
        self.log.section("AutoPkg Cache Cleanup")
        self.clear_cache()
        self.log.section("Repo Updates")
        self.update_repos()
        self.log.section("Recipe Trust Verification")
        self.verify_trust(recipes)
        self.log.section("Recipe Run")
        self.run_recipes()
        self.log.section("Final Summary")
        self.summarize()
        self.log.section("AutoPkg Nightly Run Finished")

        self.log.write_last_run()
        return self.report
