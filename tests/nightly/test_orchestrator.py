"""Tests for the nightly run pipeline.

AutoPkg is replaced by a fake and the network by an httpx MockTransport.
"""

import io
import json
import plistlib

import httpx
import pytest
from rich.console import Console

from autopkg_ops.executor import TIMEOUT_EXIT_CODE, CommandResult
from autopkg_ops.nightly import (
    NetworkUnavailableError,
    NightlyConfig,
    NightlyRun,
    PrerequisiteError,
    RunLog,
    parse_repo_update,
)


class FakeAutoPkg:
    """Records calls and answers with canned results."""

    def __init__(self, untrusted=(), failing=(), timing_out=()):
        self.untrusted = set(untrusted)
        self.failing = set(failing)
        self.timing_out = set(timing_out)
        self.calls: list[tuple[str, str]] = []

    def repo_update(self):
        self.calls.append(("repo-update", "all"))
        output = json.dumps(
            [
                {"repo_name": "recipes", "status": "updated"},
                {"repo_name": "homebysix-recipes", "status": "up-to-date"},
            ]
        )
        return parse_repo_update(CommandResult(["autopkg"], 0, output))

    def update_trust_info(self, recipe):
        self.calls.append(("update-trust-info", recipe))
        if recipe in self.untrusted:
            return CommandResult(["autopkg"], 1, "Recipe trust verification failed\n")
        return CommandResult(["autopkg"], 0, "")

    def run_recipe(self, recipe):
        self.calls.append(("run", recipe))
        output = (
            f"Processing {recipe}...\n"
            f"CodeSignatureVerifier: Signature is valid for {recipe}\n"
            "Receipt written\n"
        )
        if recipe in self.timing_out:
            return CommandResult(["autopkg"], TIMEOUT_EXIT_CODE, output, timed_out=True)
        if recipe in self.failing:
            return CommandResult(["autopkg"], 1, output)
        return CommandResult(["autopkg"], 0, output)


@pytest.fixture(autouse=True)
def not_root(monkeypatch):
    monkeypatch.setattr("autopkg_ops.nightly.orchestrator.os.geteuid", lambda: 501)
    monkeypatch.setattr("autopkg_ops.nightly.orchestrator.primary_ipv4", lambda: "10.0.0.5")
    monkeypatch.setattr(
        "autopkg_ops.nightly.orchestrator.dns_lookup", lambda host, server: "142.250.80.36"
    )


@pytest.fixture
def config(tmp_path):
    autopkg_bin = tmp_path / "autopkg"
    autopkg_bin.write_text("#!/bin/sh\n")
    autopkg_bin.chmod(0o755)

    recipe_list = tmp_path / "recipe_list.txt"
    recipe_list.write_text("Firefox.jamf\n\nZoom.jamf\nSlack.jamf\n")

    cache_dir = tmp_path / "Cache"
    (cache_dir / "com.github.autopkg.jamf.Firefox").mkdir(parents=True)
    (cache_dir / "leftover.dmg").write_text("")

    preferences = tmp_path / "com.github.autopkg.plist"
    with preferences.open("wb") as f:
        plistlib.dump({"JSS_URL": "https://example.jamfcloud.com"}, f)

    return NightlyConfig(
        autopkg_bin=autopkg_bin,
        recipe_list=recipe_list,
        log_dir=tmp_path / "logs",
        cache_dir=cache_dir,
        preferences=preferences,
        max_retries=3,
        retry_interval=1,
    )


def make_run(config, autopkg=None, handler=None) -> NightlyRun:
    handler = handler or (lambda request: httpx.Response(200))
    console = Console(file=io.StringIO(), no_color=True, width=200)
    return NightlyRun(
        config,
        RunLog(config.log_dir, console=console),
        autopkg=autopkg or FakeAutoPkg(),
        network_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=lambda seconds: None,
    )


class TestNightlyRun:
    def test_all_recipes_complete(self, config):
        run = make_run(config)

        report = run.run()

        assert report.total_recipes == 3
        assert report.completed == ["Firefox.jamf", "Zoom.jamf", "Slack.jamf"]
        assert report.repos.updated == ["recipes"]
        assert report.repos_ok and report.recipes_ok

    def test_outcomes_partitioned(self, config):
        autopkg = FakeAutoPkg(
            untrusted={"Firefox.jamf"}, failing={"Zoom.jamf"}, timing_out={"Slack.jamf"}
        )
        report = make_run(config, autopkg).run()

        assert report.skipped == ["Firefox.jamf"]
        assert report.trusted == ["Zoom.jamf", "Slack.jamf"]
        assert report.failed == ["Zoom.jamf"]
        assert report.timed_out == ["Slack.jamf"]
        assert report.completed == []
        assert ("run", "Firefox.jamf") not in autopkg.calls
        assert not report.recipes_ok

    def test_timeout_kill_reported(self, config):
        config.recipe_timeout = 45
        make_run(config, FakeAutoPkg(timing_out={"Slack.jamf"})).run()

        kill_line = "Process timed out after 45 seconds. Killing..."
        daily = (config.log_dir / "autopkg_daily_run.log").read_text()
        verbose = (config.log_dir / "autopkg_daily_run_verbose.log").read_text()
        assert daily.count(kill_line) == 1
        assert kill_line in verbose
        assert daily.index(kill_line) < daily.index("Recipe timed out: Slack.jamf")

    def test_sections_in_order(self, config):
        make_run(config).run()

        daily = (config.log_dir / "autopkg_daily_run.log").read_text()
        headers = [line for line in daily.splitlines() if line.startswith("=== ")]
        titles = [h[4:].split(":")[0] for h in headers]
        assert titles == [
            "AutoPkg Nightly Run Started",
            "Network Check",
            "Jamf Upload Check",
            "AutoPkg Cache Cleanup",
            "Repo Updates",
            "Recipe Trust Verification",
            "Recipe Run",
            "Final Summary",
            "AutoPkg Nightly Run Finished",
        ]

    def test_log_files(self, config):
        make_run(config).run()
        logs = config.log_dir

        verbose = (logs / "autopkg_daily_run_verbose.log").read_text()
        assert "Receipt written" in verbose

        codesign = (logs / "autopkg_codesign_extract.log").read_text().splitlines()
        assert codesign[0].startswith("=== CodeSignatureVerifier Started: ")
        assert "CodeSignatureVerifier: Signature is valid for Zoom.jamf" in codesign
        assert codesign[-1].startswith("=== CodeSignatureVerifier Finished: ")

        last_run = (logs / "autopkg_last_daily_run.log").read_text()
        assert "Recipe completed: Zoom.jamf" in last_run
        assert "CodeSignatureVerifier" not in last_run
        assert "=== Repo Updates: " not in last_run
        assert "\n\n\n" not in last_run

    def test_cache_cleared(self, config):
        make_run(config).run()
        assert list(config.cache_dir.iterdir()) == []

    def test_jamf_upload_reported(self, config):
        make_run(config).run()
        daily = (config.log_dir / "autopkg_daily_run.log").read_text()
        assert "Jamf Pro server URL: https://example.jamfcloud.com" in daily

    def test_skip_repo_update_and_trust(self, config):
        config.update_repos = False
        config.trust_recipes = False
        autopkg = FakeAutoPkg(untrusted={"Firefox.jamf"})

        report = make_run(config, autopkg).run()

        assert report.repos is None
        assert report.completed == ["Firefox.jamf", "Zoom.jamf", "Slack.jamf"]
        assert all(call[0] == "run" for call in autopkg.calls)


class TestPreconditions:
    def test_refuses_root(self, config, monkeypatch):
        monkeypatch.setattr("autopkg_ops.nightly.orchestrator.os.geteuid", lambda: 0)
        with pytest.raises(PrerequisiteError, match="root"):
            make_run(config).run()

    def test_missing_autopkg(self, config):
        config.autopkg_bin.unlink()
        with pytest.raises(PrerequisiteError, match="AutoPkg not installed"):
            make_run(config).run()

    def test_missing_recipe_list(self, config):
        config.recipe_list.unlink()
        with pytest.raises(PrerequisiteError, match="Recipe list missing"):
            make_run(config).run()

    def test_empty_recipe_list(self, config):
        config.recipe_list.write_text("")
        with pytest.raises(PrerequisiteError, match="empty"):
            make_run(config).run()
        daily = (config.log_dir / "autopkg_daily_run.log").read_text()
        assert "Recipe list is empty." in daily


class TestNetwork:
    def test_network_never_up(self, config):
        def down(request):
            raise httpx.ConnectError("no route", request=request)

        autopkg = FakeAutoPkg()
        with pytest.raises(NetworkUnavailableError):
            make_run(config, autopkg, handler=down).run()

        assert autopkg.calls == []
        daily = (config.log_dir / "autopkg_daily_run.log").read_text()
        assert "Network did not become available after 2 seconds" in daily
