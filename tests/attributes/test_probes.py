"""Tests for install-location probes.

Probes search below a temporary root; version commands are patched.
"""

import plistlib
from pathlib import Path
from unittest.mock import patch

import pytest

from autopkg_ops.attributes.probes import (
    AppBundleProbe,
    HomebrewProbe,
    NessusAgentProbe,
    Python3Probe,
    get_probe,
    list_probes,
    read_bundle_version,
)


def make_app(root: Path, location: str, name: str, version: str | None) -> Path:
    bundle = root / location.lstrip("/") / f"{name}.app"
    contents = bundle / "Contents"
    contents.mkdir(parents=True)
    if version is not None:
        with (contents / "Info.plist").open("wb") as f:
            plistlib.dump({"CFBundleShortVersionString": version}, f)
    return bundle


def make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


class TestAppBundleProbe:
    def test_found_in_applications(self, tmp_path):
        bundle = make_app(tmp_path, "/Applications", "Firefox", "128.0.3")

        result = AppBundleProbe().probe("Firefox", root=tmp_path)

        assert result.installed
        assert result.path == bundle
        assert result.installed_version == "128.0.3"

    def test_found_in_utilities(self, tmp_path):
        make_app(tmp_path, "/Applications/Utilities", "Suspicious Package", "4.5")

        result = AppBundleProbe().probe("Suspicious Package", root=tmp_path)

        assert result.installed_version == "4.5"
        assert len(result.searched) == 2

    def test_applications_preferred_over_utilities(self, tmp_path):
        make_app(tmp_path, "/Applications", "Tool", "2.0")
        make_app(tmp_path, "/Applications/Utilities", "Tool", "1.0")

        assert AppBundleProbe().probe("Tool", root=tmp_path).installed_version == "2.0"

    def test_not_installed(self, tmp_path):
        result = AppBundleProbe().probe("Missing", root=tmp_path)

        assert not result.installed
        assert result.installed_version is None
        assert [p.name for p in result.searched] == ["Missing.app", "Missing.app"]

    def test_bundle_without_plist_has_unknown_version(self, tmp_path):
        make_app(tmp_path, "/Applications", "Broken", None)

        result = AppBundleProbe().probe("Broken", root=tmp_path)

        assert result.installed
        assert result.installed_version is None

    def test_read_bundle_version_blank(self, tmp_path):
        bundle = make_app(tmp_path, "/Applications", "Blank", "  ")
        assert read_bundle_version(bundle) is None


class TestHomebrewProbe:
    @patch("autopkg_ops.attributes.probes.run_command")
    def test_apple_silicon_prefix_first(self, mock_run, tmp_path):
        make_executable(tmp_path / "opt/homebrew/bin/brew")
        make_executable(tmp_path / "usr/local/bin/brew")
        mock_run.return_value = "Homebrew 4.4.2\nHomebrew/homebrew-core (git revision 1a2b)"

        result = HomebrewProbe().probe("Homebrew", root=tmp_path)

        assert result.path == tmp_path / "opt/homebrew/bin/brew"
        assert result.installed_version == "4.4.2"
        mock_run.assert_called_once()
        assert mock_run.call_args[0][0] == [str(result.path), "--version"]

    @patch("autopkg_ops.attributes.probes.run_command")
    def test_intel_prefix_fallback(self, mock_run, tmp_path):
        make_executable(tmp_path / "usr/local/bin/brew")
        mock_run.return_value = "Homebrew >=4.3.0 (shallow or no git repository)"

        result = HomebrewProbe().probe("Homebrew", root=tmp_path)

        assert result.path == tmp_path / "usr/local/bin/brew"
        assert result.installed_version == "4.3.0"

    @patch("autopkg_ops.attributes.probes.run_command")
    def test_unreadable_version(self, mock_run, tmp_path):
        make_executable(tmp_path / "opt/homebrew/bin/brew")
        mock_run.return_value = ""

        result = HomebrewProbe().probe("Homebrew", root=tmp_path)

        assert result.installed
        assert result.installed_version is None

    def test_not_installed(self, tmp_path):
        result = HomebrewProbe().probe("Homebrew", root=tmp_path)
        assert not result.installed


class TestNessusAgentProbe:
    @patch("autopkg_ops.attributes.probes.run_command")
    def test_version_from_banner(self, mock_run, tmp_path):
        make_executable(tmp_path / "Library/NessusAgent/run/sbin/nessuscli")
        mock_run.return_value = (
            "Tenable Nessus Agent (Nessus Agent) 10.7.3 [build 20012]\n"
            "Copyright (C) 1998-2024 Tenable, Inc."
        )

        result = NessusAgentProbe().probe("Nessus Agent", root=tmp_path)

        assert result.installed_version == "10.7.3"

    def test_not_executable_is_not_installed(self, tmp_path):
        cli = tmp_path / "Library/NessusAgent/run/sbin/nessuscli"
        cli.parent.mkdir(parents=True)
        cli.write_text("")
        cli.chmod(0o644)

        assert not NessusAgentProbe().probe("Nessus Agent", root=tmp_path).installed


class TestPython3Probe:
    @patch("autopkg_ops.attributes.probes.run_command")
    def test_newest_framework_wins(self, mock_run, tmp_path):
        versions = tmp_path / "Library/Frameworks/Python.framework/Versions"
        make_executable(versions / "3.11/bin/python3")
        make_executable(versions / "3.12/bin/python3")
        banners = {
            str(versions / "3.11/bin/python3"): "Python 3.11.9",
            str(versions / "3.12/bin/python3"): "Python 3.12.4",
        }
        mock_run.side_effect = lambda cmd, timeout: banners[cmd[0]]

        result = Python3Probe().probe("Python3", root=tmp_path)

        assert result.path == versions
        assert result.installed_version == "3.12.4"

    def test_empty_versions_dir(self, tmp_path):
        (tmp_path / "Library/Frameworks/Python.framework/Versions").mkdir(parents=True)
        assert not Python3Probe().probe("Python3", root=tmp_path).installed

    def test_latest_truncated_to_three_parts(self):
        assert Python3Probe().normalize_latest("3.12.4.1") == "3.12.4"


class TestProbeRegistry:
    def test_builtin_probes_registered(self):
        assert {"app", "homebrew", "nessus-agent", "python3"} <= set(list_probes())

    def test_get_probe(self):
        probe = get_probe("homebrew")
        assert probe.default_name == "Homebrew"

    def test_unknown_probe(self):
        with pytest.raises(KeyError, match="No probe registered"):
            get_probe("flatpak")
