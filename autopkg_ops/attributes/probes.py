"""Install-location probes and registry.

A probe knows where one kind of software lives on disk and how to read its
installed version. Extension attribute checks pick a probe by name:

    - app: application bundles in /Applications and /Applications/Utilities
    - homebrew: the brew binary (Apple Silicon prefix first)
    - nessus-agent: Tenable Nessus Agent's nessuscli
    - python3: MacAdmins/python.org framework builds, newest wins

Every probe takes a ``root`` so tests can point it at a temporary tree.
"""

from __future__ import annotations

import logging
import os
import plistlib
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from autopkg_ops.core.versions import newest_version, truncate_version
from autopkg_ops.executor import run_command

logger = logging.getLogger(__name__)

VERSION_TIMEOUT = 15


@dataclass
class ProbeResult:
    """Where the software was found and what version it reports.

    Attributes:
        path: Install location, None when not installed.
        installed_version: Version string, None when it could not be read.
        searched: Locations checked, for logging.
    """

    path: Path | None = None
    installed_version: str | None = None
    searched: list[Path] = field(default_factory=list)

    @property
    def installed(self) -> bool:
        return self.path is not None


@runtime_checkable
class InstallProbe(Protocol):
    """Interface for locating installed software."""

    probe_type: str
    """Registry key (e.g., 'app', 'homebrew')."""

    default_name: str | None
    """Fixed application name for single-product probes."""

    def probe(self, app_name: str, root: Path = Path("/")) -> ProbeResult: ...

    def normalize_latest(self, latest_version: str) -> str: ...


def _under(root: Path, absolute: str) -> Path:
    return root / absolute.lstrip("/")


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _first_line(text: str) -> str:
    return text.splitlines()[0] if text else ""


def read_bundle_version(app_path: Path) -> str | None:
    """Read CFBundleShortVersionString from an application bundle."""
    info = app_path / "Contents" / "Info.plist"
    try:
        with info.open("rb") as f:
            data = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ValueError) as e:
        logger.debug(f"Cannot read {info}: {e}")
        return None
    version = data.get("CFBundleShortVersionString")
    if version is None:
        return None
    return str(version).strip() or None


class AppBundleProbe:
    """Application bundles in the standard locations."""

    probe_type = "app"
    default_name = None
    locations = ("/Applications", "/Applications/Utilities")

    def probe(self, app_name: str, root: Path = Path("/")) -> ProbeResult:
        result = ProbeResult()
        for location in self.locations:
            candidate = _under(root, location) / f"{app_name}.app"
            result.searched.append(candidate)
            if candidate.is_dir():
                result.path = candidate
                result.installed_version = read_bundle_version(candidate)
                break
        return result

    def normalize_latest(self, latest_version: str) -> str:
        return latest_version


class HomebrewProbe:
    """Homebrew, checked under /opt/homebrew before /usr/local."""

    probe_type = "homebrew"
    default_name = "Homebrew"
    locations = ("/opt/homebrew/bin/brew", "/usr/local/bin/brew")

    def probe(self, app_name: str, root: Path = Path("/")) -> ProbeResult:
        result = ProbeResult()
        for location in self.locations:
            candidate = _under(root, location)
            result.searched.append(candidate)
            if _is_executable(candidate):
                result.path = candidate
                break
        if result.path is None:
            return result

        # "Homebrew 4.4.2" -> "4.4.2"
        line = _first_line(run_command([str(result.path), "--version"], VERSION_TIMEOUT))
        tokens = line.split()
        if len(tokens) >= 2:
            version = re.sub(r"^[^0-9]*", "", tokens[1])
            result.installed_version = version or None
        return result

    def normalize_latest(self, latest_version: str) -> str:
        return latest_version


class NessusAgentProbe:
    """Tenable Nessus Agent via its nessuscli binary."""

    probe_type = "nessus-agent"
    default_name = "Nessus Agent"
    location = "/Library/NessusAgent/run/sbin/nessuscli"

    def probe(self, app_name: str, root: Path = Path("/")) -> ProbeResult:
        candidate = _under(root, self.location)
        result = ProbeResult(searched=[candidate])
        if not _is_executable(candidate):
            return result
        result.path = candidate

        # First dotted number on the banner line, e.g.
        # "Tenable Nessus Agent (Nessus Agent) 10.7.3 [build 20012]"
        line = _first_line(run_command([str(candidate), "--version"], VERSION_TIMEOUT))
        match = re.search(r"\b\d+(?:\.\d+)+\b", line)
        if match:
            result.installed_version = match.group(0)
        return result

    def normalize_latest(self, latest_version: str) -> str:
        return latest_version


class Python3Probe:
    """Framework Python 3 builds; the newest installed version is reported."""

    probe_type = "python3"
    default_name = None
    versions_dir = "/Library/Frameworks/Python.framework/Versions"

    def probe(self, app_name: str, root: Path = Path("/")) -> ProbeResult:
        versions_dir = _under(root, self.versions_dir)
        result = ProbeResult(searched=[versions_dir])
        if not versions_dir.is_dir():
            return result

        binaries = sorted(
            p for p in versions_dir.glob("*/bin/python3*") if _is_executable(p)
        )
        if not binaries:
            return result
        result.path = versions_dir

        found: list[str] = []
        for binary in binaries:
            # "Python 3.12.4" -> "3.12.4"
            tokens = run_command([str(binary), "--version"], VERSION_TIMEOUT).split()
            if len(tokens) >= 2:
                found.append(truncate_version(tokens[1]))
        result.installed_version = newest_version(found)
        return result

    def normalize_latest(self, latest_version: str) -> str:
        return truncate_version(latest_version)


# =============================================================================
# Probe Registry
# =============================================================================

_registry: dict[str, InstallProbe] = {}


def register_probe(probe: InstallProbe) -> None:
    """Register a probe instance in the global registry."""
    _registry[probe.probe_type] = probe
    logger.debug("Registered probe: %s", probe.probe_type)


def _auto_register() -> None:
    for probe in (AppBundleProbe(), HomebrewProbe(), NessusAgentProbe(), Python3Probe()):
        register_probe(probe)


def get_probe(probe_type: str) -> InstallProbe:
    """Get a registered probe by type.

    Raises:
        KeyError: If no probe registered for this type
    """
    if not _registry:
        _auto_register()

    if probe_type not in _registry:
        msg = (
            f"No probe registered for '{probe_type}'. "
            f"Available: {list(_registry.keys())}"
        )
        raise KeyError(msg)

    return _registry[probe_type]


def list_probes() -> list[str]:
    """List all registered probe types."""
    if not _registry:
        _auto_register()
    return list(_registry.keys())
