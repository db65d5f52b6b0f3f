"""Project settings loaded from pyproject.toml [tool.autopkg-ops] section.

Configuration is organized into subsections:
  [tool.autopkg-ops]           : AutoPkg user and binary
  [tool.autopkg-ops.paths]     : status dir, EA log, temp root, path overrides
  [tool.autopkg-ops.network]   : readiness check URL, DNS server, retries
  [tool.autopkg-ops.timeouts]  : repo update and recipe run deadlines
  [tool.autopkg-ops.nightly]   : update-repos / trust-recipes switches
  [tool.autopkg-ops.cleanup]   : number of package versions to keep

All settings support environment variable overrides (AUTOPKG_OPS_* prefix).
Paths under the AutoPkg user's home are derived from that home directory
unless overridden individually.
"""

import importlib.resources
import os
import pwd
from dataclasses import dataclass
from functools import cache
from pathlib import Path

import tomllib


@cache
def _load_pyproject_settings() -> dict:
    """Load settings from pyproject.toml [tool.autopkg-ops] section.

    Returns:
        Dictionary of settings from pyproject.toml, empty dict if not found.
    """
    try:
        files = importlib.resources.files("autopkg_ops")
        pyproject_path = files.joinpath("..", "pyproject.toml")

        if not pyproject_path.is_file():  # type: ignore[union-attr]
            # Walk up to find pyproject.toml (for development)
            current = Path(__file__).resolve().parent
            while current != current.parent:
                candidate = current / "pyproject.toml"
                if candidate.exists():
                    pyproject_path = candidate
                    break
                current = current.parent
            else:
                return {}

        content = pyproject_path.read_text()  # type: ignore[union-attr]
        data = tomllib.loads(content)
        return data.get("tool", {}).get("autopkg-ops", {})
    except Exception:
        return {}


def _get_section(section: str) -> dict:
    """Get a subsection from [tool.autopkg-ops.{section}]."""
    value = _load_pyproject_settings().get(section, {})
    return value if isinstance(value, dict) else {}


def _parse_bool(value: str | bool) -> bool:
    """Parse a boolean from env var text or TOML value."""
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("1", "true", "yes", "on")


def _setting(env_var: str, section: str | None, key: str, default):
    """Resolve env var → pyproject value → default."""
    if env := os.getenv(env_var):
        return env
    source = _get_section(section) if section else _load_pyproject_settings()
    value = source.get(key)
    return default if value is None else value


# ─── AutoPkg user ──────────────────────────────────────────────────────────


def get_autopkg_user() -> str:
    """Get the account AutoPkg runs as.

    Priority: AUTOPKG_OPS_USER env → [tool.autopkg-ops].autopkg-user → 'autopkg'.
    """
    return str(_setting("AUTOPKG_OPS_USER", None, "autopkg-user", "autopkg"))


def get_autopkg_home() -> Path:
    """Get the AutoPkg user's home directory.

    Priority: AUTOPKG_OPS_HOME env → user database → /Users/<user>.
    """
    if env := os.getenv("AUTOPKG_OPS_HOME"):
        return Path(env)
    user = get_autopkg_user()
    try:
        return Path(pwd.getpwnam(user).pw_dir)
    except KeyError:
        return Path("/Users") / user


def get_autopkg_bin() -> Path:
    """Get the AutoPkg command-line tool path.

    Priority: AUTOPKG_OPS_AUTOPKG_BIN env → [tool.autopkg-ops].autopkg-bin
              → /usr/local/bin/autopkg.
    """
    return Path(
        _setting(
            "AUTOPKG_OPS_AUTOPKG_BIN", None, "autopkg-bin", "/usr/local/bin/autopkg"
        )
    )


# ─── Paths ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AutoPkgPaths:
    """Filesystem locations shared by all commands.

    Attributes:
        home: AutoPkg user's home directory.
        recipe_list: AutoPkgr recipe list consumed by the nightly run.
        recipe_dir: Directory scanned for .jamf.recipe files.
        log_dir: Directory holding every command's log files.
        pkg_dir: Directory of AutoPkg-built installer packages.
        cache_dir: AutoPkg download/build cache cleared each night.
        preferences: AutoPkg preferences plist (Jamf credentials, JSS_URL).
        trash_dir: AutoPkg user's Trash.
        tmp_root: Root scanned for leftover jamf_upload* folders.
        status_dir: Directory of per-application JSON status files.
        ea_log: Log file written by extension attribute checks.
    """

    home: Path
    recipe_list: Path
    recipe_dir: Path
    log_dir: Path
    pkg_dir: Path
    cache_dir: Path
    preferences: Path
    trash_dir: Path
    tmp_root: Path
    status_dir: Path
    ea_log: Path


def _path_setting(env_suffix: str, key: str, default: Path) -> Path:
    return Path(_setting(f"AUTOPKG_OPS_{env_suffix}", "paths", key, default))


def get_paths() -> AutoPkgPaths:
    """Resolve all filesystem locations.

    Each path can be overridden with AUTOPKG_OPS_<NAME> or
    [tool.autopkg-ops.paths].<name>.
    """
    home = get_autopkg_home()
    library = home / "Library"
    return AutoPkgPaths(
        home=home,
        recipe_list=_path_setting(
            "RECIPE_LIST",
            "recipe-list",
            library / "Application Support" / "AutoPkgr" / "recipe_list.txt",
        ),
        recipe_dir=_path_setting(
            "RECIPE_DIR", "recipe-dir", library / "AutoPkg" / "Recipes"
        ),
        log_dir=_path_setting("LOG_DIR", "log-dir", library / "Logs" / "autopkg"),
        pkg_dir=_path_setting(
            "PKG_DIR", "pkg-dir", library / "AutoPkg" / "AutoPkg_Pkgs"
        ),
        cache_dir=_path_setting("CACHE_DIR", "cache-dir", library / "AutoPkg" / "Cache"),
        preferences=_path_setting(
            "PREFERENCES",
            "preferences",
            library / "Preferences" / "com.github.autopkg.plist",
        ),
        trash_dir=_path_setting("TRASH_DIR", "trash-dir", home / ".Trash"),
        tmp_root=_path_setting("TMP_ROOT", "tmp-root", Path("/private/tmp")),
        status_dir=_path_setting(
            "STATUS_DIR", "status-dir", Path("/usr/local/autopkg/AutoPkg_App_Updates")
        ),
        ea_log=_path_setting(
            "EA_LOG",
            "ea-log",
            Path("/usr/local/autopkg/Logs/advanced_computer_search.log"),
        ),
    )


# ─── Network readiness ─────────────────────────────────────────────────────


def get_network_check_url() -> str:
    """URL probed with HEAD requests until the network is up."""
    return str(
        _setting(
            "AUTOPKG_OPS_NETWORK_CHECK_URL",
            "network",
            "check-url",
            "https://www.google.com",
        )
    )


def get_dns_server() -> str:
    """DNS server used for the informational lookup after the network is up."""
    return str(_setting("AUTOPKG_OPS_DNS_SERVER", "network", "dns-server", "8.8.8.8"))


def get_network_max_retries() -> int:
    """Priority: AUTOPKG_OPS_NETWORK_MAX_RETRIES env → [network].max-retries → 30."""
    return int(
        _setting("AUTOPKG_OPS_NETWORK_MAX_RETRIES", "network", "max-retries", 30)
    )


def get_network_retry_interval() -> int:
    """Priority: AUTOPKG_OPS_NETWORK_RETRY_INTERVAL env → [network].retry-interval → 10."""
    return int(
        _setting("AUTOPKG_OPS_NETWORK_RETRY_INTERVAL", "network", "retry-interval", 10)
    )


# ─── Timeouts ──────────────────────────────────────────────────────────────


def get_repo_timeout() -> int:
    """Seconds allowed for `autopkg repo-update all`."""
    return int(_setting("AUTOPKG_OPS_REPO_TIMEOUT", "timeouts", "repo-update", 300))


def get_recipe_timeout() -> int:
    """Seconds allowed for a single `autopkg run`."""
    return int(_setting("AUTOPKG_OPS_RECIPE_TIMEOUT", "timeouts", "recipe-run", 600))


# ─── Nightly switches ──────────────────────────────────────────────────────


def get_update_repos() -> bool:
    """Whether the nightly run updates recipe repositories first."""
    return _parse_bool(
        _setting("AUTOPKG_OPS_UPDATE_REPOS", "nightly", "update-repos", True)
    )


def get_trust_recipes() -> bool:
    """Whether the nightly run verifies recipe trust before running."""
    return _parse_bool(
        _setting("AUTOPKG_OPS_TRUST_RECIPES", "nightly", "trust-recipes", True)
    )


# ─── Cleanup ───────────────────────────────────────────────────────────────


def get_keep_versions() -> int:
    """Number of newest package versions kept per application."""
    return int(_setting("AUTOPKG_OPS_KEEP_VERSIONS", "cleanup", "keep", 2))
