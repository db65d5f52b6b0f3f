"""AutoPkg preferences plist (com.github.autopkg.plist).

JamfUploader reads its server URL and API client credentials from the
AutoPkg preferences. The nightly run and the search sync read the same
keys so all tools talk to the same Jamf Pro server.
"""

import logging
import plistlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

JSS_URL = "JSS_URL"
API_CLIENT_ID = "API_CLIENT_ID"
API_CLIENT_SECRET = "API_CLIENT_SECRET"


class PreferencesError(Exception):
    """Raised when the preferences plist cannot be read or written."""


def read_preferences(path: Path) -> dict[str, Any]:
    """Load the preferences plist; a missing file reads as empty."""
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            data = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ValueError) as e:
        raise PreferencesError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise PreferencesError(f"{path} does not contain a dictionary")
    return data


def write_preferences(path: Path, updates: dict[str, Any]) -> dict[str, Any]:
    """Merge ``updates`` into the preferences plist and save it.

    Returns:
        The full preferences dictionary after the update
    """
    data = read_preferences(path)
    data.update(updates)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("wb") as f:
            plistlib.dump(data, f)
    except OSError as e:
        raise PreferencesError(f"Cannot write {path}: {e}") from e
    logger.debug(f"Updated {', '.join(updates)} in {path}")
    return data


def get_jss_url(path: Path) -> str | None:
    """Jamf Pro server URL, None when JamfUploader is not configured."""
    value = str(read_preferences(path).get(JSS_URL) or "").strip()
    return value or None


@dataclass(frozen=True)
class JamfCredentials:
    """Jamf Pro API client credentials."""

    url: str
    client_id: str
    client_secret: str

    @classmethod
    def from_preferences(cls, path: Path) -> "JamfCredentials":
        data = read_preferences(path)
        return cls(
            url=str(data.get(JSS_URL, "")).rstrip("/"),
            client_id=str(data.get(API_CLIENT_ID, "")),
            client_secret=str(data.get(API_CLIENT_SECRET, "")),
        )

    @property
    def complete(self) -> bool:
        return bool(self.url and self.client_id and self.client_secret)
