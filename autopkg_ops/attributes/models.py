"""Extension attribute result types and the JSON status record.

The status record is written to the status directory whenever an
application needs an update. Its field names are read by Jamf policies and
must stay stable.
"""

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from autopkg_ops.core.timestamps import status_timestamp


class UpdateStatus(StrEnum):
    """Value reported inside the EA ``<result>`` tag."""

    NOT_INSTALLED = "Not Installed"
    NEEDS_UPDATE = "Needs Update"
    UP_TO_DATE = "Up-to-date"
    UNKNOWN_VERSION = "Unknown Version"


def install_trigger(app_name: str) -> str:
    """Jamf policy trigger that silently installs the update.

    Whitespace becomes ``_`` and any other character outside
    ``[A-Za-z0-9_]`` is dropped.
    """
    safe = re.sub(r"\s", "_", app_name)
    safe = re.sub(r"[^A-Za-z0-9_]", "", safe)
    return f"install_{safe}_AUTOPKG_SILENT_UPDATE_QUIT"


class StatusRecord(BaseModel):
    """Per-application update record, one JSON file per application."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Application name as used in recipes")
    status: UpdateStatus
    installed_version: str
    latest_version: str
    install_trigger: str
    date: str = Field(default_factory=status_timestamp)

    @classmethod
    def needs_update(cls, name: str, installed: str, latest: str) -> "StatusRecord":
        return cls(
            name=name,
            status=UpdateStatus.NEEDS_UPDATE,
            installed_version=installed,
            latest_version=latest,
            install_trigger=install_trigger(name),
        )

    @property
    def filename(self) -> str:
        return f"{self.name}-{self.latest_version}.json"
