"""Directory of per-application JSON status files.

Files are named ``<app>-<latest_version>.json``. Writers remove every
existing file for the application first, so at most one file per
application is present at any time.
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from autopkg_ops.attributes.models import StatusRecord

logger = logging.getLogger(__name__)


class StatusStore:
    """Read and write status files under one directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    @staticmethod
    def _belongs_to(path: Path, app_name: str) -> bool:
        """Whether ``<app_name>-*.json`` is this application's file.

        ``Foo-Bar-2.0.json`` also starts with ``Foo-``, so the record's
        ``name`` decides. Unreadable files count only when the rest of the
        name is a single version token.
        """
        try:
            return StatusRecord.model_validate_json(path.read_text()).name == app_name
        except (OSError, ValidationError):
            version = path.name[len(app_name) + 1 : -len(".json")]
            return bool(version) and "-" not in version

    def files_for(self, app_name: str) -> list[Path]:
        """Existing status files belonging to ``app_name``."""
        if not self.directory.is_dir():
            return []
        prefix = f"{app_name}-"
        return sorted(
            p
            for p in self.directory.iterdir()
            if p.is_file()
            and p.name.startswith(prefix)
            and p.suffix == ".json"
            and self._belongs_to(p, app_name)
        )

    def clear(self, app_name: str) -> list[Path]:
        """Delete all status files for an application.

        Returns:
            Paths that were deleted
        """
        deleted = []
        for path in self.files_for(app_name):
            path.unlink(missing_ok=True)
            deleted.append(path)
        return deleted

    def write(self, record: StatusRecord) -> Path:
        """Write a status record, returning the file path."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / record.filename
        path.write_text(record.model_dump_json(indent=2) + "\n")
        return path

    def read(self, app_name: str) -> StatusRecord | None:
        """Load the current record for an application, if any."""
        files = self.files_for(app_name)
        if not files:
            return None
        return StatusRecord.model_validate_json(files[-1].read_text())

    def read_all(self) -> list[StatusRecord]:
        """Load every readable status record, sorted by application name."""
        if not self.directory.is_dir():
            return []
        records = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                records.append(StatusRecord.model_validate_json(path.read_text()))
            except (OSError, ValidationError) as e:
                logger.warning(f"Skipping unreadable status file {path}: {e}")
        return sorted(records, key=lambda r: r.name.lower())
