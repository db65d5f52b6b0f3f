"""Shared helpers: version ordering and timestamp formats."""

from autopkg_ops.core.timestamps import section_timestamp, status_timestamp
from autopkg_ops.core.versions import (
    compare_versions,
    newest_version,
    parse_version,
    truncate_version,
    version_lt,
)

__all__ = [
    "compare_versions",
    "newest_version",
    "parse_version",
    "section_timestamp",
    "status_timestamp",
    "truncate_version",
    "version_lt",
]
