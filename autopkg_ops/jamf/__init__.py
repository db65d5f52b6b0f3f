"""
Jamf Pro integration.

Key functions:
- JamfClient: OAuth client-credentials auth plus Classic API XML resources
- sync_searches(): keep advanced computer searches in step with recipes
- build_search_xml(): advanced search payload for one application
"""

from autopkg_ops.jamf.client import JamfAuthError, JamfClient, JamfRequestError
from autopkg_ops.jamf.searches import (
    SearchSyncConfig,
    SyncReport,
    build_search_xml,
    load_search_sync_config,
    scan_recipe_names,
    sync_searches,
)

__all__ = [
    "JamfAuthError",
    "JamfClient",
    "JamfRequestError",
    "SearchSyncConfig",
    "SyncReport",
    "build_search_xml",
    "load_search_sync_config",
    "scan_recipe_names",
    "sync_searches",
]
