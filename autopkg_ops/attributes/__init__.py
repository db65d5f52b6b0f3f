"""
Extension attribute checks for managed Macs.

Key functions:
- check_extension_attribute(): probe, classify and record one application
- get_probe(kind): install-location probe by registry key
- render_extension_attribute(): fill in the EA script template

Types:
- UpdateStatus: value reported inside the EA <result> tag
- StatusRecord: JSON status file written when an update is needed
- StatusStore: directory of per-application status files
"""

from autopkg_ops.attributes.check import (
    CheckOutcome,
    check_extension_attribute,
    classify,
)
from autopkg_ops.attributes.models import StatusRecord, UpdateStatus, install_trigger
from autopkg_ops.attributes.probes import (
    InstallProbe,
    ProbeResult,
    get_probe,
    list_probes,
    register_probe,
)
from autopkg_ops.attributes.store import StatusStore
from autopkg_ops.attributes.template import (
    render_extension_attribute,
    write_extension_attribute,
)

__all__ = [
    "CheckOutcome",
    "InstallProbe",
    "ProbeResult",
    "StatusRecord",
    "StatusStore",
    "UpdateStatus",
    "check_extension_attribute",
    "classify",
    "get_probe",
    "install_trigger",
    "list_probes",
    "register_probe",
    "render_extension_attribute",
    "write_extension_attribute",
]
