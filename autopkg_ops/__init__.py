"""AutoPkg Ops - AutoPkg and Jamf Pro maintenance commands for macOS fleets."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("autopkg-ops")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = ["__version__"]
