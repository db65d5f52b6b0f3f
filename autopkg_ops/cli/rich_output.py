"""Console construction for commands that may run unattended.

The same commands run interactively in Terminal and unattended from a
LaunchAgent, LaunchDaemon or Jamf policy. Unattended output lands in log
files, where ANSI codes and wrapped lines make the logs harder to read, so
colour is enabled only for an interactive terminal.

Order of precedence:
1. ``AUTOPKG_OPS_RICH``: ``1``/``true``/``yes`` forces colour, ``0``/``false``/``no``
   disables it
2. ``NO_COLOR`` (https://no-color.org/) or ``TERM=dumb``
3. ``XPC_SERVICE_NAME`` set to a job label: started by launchd
4. the stream is not a TTY (pipes, redirects, Jamf policy scripts)
"""

from __future__ import annotations

import os
import sys
from typing import TextIO

from rich.console import Console


def _interactive(stream: TextIO) -> bool:
    override = os.environ.get("AUTOPKG_OPS_RICH", "").strip().lower()
    if override in ("1", "true", "yes"):
        return True
    if override in ("0", "false", "no"):
        return False

    if os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb":
        return False

    # Terminal sessions report "0"; launchd jobs report their label
    if os.environ.get("XPC_SERVICE_NAME", "0") != "0":
        return False

    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def make_console(stream: TextIO | None = None) -> Console:
    """Console for ``stream``, or the current stdout when not given.

    Unattended consoles print plain, unwrapped lines so that every message
    stays on one line of the log file.
    """
    interactive = _interactive(stream or sys.stdout)
    return Console(
        file=stream,
        no_color=not interactive,
        highlight=False,
        soft_wrap=not interactive,
    )
