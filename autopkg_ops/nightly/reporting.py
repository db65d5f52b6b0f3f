"""Log files of the nightly run.

Four files under the AutoPkg log directory are truncated at the start of
every run:

    autopkg_daily_run.log           human summary: section headers, results
    autopkg_daily_run_verbose.log   everything shown on the console plus the
                                    full output of every recipe
    autopkg_codesign_extract.log    CodeSignatureVerifier lines only
    autopkg_last_daily_run.log      written at the end: the daily log minus
                                    repo-update noise and codesign lines

Summary lines are also sent to the ``autopkg_ops`` logger, which the CLI
forwards to the system log.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from rich.console import Console

from autopkg_ops.core.timestamps import section_timestamp

logger = logging.getLogger(__name__)

DAILY_LOG = "autopkg_daily_run.log"
VERBOSE_LOG = "autopkg_daily_run_verbose.log"
LAST_RUN_LOG = "autopkg_last_daily_run.log"
CODESIGN_LOG = "autopkg_codesign_extract.log"

CODESIGN_PREFIX = "CodeSignatureVerifier"

# Console styles
HEADER = "bold cyan"
GREEN = "green"
YELLOW = "bold yellow"
RED = "red"

# Lines dropped from the last-run log
_LAST_RUN_NOISE = (
    "=== Repo Updates: ",
    "Starting AutoPkg repo updates...",
    "✅ All repositories updated successfully.",
)


def filter_last_run(lines: Iterable[str]) -> list[str]:
    """Drop repo-update noise and codesign lines, squeeze blank runs to one."""
    kept: list[str] = []
    blank_run = 0
    for line in lines:
        if line.startswith(CODESIGN_PREFIX):
            continue
        if any(noise in line for noise in _LAST_RUN_NOISE):
            continue
        if line.strip():
            blank_run = 0
        else:
            blank_run += 1
            if blank_run >= 2:
                continue
        kept.append(line)
    return kept


class RunLog:
    """Console and file reporting for one nightly run."""

    def __init__(self, log_dir: Path, console: Console | None = None):
        self.log_dir = Path(log_dir)
        self.console = console or Console()
        self.daily = self.log_dir / DAILY_LOG
        self.verbose = self.log_dir / VERBOSE_LOG
        self.last_run = self.log_dir / LAST_RUN_LOG
        self.codesign = self.log_dir / CODESIGN_LOG

    @property
    def files(self) -> list[Path]:
        return [self.daily, self.verbose, self.last_run, self.codesign]

    def reset(self) -> None:
        """Create the log directory and start every log file empty."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.chmod(0o755)
        for path in self.files:
            path.write_text("")
            path.chmod(0o644)

    @staticmethod
    def _append(path: Path, text: str) -> None:
        with path.open("a", encoding="utf-8") as f:
            f.write(text + "\n")

    def append_daily(self, text: str) -> None:
        self._append(self.daily, text)

    def append_verbose(self, text: str) -> None:
        self._append(self.verbose, text)

    def append_codesign(self, text: str) -> None:
        self._append(self.codesign, text)

    def _show(self, text: str, style: str | None = None) -> None:
        self.console.print(text, style=style, markup=False, highlight=False)
        self.append_verbose(text)

    def message(self, text: str, style: str | None = None) -> None:
        """Show a line and record it in the daily log and the system log."""
        self._show(text, style)
        self.append_daily(text)
        logger.info(text)

    def blank(self) -> None:
        self._show("")
        self.append_daily("")

    def section(self, title: str) -> None:
        """Blank line then ``=== <title>: <timestamp> ===``."""
        self.blank()
        header = f"=== {title}: {section_timestamp()} ==="
        self._show(header, HEADER)
        self.append_daily(header)

    def print_list(self, title: str, items: list[str], style: str | None = None) -> None:
        """Titled bullet list; nothing is printed for an empty list."""
        if not items:
            return
        self.blank()
        self.message(title, style)
        for item in items:
            self.message(f" - {item}", style)

    def write_last_run(self) -> Path:
        """Write the filtered copy of the daily log."""
        lines = self.daily.read_text(encoding="utf-8").splitlines()
        kept = filter_last_run(lines)
        self.last_run.write_text("".join(f"{line}\n" for line in kept), encoding="utf-8")
        self.last_run.chmod(0o644)
        return self.last_run
