"""
Low-level command execution for AutoPkg and system tools.

Every command in this package shells out to an external binary (autopkg,
brew, nessuscli, python3, ifconfig, dig) and classifies the result from its
exit code and output. This module provides the two primitives they share:

- run_command(): run a short command and return its combined output
- run_with_timeout(): run a long command in its own process group and kill
  the whole group once a deadline passes
"""

import logging
import os
import signal
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Exit status reported for a killed child, matching a shell's 128 + SIGKILL
TIMEOUT_EXIT_CODE = 137


@dataclass
class CommandResult:
    """Outcome of a command run under a deadline."""

    args: list[str]
    returncode: int
    output: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def lines(self) -> list[str]:
        return self.output.splitlines()


def run_command(
    cmd: list[str],
    timeout: int = 60,
    check: bool = False,
) -> str:
    """Execute a command and return its stdout plus stderr.

    Args:
        cmd: Command and arguments
        timeout: Command timeout in seconds
        check: Raise exception on non-zero exit

    Returns:
        Command output (stdout + stderr), empty string when the binary
        is missing or the command times out and ``check`` is False.
    """
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (FileNotFoundError, PermissionError) as e:
        if check:
            raise
        logger.debug(f"Cannot execute {cmd[0]}: {e}")
        return ""
    except subprocess.TimeoutExpired:
        if check:
            raise
        logger.warning(f"{cmd[0]} timed out after {timeout}s")
        return ""

    output = result.stdout
    if result.stderr:
        output += result.stderr

    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode, cmd, result.stdout, result.stderr
        )

    return output.strip()


def _kill_group(proc: subprocess.Popen) -> None:
    """Kill a child and every process in its group."""
    try:
        os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        proc.kill()


def run_with_timeout(cmd: list[str], timeout: int) -> CommandResult:
    """Run a command, killing it and its descendants past the deadline.

    The child starts in a new session so that helpers it spawns (curl,
    installer, pkgbuild) share its process group and die with it.

    Args:
        cmd: Command and arguments
        timeout: Deadline in seconds

    Returns:
        CommandResult with merged stdout/stderr. A killed command reports
        ``timed_out=True`` and exit code 137.
    """
    logger.debug(f"Running with {timeout}s deadline: {' '.join(cmd)}")
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            start_new_session=True,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.error(f"Cannot execute {cmd[0]}: {e}")
        return CommandResult(args=cmd, returncode=127, output=str(e))

    try:
        output, _ = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.debug(f"Process timed out after {timeout} seconds. Killing...")
        _kill_group(proc)
        output, _ = proc.communicate()
        return CommandResult(
            args=cmd,
            returncode=TIMEOUT_EXIT_CODE,
            output=output or "",
            timed_out=True,
        )

    return CommandResult(args=cmd, returncode=proc.returncode, output=output or "")
