"""Runs build commands for generated programs in a restricted subprocess."""

import logging
import os
import subprocess
from typing import NamedTuple

from config.defaults import DEFAULTS

logger = logging.getLogger(__name__)

# Environment variables passed through to the child; everything else is dropped.
_PASSTHROUGH_ENV = ("PATH", "HOME", "LANG", "LC_ALL", "SYSTEMROOT", "TMPDIR")

# Captured output beyond this many characters is cut from the front.
MAX_OUTPUT = 20000


class CommandResult(NamedTuple):
    stdout: str
    stderr: str
    returncode: int

    @property
    def timed_out(self):
        return self.returncode == -1 and self.stderr.startswith("Command timed out")


def _child_env():
    env = {k: os.environ[k] for k in _PASSTHROUGH_ENV if k in os.environ}
    env["PYTHONDONTWRITEBYTECODE"] = "1"
    env["PYTHONIOENCODING"] = "utf-8"
    return env


def _tail(text):
    text = text or ""
    if len(text) <= MAX_OUTPUT:
        return text
    return "...[truncated]\n" + text[-MAX_OUTPUT:]


def run_in_sandbox(command, cwd, timeout=None, allowed_commands=None):
    """Run an allowlisted command in cwd with a scrubbed environment and no stdin.

    Returns a CommandResult (unpacks as stdout, stderr, returncode). A timeout
    or a missing executable gives returncode -1 with the reason in stderr.

    Raises ValueError when the command is empty, not allowlisted, or cwd is
    not a directory.
    """
    if timeout is None:
        timeout = DEFAULTS["sandbox_timeout"]
    allowed = DEFAULTS["allowed_commands"] if allowed_commands is None else allowed_commands

    if not command or not isinstance(command, list):
        raise ValueError("Command must be a non-empty list of strings")

    executable = command[0]
    if executable not in allowed:
        raise ValueError(f"Command '{executable}' not in allowlist: {allowed}")

    cwd = os.path.realpath(cwd)
    if not os.path.isdir(cwd):
        raise ValueError(f"Working directory does not exist: {cwd}")

    logger.debug("Running %s in %s (timeout %ss)", " ".join(command), cwd, timeout)
    try:
        completed = subprocess.run(
            command,
            cwd=cwd,
            env=_child_env(),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("%s timed out after %ss", executable, timeout)
        return CommandResult("", f"Command timed out after {timeout}s", -1)
    except FileNotFoundError:
        return CommandResult("", f"Command not found: {executable}", -1)

    if completed.returncode != 0:
        logger.debug("%s exited with %d", executable, completed.returncode)
    return CommandResult(_tail(completed.stdout), _tail(completed.stderr), completed.returncode)
