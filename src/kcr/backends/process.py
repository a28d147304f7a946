"""Subprocess runner shared by the executable-backed backends."""

from __future__ import annotations

import subprocess
from typing import Callable, List

from kcr.backends.base import CommandResult, ExecutableNotFoundError
from kcr.utils.logging import get_logger

LOG = get_logger(__name__)

Runner = Callable[[List[str]], CommandResult]


def run_command(cmd: List[str]) -> CommandResult:
    """Run ``cmd`` and capture stdout and stderr combined.

    An interrupt while the child runs does not kill it: the call waits for the
    child to finish on its own and then re-raises.
    """
    LOG.info("Running command", extra={"cmd": " ".join(cmd)})
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as exc:
        raise ExecutableNotFoundError(f"executable not found: {cmd[0]}") from exc

    with proc:
        try:
            output, _ = proc.communicate()
        except KeyboardInterrupt:
            LOG.warning("Interrupted, waiting for in-flight command", extra={"cmd": " ".join(cmd)})
            proc.communicate()
            raise
    if proc.returncode != 0:
        LOG.debug("Command failed", extra={"cmd": cmd[0], "returncode": proc.returncode})
    return CommandResult(returncode=proc.returncode, output=output or "")
