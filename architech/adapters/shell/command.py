"""
Shell command runner — execute RUN_COMMAND actions as subprocesses.

String commands go through the shell; list commands are executed
directly as an argv vector.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from architech.adapters.base import CommandReceipt, CommandRequest, CommandRunner

logger = logging.getLogger(__name__)


class ShellCommandRunner(CommandRunner):
    """Run commands with ``subprocess.run`` and capture their output."""

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def run(self, request: CommandRequest) -> CommandReceipt:
        use_shell = isinstance(request.command, str)
        display = request.display

        if not Path(request.cwd).is_dir():
            return CommandReceipt(
                command=display,
                error=f"working directory does not exist: {request.cwd}",
            )

        env = None
        if request.env:
            env = {**os.environ, **request.env}

        logger.debug("Executing: %s (cwd=%s, timeout=%ss)", display, request.cwd, request.timeout)
        start = time.monotonic()

        try:
            result = subprocess.run(
                request.command,
                shell=use_shell,
                cwd=request.cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=request.timeout,
            )
        except subprocess.TimeoutExpired:
            return CommandReceipt(
                command=display,
                timed_out=True,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        except OSError as e:
            return CommandReceipt(
                command=display,
                error=str(e),
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("Command %s exited %d in %dms", display, result.returncode, elapsed_ms)
        return CommandReceipt(
            command=display,
            return_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            duration_ms=elapsed_ms,
        )
