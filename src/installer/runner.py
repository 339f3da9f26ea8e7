"""Subprocess capability used by the installer.

Installer takes a runner instead of calling subprocess directly so tests can
substitute a fake that records invocations and fabricates node_modules.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Dict, List, Optional

from constants import Constants
from common.errors import InstallError
from common.logging_utils import Timer

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs the package manager binary in a working directory."""

    def __init__(self, command: str = Constants.INSTALL_COMMAND, timeout: Optional[float] = Constants.INSTALL_TIMEOUT_SEC):
        self.command = command
        self.timeout = timeout

    def run(self, workdir: str, args: List[str], env: Optional[Dict[str, str]] = None) -> str:
        """Run `<command> <args...>` in workdir and return its combined output.

        Args:
            workdir: Directory the process runs in.
            args: Arguments after the binary name.
            env: Extra environment variables layered over os.environ.

        Raises:
            InstallError: Non-zero exit, timeout, or missing binary.
        """
        full_env = dict(os.environ)
        if env:
            full_env.update(env)
        cmd = [self.command, *args]
        with Timer() as timer:
            try:
                proc = subprocess.run(
                    cmd,
                    cwd=workdir,
                    env=full_env,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    timeout=self.timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as exc:
                output = exc.output or ""
                if isinstance(output, bytes):
                    output = output.decode("utf-8", errors="replace")
                raise InstallError(f"{' '.join(cmd)}: timed out after {self.timeout}s", output=output) from exc
            except OSError as exc:
                raise InstallError(f"{' '.join(cmd)}: {exc}") from exc
        if proc.returncode != 0:
            raise InstallError(f"{' '.join(cmd)}: {proc.stdout}", output=proc.stdout or "")
        logger.debug("%s in %sms", " ".join(cmd), timer.duration_ms())
        return proc.stdout or ""
