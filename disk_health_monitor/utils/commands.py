"""Thin wrapper around external tool invocation."""

import logging
import shutil
import subprocess
from typing import List


logger = logging.getLogger(__name__)


def run_command(cmd: List[str], timeout: int = 30) -> subprocess.CompletedProcess:
    """Run an external command and capture its output as text.

    Args:
        cmd: Command and arguments.
        timeout: Seconds before the command is abandoned.

    Returns:
        The completed process; a non-zero return code is not an error here.

    Raises:
        FileNotFoundError: If the executable does not exist.
        subprocess.TimeoutExpired: If the command does not finish in time.
    """
    logger.debug(f"Running: {' '.join(cmd)}")
    return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)


def command_available(name: str) -> bool:
    """Check whether an executable is on PATH."""
    return shutil.which(name) is not None
