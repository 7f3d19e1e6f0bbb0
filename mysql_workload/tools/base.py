"""Local process execution shared by the tool wrappers.

Every external binary is started through a ``CommandRunner`` so that the
orchestration code can be exercised with a fake runner in tests.
"""

import shutil
import logging
import subprocess
from typing import List, Optional

from mysql_workload.utils.logging import format_command

logger = logging.getLogger(__name__)


class CommandRunner:
    """Thin wrapper around ``subprocess`` and ``shutil.which``."""

    def which(self, binary: str) -> Optional[str]:
        """Return the resolved path of ``binary`` or None if it is not executable."""
        return shutil.which(binary)

    def run(self, argv: List[str], stdout=None, stderr=None) -> int:
        """Run a command to completion and return its exit status."""
        logger.debug(f"Executing {format_command(argv)}")
        completed = subprocess.run(argv, stdout=stdout, stderr=stderr, stdin=subprocess.DEVNULL)
        logger.debug(f"{argv[0]} exited with code {completed.returncode}")
        return completed.returncode

    def popen(self, argv: List[str], **kwargs) -> subprocess.Popen:
        """Start a command in the background."""
        logger.debug(f"Starting {format_command(argv)}")
        return subprocess.Popen(argv, **kwargs)


def terminate_process(proc: subprocess.Popen, name: str, timeout: float = 5.0) -> None:
    """Terminate ``proc``, escalating to kill if it does not exit in time."""
    if proc.poll() is not None:
        return
    logger.debug(f"Terminating {name} (pid {proc.pid})")
    proc.terminate()
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.warning(f"{name} (pid {proc.pid}) ignored SIGTERM, killing it")
        proc.kill()
        proc.wait()
