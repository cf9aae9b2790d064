"""Deadline-bounded execution of external tools."""

import subprocess
from typing import List, Optional

from ..config import DEFAULT_COMMAND_TIMEOUT
from ..errors import ExternalCommandError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CommandRunner:
    """Runs external commands and raises on any failure."""

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT):
        self.timeout = timeout

    def run(self, args: List[str], timeout: Optional[float] = None) -> str:
        """Execute a command and return its stdout."""
        deadline = timeout if timeout is not None else self.timeout
        logger.debug(f"Executing: {' '.join(args)}")

        try:
            result = subprocess.run(
                args, capture_output=True, text=True, check=True, timeout=deadline
            )
        except FileNotFoundError:
            raise ExternalCommandError(args, reason="command not found")
        except subprocess.TimeoutExpired:
            raise ExternalCommandError(args, reason=f"timed out after {deadline}s")
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed: {' '.join(args)}: {e.stderr}")
            raise ExternalCommandError(args, returncode=e.returncode, stderr=e.stderr or "")

        return result.stdout
