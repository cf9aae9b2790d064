"""Exception types shared by the agent and the reconciler."""

from typing import List, Optional


class NodekeeperError(Exception):
    """Base class for all nodekeeper errors."""


class VersionParseError(NodekeeperError):
    """A version string is not a valid semantic version."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"invalid semantic version: {version!r}")


class ExternalCommandError(NodekeeperError):
    """An external tool exited non-zero, was missing, or timed out."""

    def __init__(
        self,
        command: List[str],
        returncode: Optional[int] = None,
        stderr: str = "",
        reason: Optional[str] = None,
    ):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip() if stderr else ""
        self.reason = reason

        message = f"command failed: {' '.join(command)}"
        if reason:
            message += f" ({reason})"
        elif returncode is not None:
            message += f" (exit code {returncode})"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class StateAccessError(NodekeeperError):
    """Reading or writing a cluster object failed."""


class DrainError(NodekeeperError):
    """Cordoning, uncordoning or evicting workloads failed."""


class AgentCallError(NodekeeperError):
    """The remote upgrade call to a node agent failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
