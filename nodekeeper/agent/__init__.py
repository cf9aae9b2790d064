"""Node agent: executes upgrades on the local node."""

from .client import AgentClient
from .commands import CommandRunner
from .executor import UpgradeExecutor
from .server import create_app

__all__ = ["AgentClient", "CommandRunner", "UpgradeExecutor", "create_app"]
