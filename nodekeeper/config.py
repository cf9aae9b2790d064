"""Configuration for the node agent and the reconciler."""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel

from .utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_STAMP_DIR = "/var/nodekeeper"
DEFAULT_AGENT_HOST = "127.0.0.1"
DEFAULT_AGENT_PORT = 9420
DEFAULT_COMMAND_TIMEOUT = 600.0
DEFAULT_REQUEUE_AFTER = 60.0
DEFAULT_INTENT_RESOURCE = "upgrades.nodekeeper.io"

ConfigT = TypeVar("ConfigT", bound=BaseModel)


class AgentConfig(BaseModel):
    """Node agent settings."""

    host: str = DEFAULT_AGENT_HOST
    port: int = DEFAULT_AGENT_PORT
    stamp_dir: str = DEFAULT_STAMP_DIR
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    os_release_path: str = "/etc/os-release"
    admin_conf_path: str = "/etc/kubernetes/admin.conf"
    resume_pending_reboot: bool = True


class ReconcilerConfig(BaseModel):
    """Cluster reconciler settings."""

    node_name: str = ""
    agent_url: str = f"http://{DEFAULT_AGENT_HOST}:{DEFAULT_AGENT_PORT}"
    agent_timeout: float = DEFAULT_COMMAND_TIMEOUT + 30
    stamp_dir: str = DEFAULT_STAMP_DIR
    intent_resource: str = DEFAULT_INTENT_RESOURCE
    intent_name: str = ""
    namespace: str = "default"
    context: Optional[str] = None
    requeue_after: float = DEFAULT_REQUEUE_AFTER
    watch: bool = True


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    """Read a YAML or JSON configuration file."""
    with open(config_path) as f:
        if config_path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {config_path} must be a mapping")
    return data


def load_config(
    model: Type[ConfigT],
    config_path: Optional[Path] = None,
    section: Optional[str] = None,
    **overrides: Any,
) -> ConfigT:
    """Build a config model from an optional file plus explicit overrides.

    Overrides whose value is None are ignored so unset CLI options do not
    clobber values from the file.
    """
    values: Dict[str, Any] = {}
    if config_path:
        data = _read_config_file(Path(config_path))
        if section:
            data = data.get(section) or {}
        values.update(data)
        logger.debug(f"Loaded configuration from {config_path}")

    values.update({key: value for key, value in overrides.items() if value is not None})
    return model(**values)
