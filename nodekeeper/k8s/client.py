"""Kubernetes client wrapper."""

import json
import subprocess
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..config import DEFAULT_INTENT_RESOURCE
from ..errors import DrainError, StateAccessError
from ..model.upgrade import NodeStatus, UpgradeIntent
from ..utils.logger import get_logger

logger = get_logger(__name__)


class K8sClient:
    """Wrapper for kubectl commands."""

    def __init__(self, context: Optional[str] = None, namespace: Optional[str] = None):
        self.context = context
        self.namespace = namespace
        self._verify_kubectl()

    def _verify_kubectl(self):
        """Verify kubectl is available and configured."""
        try:
            subprocess.run(
                ["kubectl", "version", "--client", "-o", "json"],
                capture_output=True,
                text=True,
                check=True,
            )
            logger.debug("kubectl verified successfully")
        except FileNotFoundError:
            raise RuntimeError("kubectl command not found. Please install kubectl.")
        except subprocess.CalledProcessError:
            logger.warning("kubectl verification failed")

    def _build_command(self, args: List[str]) -> List[str]:
        """Build kubectl command with context and namespace."""
        cmd = ["kubectl"]

        if self.context:
            cmd.extend(["--context", self.context])

        cmd.extend(args)

        if self.namespace and "--all-namespaces" not in args and "-n" not in args:
            cmd.extend(["-n", self.namespace])

        return cmd

    def execute(self, args: List[str]) -> Tuple[bool, str]:
        """Execute kubectl command and return success status and output."""
        cmd = self._build_command(args)
        logger.debug(f"Executing: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
            return True, result.stdout
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed: {e.stderr}")
            return False, e.stderr

    def get_json(self, resource_type: str, name: Optional[str] = None) -> Dict[str, Any]:
        """Get one resource as JSON, raising StateAccessError on failure."""
        args = ["get", resource_type]
        if name:
            args.append(name)
        args.extend(["-o", "json"])

        success, output = self.execute(args)
        if not success:
            raise StateAccessError(f"unable to fetch {resource_type} {name or ''}: {output.strip()}")
        try:
            return json.loads(output)
        except json.JSONDecodeError:
            raise StateAccessError(f"failed to parse {resource_type} {name or ''} as JSON")

    def get_node(self, name: str) -> NodeStatus:
        """Fetch the live status of a node."""
        data = self.get_json("node", name)
        metadata = data.get("metadata", {})
        return NodeStatus(
            name=metadata.get("name", name),
            os_image=data.get("status", {}).get("nodeInfo", {}).get("osImage", ""),
            unschedulable=bool(data.get("spec", {}).get("unschedulable", False)),
            labels=metadata.get("labels") or {},
        )

    def get_intent(self, name: str, resource: str = DEFAULT_INTENT_RESOURCE) -> UpgradeIntent:
        """Fetch the upgrade intent record and return its spec."""
        data = self.get_json(resource, name)
        try:
            return UpgradeIntent(**(data.get("spec") or {}))
        except ValidationError as e:
            raise StateAccessError(f"invalid {resource} {name}: {e}")

    def cordon(self, name: str) -> None:
        """Mark a node unschedulable."""
        self._run_drain_command(["cordon", name], f"cordon node {name}")

    def uncordon(self, name: str) -> None:
        """Mark a node schedulable again."""
        self._run_drain_command(["uncordon", name], f"uncordon node {name}")

    def drain(self, name: str, force: bool = False) -> None:
        """Evict workloads from a node, optionally including unmanaged pods."""
        args = [
            "drain",
            name,
            "--ignore-daemonsets",
            "--delete-emptydir-data",
        ]
        if force:
            args.append("--force")
        self._run_drain_command(args, f"drain node {name}")

    def remove_label(self, name: str, key: str) -> None:
        """Remove a label from a node; missing labels are not an error."""
        success, output = self.execute(["label", "node", name, f"{key}-"])
        if not success and "not found" not in output:
            raise StateAccessError(f"unable to delete label {key} from node {name}: {output.strip()}")

    def _run_drain_command(self, args: List[str], action: str) -> None:
        success, output = self.execute(args)
        if not success:
            raise DrainError(f"failed to {action}: {output.strip()}")
        logger.info(f"{action}: done")
