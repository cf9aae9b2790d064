"""Applies OS and Kubernetes version transitions on the local node."""

import threading
from pathlib import Path
from typing import List, Optional

from ..config import AgentConfig
from ..errors import ExternalCommandError
from ..model.upgrade import NodeRole, UpgradeRequest
from ..upgrade.stamps import StampStore
from ..upgrade.versions import compare_versions
from ..utils.logger import get_logger
from .commands import CommandRunner

logger = get_logger(__name__)

OSTREE_IMAGE_PREFIX = "ostree-unverified-image:docker://"
KUBEADM = "/usr/bin/kubeadm"

KUBEADM_VERSION_CMD = [KUBEADM, "version", "-o", "short"]
UPGRADE_WORKER_CMD = [KUBEADM, "upgrade", "node"]
RUNTIME_RESTART_CMDS = [
    ["systemctl", "daemon-reload"],
    ["systemctl", "restart", "kubelet"],
]
REBOOT_CMD = ["systemctl", "reboot"]


def upgrade_control_plane_cmd(version: str) -> List[str]:
    """kubeadm command that upgrades a control-plane node to a version."""
    return [KUBEADM, "upgrade", "apply", "-y", version]


def rebase_cmd(image_url: str) -> List[str]:
    """rpm-ostree command that rebases the OS onto a container image."""
    return [
        "rpm-ostree",
        "rebase",
        "--experimental",
        f"{OSTREE_IMAGE_PREFIX}{image_url}",
        "--bypass-driver",
    ]


class UpgradeExecutor:
    """Runs upgrade requests one at a time on this node.

    Every call to :meth:`apply` holds the executor lock for its full duration,
    so concurrent requests run strictly one after another. Only one executor
    should exist per node.
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        runner: Optional[CommandRunner] = None,
        stamps: Optional[StampStore] = None,
    ):
        self.config = config or AgentConfig()
        self.runner = runner or CommandRunner(timeout=self.config.command_timeout)
        self.stamps = stamps or StampStore(self.config.stamp_dir)
        self._lock = threading.Lock()

    def apply(self, request: UpgradeRequest) -> None:
        """Apply the OS step and then the Kubernetes step of a request."""
        with self._lock:
            if request.os_version:
                self._apply_os(request)
            if request.kube_version:
                self._apply_kube(request)

    def resume_pending(self) -> bool:
        """Issue the reboot for a rebase that completed without one.

        Returns True when a reboot was requested.
        """
        with self._lock:
            markers = self.stamps.rebase_markers()
            if not markers:
                return False

            current = self.current_os_version()
            for version in markers:
                if compare_versions(version, current) <= 0:
                    self.stamps.clear_rebase_marker(version)

            pending = self.stamps.pending_rebase()
            if not pending:
                return False

            logger.info(f"Resuming OS upgrade to {pending}: rebase done, requesting reboot")
            self.runner.run(REBOOT_CMD)
            return True

    def current_os_version(self) -> str:
        """Read VERSION from the os-release file."""
        path = Path(self.config.os_release_path)
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            raise ExternalCommandError(["read", str(path)], reason=str(e))

        for line in lines:
            if line.startswith("VERSION="):
                return line[len("VERSION=") :].strip().strip("'\"")
        raise ExternalCommandError(["read", str(path)], reason="no VERSION entry")

    def kubeadm_version(self) -> str:
        """Version of the locally installed kubeadm binary."""
        return self.runner.run(KUBEADM_VERSION_CMD).strip()

    def node_role(self, request: UpgradeRequest) -> NodeRole:
        """Role from the request, or from the admin kubeconfig when absent."""
        if request.node_role is not None:
            return request.node_role
        if Path(self.config.admin_conf_path).exists():
            return NodeRole.CONTROL_PLANE
        return NodeRole.WORKER

    def _apply_os(self, request: UpgradeRequest) -> None:
        """Rebase onto the requested OS image and reboot, unless already there."""
        current = self.current_os_version()
        if compare_versions(current, request.os_version) == 0:
            logger.info(
                f"The current os version {current} and the desired upgrade version "
                f"{request.os_version} are the same"
            )
            self.stamps.clear_rebase_marker(request.os_version)
            return

        if self.stamps.has_rebase_marker(request.os_version):
            logger.info(f"Image for os version {request.os_version} already rebased, skipping rebase")
        else:
            logger.info(f"Rebasing os from {current} to {request.os_version} ({request.os_image_url})")
            try:
                self.runner.run(rebase_cmd(request.os_image_url))
            except ExternalCommandError as e:
                logger.error(f"Failed to upgrade os to {request.os_version}: {e}")
                raise
            self.stamps.write_rebase_marker(request.os_version)

        logger.info(f"Requesting reboot into os version {request.os_version}")
        self.runner.run(REBOOT_CMD)

    def _apply_kube(self, request: UpgradeRequest) -> None:
        """Run the kubeadm upgrade once per target version."""
        version = request.kube_version
        if self.stamps.has_stamp(version):
            logger.info(f"Kubernetes version {version} already applied, skipping")
            return

        installed = self.kubeadm_version()
        if compare_versions(installed, version) < 0:
            logger.info(
                f"The requested upgrade version {version} is larger than kubeadm's version {installed}"
            )
            return

        role = self.node_role(request)
        try:
            for cmd in RUNTIME_RESTART_CMDS:
                self.runner.run(cmd)
            if role == NodeRole.CONTROL_PLANE:
                self.runner.run(upgrade_control_plane_cmd(version))
            else:
                self.runner.run(UPGRADE_WORKER_CMD)
        except ExternalCommandError as e:
            logger.error(f"Failed to upgrade {role.value} node to kubernetes {version}: {e}")
            raise

        self.stamps.write_stamp(version)
        logger.info(f"Upgraded {role.value} node to kubernetes {version}")
