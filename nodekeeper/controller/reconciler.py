"""Per-node reconciliation: drain and upgrade, or restore scheduling."""

import threading
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ValidationError

from ..agent.client import AgentClient
from ..config import DEFAULT_INTENT_RESOURCE, DEFAULT_REQUEUE_AFTER
from ..errors import NodekeeperError, StateAccessError
from ..k8s.client import K8sClient
from ..k8s.watcher import ChangeWatcher
from ..model.upgrade import LABEL_UPGRADING, NodeStatus, UpgradeIntent, UpgradeRequest
from ..upgrade.stamps import StampStore
from ..utils.logger import get_logger

logger = get_logger(__name__)

RETRY_FLOOR = 1.0


class ReconcileAction(Enum):
    """What a reconciliation pass did."""

    UPGRADED = "upgraded"
    AWAITING_SIGNAL = "awaiting-signal"
    RESTORED = "restored"
    NONE = "none"
    FAILED = "failed"


class ReconcileResult(BaseModel):
    """Outcome of one pass and when the next one is due."""

    action: ReconcileAction
    requeue_after: float
    error: Optional[str] = None


def needs_upgrade(intent: UpgradeIntent, node: NodeStatus, stamps: StampStore) -> bool:
    """Decide whether the node still has an upgrade to do.

    A Kubernetes target is due until its stamp exists. With only an OS
    target, the reported OS image string must equal the desired version.
    """
    if intent.kube_version:
        return not stamps.has_stamp(intent.kube_version)
    return node.os_image != intent.os_version


class Reconciler:
    """Drives one node towards its upgrade intent."""

    def __init__(
        self,
        k8s: K8sClient,
        agent: AgentClient,
        stamps: StampStore,
        node_name: str,
        intent_name: str,
        intent_resource: str = DEFAULT_INTENT_RESOURCE,
        requeue_after: float = DEFAULT_REQUEUE_AFTER,
    ):
        self.k8s = k8s
        self.agent = agent
        self.stamps = stamps
        self.node_name = node_name
        self.intent_name = intent_name
        self.intent_resource = intent_resource
        self.requeue_after = requeue_after

    def reconcile(self) -> ReconcileResult:
        """Run one pass; failures are returned as an immediate requeue."""
        try:
            action = self._reconcile()
        except NodekeeperError as e:
            logger.error(f"Reconcile of node {self.node_name} failed: {e}")
            return ReconcileResult(action=ReconcileAction.FAILED, requeue_after=0, error=str(e))
        return ReconcileResult(action=action, requeue_after=self.requeue_after)

    def _reconcile(self) -> ReconcileAction:
        intent = self.k8s.get_intent(self.intent_name, self.intent_resource)
        node = self.k8s.get_node(self.node_name)

        if needs_upgrade(intent, node, self.stamps):
            if not node.is_signaled:
                logger.debug(f"Node {node.name} needs an upgrade but is not labeled {LABEL_UPGRADING}")
                return ReconcileAction.AWAITING_SIGNAL
            self.upgrade_node(intent, node)
            return ReconcileAction.UPGRADED

        if node.unschedulable or node.is_signaled:
            self.refresh_node(node)
            return ReconcileAction.RESTORED
        return ReconcileAction.NONE

    def upgrade_node(self, intent: UpgradeIntent, node: NodeStatus) -> None:
        """Cordon and drain the node, then hand the upgrade to its agent."""
        logger.info(
            f"Upgrading node {node.name}: os={intent.os_version or '-'} "
            f"kubernetes={intent.kube_version or '-'}"
        )
        try:
            request = UpgradeRequest.from_intent(intent, role=node.role)
        except ValidationError as e:
            raise StateAccessError(f"invalid upgrade record {self.intent_name}: {e}")

        if not node.unschedulable:
            self.k8s.cordon(node.name)
        self.k8s.drain(node.name, force=intent.evict_pod_force)
        self.agent.upgrade(request)
        logger.info(f"Upgrade of node {node.name} submitted to agent")

    def refresh_node(self, node: NodeStatus) -> None:
        """Drop the upgrading label and make the node schedulable again."""
        if node.is_signaled:
            try:
                self.k8s.remove_label(node.name, LABEL_UPGRADING)
            except StateAccessError as e:
                logger.error(f"Unable to delete {node.name} node label: {e}")
        if node.unschedulable:
            self.k8s.uncordon(node.name)
            logger.info(f"Uncordoned node {node.name}")


class Controller:
    """Runs reconciliation passes on change events and on a timer."""

    def __init__(self, reconciler: Reconciler, watcher: Optional[ChangeWatcher] = None):
        self.reconciler = reconciler
        self.watcher = watcher
        self.trigger = watcher.event if watcher else threading.Event()
        self._stopped = threading.Event()

    def start_watches(self, namespace: Optional[str] = None) -> None:
        """Watch the intent record and the node for changes."""
        if not self.watcher:
            return
        r = self.reconciler
        self.watcher.watch(r.intent_resource, r.intent_name, namespace)
        self.watcher.watch("node", r.node_name)

    def run_once(self) -> ReconcileResult:
        """Run a single pass."""
        self.trigger.clear()
        return self.reconciler.reconcile()

    def run(self, max_passes: Optional[int] = None) -> None:
        """Reconcile until stopped, or for ``max_passes`` passes."""
        passes = 0
        while not self._stopped.is_set():
            result = self.run_once()
            passes += 1
            if max_passes is not None and passes >= max_passes:
                break
            delay = max(result.requeue_after, RETRY_FLOOR)
            self.trigger.wait(delay)
        if self.watcher:
            self.watcher.stop()

    def stop(self) -> None:
        """Ask the loop to exit after the current pass."""
        self._stopped.set()
        self.trigger.set()
