"""Upgrade intent, node status and the agent wire contract."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator

LABEL_UPGRADING = "upgrading"

CONTROL_PLANE_LABELS = (
    "node-role.kubernetes.io/control-plane",
    "node-role.kubernetes.io/master",
)


class NodeRole(str, Enum):
    """Role of a node, which selects the orchestrator upgrade command."""

    CONTROL_PLANE = "control-plane"
    WORKER = "worker"


class UpgradeIntent(BaseModel):
    """Desired versions for one node, written by an operator."""

    os_version: str = Field("", alias="osVersion")
    os_image_url: str = Field("", alias="osImageUrl")
    kube_version: str = Field("", alias="kubeVersion")
    evict_pod_force: bool = Field(False, alias="evictPodForce")

    class Config:
        populate_by_name = True


class NodeStatus(BaseModel):
    """Live state of a node as reported by the cluster."""

    name: str
    os_image: str = ""
    unschedulable: bool = False
    labels: Dict[str, str] = {}

    @property
    def is_signaled(self) -> bool:
        """True when the node carries the upgrading label."""
        return LABEL_UPGRADING in self.labels

    @property
    def role(self) -> NodeRole:
        """Node role derived from the well-known role labels."""
        if any(label in self.labels for label in CONTROL_PLANE_LABELS):
            return NodeRole.CONTROL_PLANE
        return NodeRole.WORKER


class UpgradeRequest(BaseModel):
    """Body of one Apply call to a node agent."""

    os_version: str = Field("", alias="osVersion")
    os_image_url: str = Field("", alias="osImageUrl")
    kube_version: str = Field("", alias="kubeVersion")
    node_role: Optional[NodeRole] = Field(None, alias="nodeRole")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_image_reference(self) -> "UpgradeRequest":
        """An OS image reference must accompany an OS version, and only then."""
        if self.os_version and not self.os_image_url:
            raise ValueError("osImageUrl is required when osVersion is set")
        if self.os_image_url and not self.os_version:
            raise ValueError("osImageUrl is only allowed together with osVersion")
        return self

    @classmethod
    def from_intent(cls, intent: UpgradeIntent, role: Optional[NodeRole] = None) -> "UpgradeRequest":
        """Build the request for one intent."""
        return cls(
            os_version=intent.os_version,
            os_image_url=intent.os_image_url if intent.os_version else "",
            kube_version=intent.kube_version,
            node_role=role,
        )


class UpgradeResponse(BaseModel):
    """Empty response payload of a successful Apply call."""


class ErrorResponse(BaseModel):
    """Error payload returned by the agent."""

    error: str
    detail: str
