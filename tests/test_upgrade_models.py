"""Test data models."""

import pytest
from pydantic import ValidationError

from nodekeeper.model.upgrade import NodeRole, NodeStatus, UpgradeIntent, UpgradeRequest


class TestUpgradeIntent:
    def test_from_wire_names(self):
        intent = UpgradeIntent(
            **{
                "osVersion": "5.2",
                "osImageUrl": "registry/os:5.2",
                "kubeVersion": "1.28.0",
                "evictPodForce": True,
            }
        )
        assert intent.os_version == "5.2"
        assert intent.evict_pod_force is True

    def test_defaults(self):
        intent = UpgradeIntent()
        assert intent.os_version == ""
        assert intent.kube_version == ""
        assert intent.evict_pod_force is False


class TestNodeStatus:
    def test_signal_and_role(self):
        node = NodeStatus(name="node1", labels={"upgrading": "", "node-role.kubernetes.io/master": ""})
        assert node.is_signaled is True
        assert node.role == NodeRole.CONTROL_PLANE

    def test_plain_worker(self):
        node = NodeStatus(name="node1")
        assert node.is_signaled is False
        assert node.role == NodeRole.WORKER


class TestUpgradeRequest:
    def test_os_version_requires_image(self):
        with pytest.raises(ValidationError, match="osImageUrl is required"):
            UpgradeRequest(os_version="5.2")

    def test_image_without_os_version_rejected(self):
        with pytest.raises(ValidationError):
            UpgradeRequest(os_image_url="registry/os:5.2")

    def test_from_intent_drops_unused_image(self):
        intent = UpgradeIntent(os_image_url="registry/os:5.2", kube_version="1.28.0")

        request = UpgradeRequest.from_intent(intent, role=NodeRole.WORKER)

        assert request.os_image_url == ""
        assert request.kube_version == "1.28.0"
        assert request.node_role == NodeRole.WORKER

    def test_wire_format(self):
        request = UpgradeRequest(os_version="5.2", os_image_url="registry/os:5.2")
        assert request.model_dump(by_alias=True, mode="json") == {
            "osVersion": "5.2",
            "osImageUrl": "registry/os:5.2",
            "kubeVersion": "",
            "nodeRole": None,
        }
