"""Test configuration and fixtures."""

from typing import Dict, List, Optional
from unittest.mock import Mock

import pytest

from nodekeeper.agent.commands import CommandRunner
from nodekeeper.agent.executor import KUBEADM_VERSION_CMD
from nodekeeper.config import AgentConfig
from nodekeeper.errors import ExternalCommandError
from nodekeeper.upgrade.stamps import StampStore


class FakeRunner:
    """Records commands instead of running them."""

    def __init__(self, outputs: Optional[Dict[str, str]] = None, fail_on: Optional[str] = None):
        self.outputs = outputs or {}
        self.fail_on = fail_on
        self.calls: List[List[str]] = []

    def run(self, args: List[str], timeout: Optional[float] = None) -> str:
        self.calls.append(list(args))
        joined = " ".join(args)
        if self.fail_on and self.fail_on in joined:
            raise ExternalCommandError(args, returncode=1, stderr="boom")
        for key, value in self.outputs.items():
            if key in joined:
                return value
        return ""

    def joined_calls(self) -> List[str]:
        return [" ".join(call) for call in self.calls]


def write_os_release(path, version: str):
    path.write_text(
        'NAME="NodeOS"\n'
        f'VERSION="{version}"\n'
        'ID="nodeos"\n'
        f'VERSION_ID="{version}"\n'
    )


@pytest.fixture
def stamp_dir(tmp_path):
    """Directory used for upgrade markers."""
    return tmp_path / "stamps"


@pytest.fixture
def stamps(stamp_dir):
    return StampStore(stamp_dir)


@pytest.fixture
def os_release(tmp_path):
    """os-release file reporting version 5.2."""
    path = tmp_path / "os-release"
    write_os_release(path, "5.2")
    return path


@pytest.fixture
def agent_config(tmp_path, stamp_dir, os_release):
    return AgentConfig(
        stamp_dir=str(stamp_dir),
        os_release_path=str(os_release),
        admin_conf_path=str(tmp_path / "admin.conf"),
        command_timeout=5,
    )


@pytest.fixture
def fake_runner():
    """Runner whose kubeadm reports v1.28.0."""
    return FakeRunner(outputs={" ".join(KUBEADM_VERSION_CMD): "v1.28.0\n"})


@pytest.fixture
def mock_runner():
    runner = Mock(spec=CommandRunner)
    runner.run = Mock(return_value="")
    return runner


@pytest.fixture
def sample_node_json():
    """kubectl get node -o json output for a worker node."""
    return {
        "apiVersion": "v1",
        "kind": "Node",
        "metadata": {
            "name": "node1",
            "labels": {
                "kubernetes.io/hostname": "node1",
                "upgrading": "",
            },
        },
        "spec": {"unschedulable": True},
        "status": {"nodeInfo": {"osImage": "5.1", "kubeletVersion": "v1.27.3"}},
    }


@pytest.fixture
def sample_intent_json():
    """kubectl get upgrades.nodekeeper.io -o json output."""
    return {
        "apiVersion": "nodekeeper.io/v1alpha1",
        "kind": "Upgrade",
        "metadata": {"name": "node1", "namespace": "default"},
        "spec": {
            "osVersion": "5.2",
            "osImageUrl": "registry/os:5.2",
            "kubeVersion": "1.28.0",
            "evictPodForce": True,
        },
    }


@pytest.fixture
def make_runner():
    """Factory for FakeRunner instances with custom outputs."""
    return FakeRunner


@pytest.fixture
def set_os_version(os_release):
    """Rewrite the os-release file with another version."""

    def _set(version: str):
        write_os_release(os_release, version)

    return _set
