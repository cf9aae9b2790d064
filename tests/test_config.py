"""Test configuration loading."""

import json

import pytest
import yaml

from nodekeeper.config import AgentConfig, ReconcilerConfig, load_config


class TestLoadConfig:
    def test_defaults(self):
        cfg = load_config(AgentConfig)
        assert cfg.stamp_dir == "/var/nodekeeper"
        assert cfg.port == 9420
        assert cfg.command_timeout == 600

    def test_yaml_section(self, tmp_path):
        path = tmp_path / "nodekeeper.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "agent": {"port": 9500, "command_timeout": 120},
                    "reconciler": {"node_name": "node7", "requeue_after": 30},
                }
            )
        )

        agent = load_config(AgentConfig, path, section="agent")
        reconciler = load_config(ReconcilerConfig, path, section="reconciler")

        assert agent.port == 9500
        assert agent.command_timeout == 120
        assert reconciler.node_name == "node7"
        assert reconciler.requeue_after == 30

    def test_json_file(self, tmp_path):
        path = tmp_path / "nodekeeper.json"
        path.write_text(json.dumps({"stamp_dir": "/tmp/stamps"}))

        assert load_config(AgentConfig, path).stamp_dir == "/tmp/stamps"

    def test_overrides_win_and_none_is_ignored(self, tmp_path):
        path = tmp_path / "nodekeeper.yaml"
        path.write_text("reconciler:\n  node_name: node7\n  namespace: upgrades\n")

        cfg = load_config(
            ReconcilerConfig, path, section="reconciler", node_name="node8", namespace=None
        )

        assert cfg.node_name == "node8"
        assert cfg.namespace == "upgrades"

    def test_missing_section(self, tmp_path):
        path = tmp_path / "nodekeeper.yaml"
        path.write_text("agent:\n  port: 9500\n")

        assert load_config(ReconcilerConfig, path, section="reconciler").node_name == ""

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "nodekeeper.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must be a mapping"):
            load_config(AgentConfig, path)
