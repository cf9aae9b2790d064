"""Test change watching."""

import io
import threading
from unittest.mock import MagicMock, patch

from nodekeeper.k8s.watcher import ChangeWatcher


class TestChangeWatcher:
    def test_watch_command(self):
        watcher = ChangeWatcher(context="prod")
        cmd = watcher.watch_command("upgrades.nodekeeper.io", "node1", "default")
        assert cmd == [
            "kubectl",
            "--context",
            "prod",
            "get",
            "upgrades.nodekeeper.io",
            "node1",
            "--watch",
            "-o",
            "name",
            "-n",
            "default",
        ]

    def test_watch_command_cluster_scoped(self):
        cmd = ChangeWatcher().watch_command("node", "node1")
        assert cmd == ["kubectl", "get", "node", "node1", "--watch", "-o", "name"]

    @patch("subprocess.Popen")
    def test_output_sets_event(self, mock_popen):
        event = threading.Event()
        watcher = ChangeWatcher(event=event)

        def fake_process(*args, **kwargs):
            process = MagicMock()
            process.stdout = io.StringIO("node/node1\n")
            process.wait.side_effect = lambda: watcher.stop()
            return process

        mock_popen.side_effect = fake_process

        watcher.watch("node", "node1")

        assert event.wait(2)
        watcher._threads[0].join(2)
        assert not watcher._threads[0].is_alive()

    @patch("subprocess.Popen")
    def test_stop_joins_threads(self, mock_popen):
        started = threading.Event()

        def fake_process(*args, **kwargs):
            process = MagicMock()
            process.stdout = io.StringIO("")
            started.set()
            return process

        mock_popen.side_effect = fake_process
        watcher = ChangeWatcher()
        watcher.watch("node", "node1")
        assert started.wait(2)

        watcher.stop(timeout=2)

        assert not watcher._threads[0].is_alive()
