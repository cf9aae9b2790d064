"""Change notifications for the objects the reconciler depends on."""

import subprocess
import threading
from typing import List, Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)


class ChangeWatcher:
    """Sets an event whenever ``kubectl get --watch`` reports a change.

    One background thread is started per watched object. When a watch stream
    ends it is restarted, so a dropped API connection only delays
    notifications until the periodic recheck.
    """

    def __init__(self, event: Optional[threading.Event] = None, context: Optional[str] = None):
        self.event = event or threading.Event()
        self.context = context
        self._stopped = threading.Event()
        self._threads: List[threading.Thread] = []
        self._processes: List[subprocess.Popen] = []
        self._lock = threading.Lock()

    def watch_command(self, resource: str, name: str, namespace: Optional[str] = None) -> List[str]:
        """Build the kubectl watch command for one object."""
        cmd = ["kubectl"]
        if self.context:
            cmd.extend(["--context", self.context])
        cmd.extend(["get", resource, name, "--watch", "-o", "name"])
        if namespace:
            cmd.extend(["-n", namespace])
        return cmd

    def watch(self, resource: str, name: str, namespace: Optional[str] = None) -> None:
        """Start watching one object in the background."""
        cmd = self.watch_command(resource, name, namespace)
        thread = threading.Thread(
            target=self._stream, args=(cmd,), name=f"watch-{resource}-{name}", daemon=True
        )
        self._threads.append(thread)
        thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop all watch streams and wait for their threads to exit."""
        self._stopped.set()
        with self._lock:
            for process in self._processes:
                process.terminate()
        for thread in self._threads:
            if thread is not threading.current_thread():
                thread.join(timeout)

    def _stream(self, cmd: List[str]) -> None:
        while not self._stopped.is_set():
            try:
                process = subprocess.Popen(
                    cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True
                )
            except FileNotFoundError:
                logger.error("kubectl command not found, change watch disabled")
                return

            with self._lock:
                self._processes.append(process)
            try:
                for line in process.stdout:
                    if line.strip():
                        logger.debug(f"Change observed: {line.strip()}")
                        self.event.set()
            finally:
                process.wait()
                with self._lock:
                    self._processes.remove(process)

            # Avoid a tight restart loop if the watch fails immediately.
            self._stopped.wait(5)
