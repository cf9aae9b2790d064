"""Durable markers that make upgrade steps idempotent across restarts."""

from pathlib import Path
from typing import List, Optional, Union

from ..config import DEFAULT_STAMP_DIR
from ..errors import VersionParseError
from ..utils.logger import get_logger
from .versions import parse_version

logger = get_logger(__name__)

STAMP_SUFFIX = ".stamp"
REBASE_SUFFIX = ".rebased"


class StampStore:
    """Marker files under one node-local directory.

    A ``<kubeVersion>.stamp`` file records a completed orchestrator upgrade and
    is never removed. A ``<osVersion>.rebased`` file records a completed image
    rebase whose reboot may not have happened yet; it is cleared once the node
    reports the new OS version.
    """

    def __init__(self, directory: Union[str, Path] = DEFAULT_STAMP_DIR):
        self.directory = Path(directory)

    def stamp_path(self, kube_version: str) -> Path:
        """Path of the marker for one orchestrator version."""
        return self.directory / f"{kube_version}{STAMP_SUFFIX}"

    def has_stamp(self, kube_version: str) -> bool:
        """Check whether the orchestrator upgrade to this version was applied."""
        return self.stamp_path(kube_version).exists()

    def write_stamp(self, kube_version: str) -> Path:
        """Record a successful orchestrator upgrade."""
        return self._touch(self.stamp_path(kube_version))

    def rebase_marker_path(self, os_version: str) -> Path:
        """Path of the pending-reboot marker for one OS version."""
        return self.directory / f"{os_version}{REBASE_SUFFIX}"

    def has_rebase_marker(self, os_version: str) -> bool:
        """Check whether the image for this OS version was already rebased onto."""
        return self.rebase_marker_path(os_version).exists()

    def write_rebase_marker(self, os_version: str) -> Path:
        """Record a successful rebase that still needs a reboot.

        Only the most recent rebase is bootable, so markers for other
        versions are dropped.
        """
        for other in self.rebase_markers():
            if other != os_version:
                self.clear_rebase_marker(other)
        return self._touch(self.rebase_marker_path(os_version))

    def clear_rebase_marker(self, os_version: str) -> None:
        """Drop the pending-reboot marker once the node runs the new OS."""
        path = self.rebase_marker_path(os_version)
        if path.exists():
            path.unlink()
            logger.info(f"Cleared rebase marker {path}")

    def rebase_markers(self) -> List[str]:
        """OS versions of all rebase markers, oldest version first."""
        if not self.directory.is_dir():
            return []
        versions = []
        for path in self.directory.glob(f"*{REBASE_SUFFIX}"):
            version = path.name[: -len(REBASE_SUFFIX)]
            try:
                parse_version(version)
            except VersionParseError:
                logger.warning(f"Ignoring rebase marker with invalid version: {path}")
                continue
            versions.append(version)
        return sorted(versions, key=lambda v: parse_version(v).sort_key())

    def pending_rebase(self) -> Optional[str]:
        """Return the newest OS version with a rebase marker, if any."""
        markers = self.rebase_markers()
        return markers[-1] if markers else None

    def _touch(self, path: Path) -> Path:
        """Create an empty marker, creating the directory first if needed."""
        if path.exists():
            return path
        self.directory.mkdir(parents=True, exist_ok=True)
        path.touch()
        logger.info(f"Wrote marker {path}")
        return path
