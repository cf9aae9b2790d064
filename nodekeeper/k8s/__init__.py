"""Kubernetes interaction module."""

from .client import K8sClient
from .watcher import ChangeWatcher

__all__ = ["K8sClient", "ChangeWatcher"]
