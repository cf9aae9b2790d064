"""Cluster-side reconciliation of node upgrades."""

from .reconciler import Controller, ReconcileAction, ReconcileResult, Reconciler, needs_upgrade

__all__ = ["Controller", "ReconcileAction", "ReconcileResult", "Reconciler", "needs_upgrade"]
