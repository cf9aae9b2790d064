"""Data models for nodekeeper."""

from .upgrade import (
    LABEL_UPGRADING,
    ErrorResponse,
    NodeRole,
    NodeStatus,
    UpgradeIntent,
    UpgradeRequest,
    UpgradeResponse,
)

__all__ = [
    "LABEL_UPGRADING",
    "ErrorResponse",
    "NodeRole",
    "NodeStatus",
    "UpgradeIntent",
    "UpgradeRequest",
    "UpgradeResponse",
]
