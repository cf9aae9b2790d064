"""Version comparison and idempotency primitives."""

from .stamps import StampStore
from .versions import SemanticVersion, compare_versions, parse_version

__all__ = ["StampStore", "SemanticVersion", "compare_versions", "parse_version"]
