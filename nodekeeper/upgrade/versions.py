"""Semantic version parsing and comparison."""

import re
from typing import NamedTuple, Tuple, Union

from ..errors import VersionParseError

VERSION_PATTERN = re.compile(
    r"v?(\d+)\.(\d+)(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z.-]+))?"
    r"(?:\+([0-9A-Za-z.-]+))?"
    r"(?:\s+\(.*\))?"
)


class SemanticVersion(NamedTuple):
    """A parsed major.minor.patch version with optional pre-release."""

    major: int
    minor: int
    patch: int = 0
    prerelease: str = ""
    build: str = ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def sort_key(self) -> Tuple:
        """Ordering key; build metadata does not take part in ordering."""
        if not self.prerelease:
            return (self.major, self.minor, self.patch, 1, ())
        identifiers = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in self.prerelease.split(".")
        )
        return (self.major, self.minor, self.patch, 0, identifiers)


def parse_version(version_string: str) -> SemanticVersion:
    """Parse a version such as ``v1.28.0``, ``1.28`` or ``"5.2"``."""
    text = version_string.strip().strip("'\"").strip()
    match = VERSION_PATTERN.fullmatch(text)
    if not match:
        raise VersionParseError(version_string)

    major, minor, patch, prerelease, build = match.groups()
    return SemanticVersion(
        major=int(major),
        minor=int(minor),
        patch=int(patch or 0),
        prerelease=prerelease or "",
        build=build or "",
    )


def compare_versions(
    left: Union[str, SemanticVersion], right: Union[str, SemanticVersion]
) -> int:
    """Return -1, 0 or 1 as left is older than, equal to or newer than right."""
    if isinstance(left, str):
        left = parse_version(left)
    if isinstance(right, str):
        right = parse_version(right)

    left_key, right_key = left.sort_key(), right.sort_key()
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0
