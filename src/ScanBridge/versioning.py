"""Tolerant version comparison for bridge releases.

Bridge versions arrive from several places: ``bridge-cli --version`` output,
``versions.txt`` manifests, Artifactory listings and user inputs. They are not
reliably SemVer, so comparison works on a *coerced* ``(major, minor, patch)``
token: the first run of up to three dot-separated integers in the string,
with missing components filled by zero. Anything after that run (pre-release
tags, build metadata) is ignored, so ``3.9.0rc1``, ``3.9.0rc2`` and ``3.9.0``
all compare equal.

A string without any digits cannot be coerced. Both comparison predicates
return ``False`` for such a pair, so callers that gate behaviour on a version
threshold fall back to the conservative branch.

Example:
    >>> is_version_less("3.8.0", "3.9.0")
    True
    >>> is_version_greater_or_equal("v3.9.0-rc.2", "3.9.0")
    True
    >>> is_version_less("invalid", "3.9.0"), is_version_greater_or_equal("invalid", "3.9.0")
    (False, False)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

__all__ = [
    "VersionToken",
    "coerce_version",
    "is_version_less",
    "is_version_greater_or_equal",
]

_COERCE_PATTERN = re.compile(r"(?<!\d)(\d+)(?:\.(\d+))?(?:\.(\d+))?")


@dataclass(frozen=True, order=True)
class VersionToken:
    """Normalized ``major.minor.patch`` triple."""

    major: int
    minor: int = 0
    patch: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)


def coerce_version(value: Optional[str]) -> Optional[VersionToken]:
    """Coerce ``value`` into a :class:`VersionToken`.

    Args:
        value: Free-form version string such as ``"3.9.2rc2"`` or ``"v2.1"``.

    Returns:
        The coerced token, or ``None`` when ``value`` holds no numeric version.
    """
    if not value:
        return None
    match = _COERCE_PATTERN.search(str(value))
    if match is None:
        return None
    major, minor, patch = match.groups()
    return VersionToken(int(major), int(minor or 0), int(patch or 0))


def _coerce_pair(a: Optional[str], b: Optional[str]) -> Optional[tuple[VersionToken, VersionToken]]:
    left = coerce_version(a)
    right = coerce_version(b)
    if left is None or right is None:
        return None
    return left, right


def is_version_less(a: Optional[str], b: Optional[str]) -> bool:
    """Return ``True`` when ``a`` is strictly older than ``b``."""
    pair = _coerce_pair(a, b)
    if pair is None:
        return False
    return pair[0] < pair[1]


def is_version_greater_or_equal(a: Optional[str], b: Optional[str]) -> bool:
    """Return ``True`` when ``a`` is the same as or newer than ``b``."""
    pair = _coerce_pair(a, b)
    if pair is None:
        return False
    return pair[0] >= pair[1]
