"""Dotted version string comparison.

Versions are compared component by component. Numeric components compare as
integers, so ``1.10`` is newer than ``1.9`` and ``2`` is newer than
``1.9.9``. Shorter versions are padded with zeros (``1.2 == 1.2.0``).
"""

import re
from collections.abc import Iterable

_SEPARATORS = re.compile(r"[.\-_+]")
_CHUNKS = re.compile(r"\d+|[A-Za-z]+")


def parse_version(v: str) -> tuple[tuple[int, int | str], ...]:
    """Parse a version string into a sortable key.

    Each component becomes ``(0, number)`` for digits or ``(1, text)`` for
    letters. Tagging keeps integers and strings from ever being compared
    directly; letters sort after numbers at the same position.

    Args:
        v: Version string (e.g., '2.35.2', '4.1.0b2', '10.3-1')

    Returns:
        Tuple of tagged components
    """
    parts: list[tuple[int, int | str]] = []
    for piece in _SEPARATORS.split(v.strip()):
        if not piece:
            continue
        for chunk in _CHUNKS.findall(piece):
            if chunk.isdigit():
                parts.append((0, int(chunk)))
            else:
                parts.append((1, chunk.lower()))
    return tuple(parts)


def compare_versions(v1: str, v2: str) -> int:
    """Compare two version strings.

    Args:
        v1: First version string (e.g., '2.35.2')
        v2: Second version string (e.g., '2.30.0')

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
    """
    p1, p2 = parse_version(v1), parse_version(v2)
    # Pad shorter tuple with zeros
    max_len = max(len(p1), len(p2))
    p1 = p1 + ((0, 0),) * (max_len - len(p1))
    p2 = p2 + ((0, 0),) * (max_len - len(p2))

    if p1 < p2:
        return -1
    elif p1 > p2:
        return 1
    return 0


def version_lt(installed: str, latest: str) -> bool:
    """True when ``installed`` is strictly older than ``latest``."""
    return compare_versions(installed, latest) < 0


def newest_version(versions: Iterable[str | None]) -> str | None:
    """Return the newest of several versions, ignoring empty values."""
    newest: str | None = None
    for candidate in versions:
        if not candidate:
            continue
        if newest is None or version_lt(newest, candidate):
            newest = candidate
    return newest


def truncate_version(v: str, parts: int = 3) -> str:
    """Keep the first ``parts`` dotted components (``3.12.4.1`` → ``3.12.4``)."""
    return ".".join(v.split(".")[:parts])
