from __future__ import annotations

import re
from typing import NamedTuple

# ASCII digits only: int() alone would also take "1_0" and non-ASCII digits.
_SEGMENT = re.compile(r"[+-]?[0-9]+")


class VersionTriple(NamedTuple):
    major: int
    minor: int
    patch: int


def parse_version(raw: str) -> VersionTriple | None:
    """Parse ``major.minor.patch`` into integers.

    Anything other than exactly three integer segments yields ``None``, so
    pre-release or build suffixes (``2.0.0-beta``) are not comparable.
    """
    parts = raw.strip().split(".")
    if len(parts) != 3 or not all(_SEGMENT.fullmatch(part) for part in parts):
        return None
    major, minor, patch = (int(part) for part in parts)
    return VersionTriple(major, minor, patch)


def is_newer(latest: str, current: str) -> bool:
    if (latest_triple := parse_version(latest)) is None:
        return False
    if (current_triple := parse_version(current)) is None:
        return False
    return latest_triple > current_triple
