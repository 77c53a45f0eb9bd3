from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class VersionCache:
    """Persisted as `{"latestVersion": ..., "dismissedVersion": ...}`."""

    latest_version: str
    dismissed_version: str | None = None


class UpdateCacheRepository(Protocol):
    async def get(self) -> VersionCache | None: ...
    async def set(self, cache: VersionCache) -> None: ...
