from __future__ import annotations

from pi_update.cli.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
    VersionCache,
)


class FakeUpdateCacheRepository(UpdateCacheRepository):
    def __init__(self, cache: VersionCache | None = None) -> None:
        self.cache: VersionCache | None = cache
        self.set_calls = 0

    async def get(self) -> VersionCache | None:
        return self.cache

    async def set(self, cache: VersionCache) -> None:
        self.set_calls += 1
        self.cache = cache
