from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from pi_update.cli.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
    VersionCache,
)
from pi_update.core.paths.global_paths import UPDATE_CACHE_FILE

logger = logging.getLogger(__name__)


class FileSystemUpdateCacheRepository(UpdateCacheRepository):
    def __init__(self, cache_file: Path | str | None = None) -> None:
        self._cache_file = (
            Path(cache_file) if cache_file is not None else UPDATE_CACHE_FILE.path
        )

    @property
    def cache_file(self) -> Path:
        return self._cache_file

    async def get(self) -> VersionCache | None:
        try:
            content = await asyncio.to_thread(
                self._cache_file.read_text, encoding="utf-8"
            )
        except (OSError, UnicodeDecodeError):
            return None

        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.debug("Ignoring corrupt update cache at %s", self._cache_file)
            return None

        if not isinstance(data, dict):
            return None

        latest_version = data.get("latestVersion")
        if not isinstance(latest_version, str):
            return None

        dismissed_version = data.get("dismissedVersion")
        if not isinstance(dismissed_version, str):
            dismissed_version = None

        return VersionCache(
            latest_version=latest_version, dismissed_version=dismissed_version
        )

    async def set(self, cache: VersionCache) -> None:
        payload: dict[str, str] = {"latestVersion": cache.latest_version}
        if cache.dismissed_version is not None:
            payload["dismissedVersion"] = cache.dismissed_version

        try:
            await asyncio.to_thread(self._write, json.dumps(payload) + "\n")
        except OSError:
            logger.debug(
                "Could not write update cache to %s", self._cache_file, exc_info=True
            )

    def _write(self, content: str) -> None:
        self._cache_file.parent.mkdir(parents=True, exist_ok=True)
        self._cache_file.write_text(content, encoding="utf-8")
