from __future__ import annotations

import logging

from pi_update.cli.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
    VersionCache,
)
from pi_update.cli.update_notifier.ports.update_gateway import (
    RegistryError,
    UpdateGateway,
)
from pi_update.core.utils import BackgroundTasks
from pi_update.core.version import is_newer

logger = logging.getLogger(__name__)


async def fetch_latest_version(gateway: UpdateGateway) -> str | None:
    try:
        update = await gateway.fetch_update()
    except RegistryError as error:
        logger.warning("Update check failed (%s): %s", error.cause, error)
        return None
    if update is None:
        return None
    return update.latest_version


async def store_latest_version(
    latest_version: str, repository: UpdateCacheRepository
) -> None:
    # The dismissal is read at write time, not before the fetch started.
    cached = await repository.get()
    await repository.set(
        VersionCache(
            latest_version=latest_version,
            dismissed_version=cached.dismissed_version if cached else None,
        )
    )


async def refresh_update_cache(
    gateway: UpdateGateway, repository: UpdateCacheRepository
) -> None:
    if latest_version := await fetch_latest_version(gateway):
        await store_latest_version(latest_version, repository)


def should_prompt(cache: VersionCache | None, current_version: str) -> bool:
    if cache is None:
        return False
    if not is_newer(cache.latest_version, current_version):
        return False
    return cache.latest_version != cache.dismissed_version


async def get_upgrade_version(
    gateway: UpdateGateway,
    current_version: str,
    repository: UpdateCacheRepository,
    *,
    tasks: BackgroundTasks,
) -> str | None:
    """Answer from the cache and refresh it for the next run.

    The refresh is spawned on every call, whatever the answer, and is never
    awaited here.
    """
    cache = await repository.get()
    tasks.spawn(refresh_update_cache(gateway, repository))

    if cache is None or not should_prompt(cache, current_version):
        return None
    return cache.latest_version


async def dismiss_version(version: str, repository: UpdateCacheRepository) -> None:
    if (cache := await repository.get()) is None:
        return
    await repository.set(
        VersionCache(latest_version=cache.latest_version, dismissed_version=version)
    )
