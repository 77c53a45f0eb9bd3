from __future__ import annotations

import json
from pathlib import Path

import pytest

from pi_update.cli.update_notifier.adapters.filesystem_update_cache_repository import (
    FileSystemUpdateCacheRepository,
)
from pi_update.cli.update_notifier.ports.update_cache_repository import VersionCache


@pytest.mark.asyncio
async def test_reads_cache_from_file_when_present(tmp_path: Path) -> None:
    cache_file = tmp_path / "update-cache.json"
    cache_file.write_text(json.dumps({"latestVersion": "1.2.3"}))
    repository = FileSystemUpdateCacheRepository(cache_file)

    cache = await repository.get()

    assert cache == VersionCache(latest_version="1.2.3")


@pytest.mark.asyncio
async def test_reads_cache_with_dismissed_version(tmp_path: Path) -> None:
    cache_file = tmp_path / "update-cache.json"
    cache_file.write_text(
        json.dumps({"latestVersion": "2.0.0", "dismissedVersion": "2.0.0"})
    )
    repository = FileSystemUpdateCacheRepository(cache_file)

    cache = await repository.get()

    assert cache == VersionCache(latest_version="2.0.0", dismissed_version="2.0.0")


@pytest.mark.asyncio
async def test_returns_none_when_cache_file_is_missing(tmp_path: Path) -> None:
    repository = FileSystemUpdateCacheRepository(tmp_path / "missing.json")

    assert await repository.get() is None


@pytest.mark.parametrize(
    "content",
    [
        "{not-json",
        "[]",
        '"2.0.0"',
        json.dumps({"dismissedVersion": "2.0.0"}),
        json.dumps({"latestVersion": 2}),
    ],
)
@pytest.mark.asyncio
async def test_returns_none_when_cache_file_is_corrupted(
    tmp_path: Path, content: str
) -> None:
    cache_file = tmp_path / "update-cache.json"
    cache_file.write_text(content)
    repository = FileSystemUpdateCacheRepository(cache_file)

    assert await repository.get() is None


@pytest.mark.asyncio
async def test_returns_none_when_cache_file_is_not_utf8(tmp_path: Path) -> None:
    cache_file = tmp_path / "update-cache.json"
    cache_file.write_bytes(b"\xff\xfe\x00garbage")
    repository = FileSystemUpdateCacheRepository(cache_file)

    assert await repository.get() is None


@pytest.mark.asyncio
async def test_ignores_a_non_string_dismissed_version(tmp_path: Path) -> None:
    cache_file = tmp_path / "update-cache.json"
    cache_file.write_text(json.dumps({"latestVersion": "2.0.0", "dismissedVersion": 7}))
    repository = FileSystemUpdateCacheRepository(cache_file)

    cache = await repository.get()

    assert cache == VersionCache(latest_version="2.0.0", dismissed_version=None)


@pytest.mark.asyncio
async def test_round_trips_a_written_cache(tmp_path: Path) -> None:
    repository = FileSystemUpdateCacheRepository(tmp_path / "update-cache.json")

    await repository.set(VersionCache(latest_version="2.0.0"))

    assert await repository.get() == VersionCache(latest_version="2.0.0")


@pytest.mark.asyncio
async def test_writes_newline_terminated_json_without_absent_dismissal(
    tmp_path: Path,
) -> None:
    cache_file = tmp_path / "update-cache.json"
    repository = FileSystemUpdateCacheRepository(cache_file)

    await repository.set(VersionCache(latest_version="2.0.0"))

    content = cache_file.read_text()
    assert content.endswith("\n")
    assert json.loads(content) == {"latestVersion": "2.0.0"}


@pytest.mark.asyncio
async def test_writes_dismissed_version(tmp_path: Path) -> None:
    cache_file = tmp_path / "update-cache.json"
    repository = FileSystemUpdateCacheRepository(cache_file)

    await repository.set(
        VersionCache(latest_version="2.0.1", dismissed_version="2.0.0")
    )

    assert json.loads(cache_file.read_text()) == {
        "latestVersion": "2.0.1",
        "dismissedVersion": "2.0.0",
    }


@pytest.mark.asyncio
async def test_creates_missing_parent_directories(tmp_path: Path) -> None:
    cache_file = tmp_path / "deeply" / "nested" / "update-cache.json"
    repository = FileSystemUpdateCacheRepository(cache_file)

    await repository.set(VersionCache(latest_version="1.1.0"))

    assert cache_file.is_file()


@pytest.mark.asyncio
async def test_defaults_to_the_cache_file_under_pi_home(pi_home: Path) -> None:
    repository = FileSystemUpdateCacheRepository()

    await repository.set(VersionCache(latest_version="1.1.0"))

    assert repository.cache_file == pi_home / "agent" / "update-cache.json"
    assert repository.cache_file.is_file()


@pytest.mark.asyncio
async def test_silently_ignores_errors_when_writing_cache_fails(tmp_path: Path) -> None:
    cache_file = tmp_path / "update-cache.json"
    cache_file.mkdir()
    repository = FileSystemUpdateCacheRepository(cache_file)

    await repository.set(VersionCache(latest_version="1.2.0"))

    assert cache_file.is_dir()
    assert await repository.get() is None
