from __future__ import annotations

from pathlib import Path

import pytest

from pi_update.core.config import UpdaterConfig
from pi_update.core.paths import global_paths


@pytest.fixture(autouse=True)
def pi_home(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> Path:
    pi_home = tmp_path_factory.mktemp("pi") / ".pi"
    monkeypatch.delenv("PI_HOME", raising=False)
    monkeypatch.setattr(global_paths, "_DEFAULT_PI_HOME", pi_home)
    return pi_home


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "UV",
        "PI_UPDATE_PACKAGE_NAME",
        "PI_UPDATE_CURRENT_VERSION",
        "PI_UPDATE_ENABLE_UPDATE_CHECKS",
        "PI_UPDATE_CACHE_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def updater_config(tmp_path: Path) -> UpdaterConfig:
    return build_test_updater_config(cache_file=tmp_path / "update-cache.json")


def build_test_updater_config(**kwargs) -> UpdaterConfig:
    kwargs.setdefault("package_name", "pi-coding-agent")
    kwargs.setdefault("current_version", "1.0.0")
    return UpdaterConfig(**kwargs)
