from __future__ import annotations

from collections.abc import Callable
import os
from pathlib import Path


class GlobalPath:
    def __init__(self, resolver: Callable[[], Path]) -> None:
        self._resolver = resolver

    @property
    def path(self) -> Path:
        return self._resolver()


_DEFAULT_PI_HOME = Path.home() / ".pi"


def _get_pi_home() -> Path:
    if pi_home := os.getenv("PI_HOME"):
        return Path(pi_home).expanduser().resolve()
    return _DEFAULT_PI_HOME


PI_HOME = GlobalPath(_get_pi_home)
UPDATE_CACHE_FILE = GlobalPath(lambda: PI_HOME.path / "agent" / "update-cache.json")
CONFIG_FILE = GlobalPath(lambda: PI_HOME.path / "update.toml")
LOG_DIR = GlobalPath(lambda: PI_HOME.path / "logs")
LOG_FILE = GlobalPath(lambda: LOG_DIR.path / "pi-update.log")
