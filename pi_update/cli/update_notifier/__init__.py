from __future__ import annotations

from pi_update.cli.update_notifier.adapters.filesystem_update_cache_repository import (
    FileSystemUpdateCacheRepository,
)
from pi_update.cli.update_notifier.adapters.pypi_update_gateway import (
    PyPIUpdateGateway,
)
from pi_update.cli.update_notifier.install_command import (
    InstallCommand,
    PackageManager,
    Runtime,
    classify_package_manager,
    resolve_install_command,
)
from pi_update.cli.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
    VersionCache,
)
from pi_update.cli.update_notifier.ports.update_gateway import (
    RegistryError,
    RegistryErrorCause,
    Update,
    UpdateGateway,
)
from pi_update.cli.update_notifier.update import (
    dismiss_version,
    fetch_latest_version,
    get_upgrade_version,
    refresh_update_cache,
    should_prompt,
)

__all__ = [
    "FileSystemUpdateCacheRepository",
    "InstallCommand",
    "PackageManager",
    "PyPIUpdateGateway",
    "RegistryError",
    "RegistryErrorCause",
    "Runtime",
    "Update",
    "UpdateCacheRepository",
    "UpdateGateway",
    "VersionCache",
    "classify_package_manager",
    "dismiss_version",
    "fetch_latest_version",
    "get_upgrade_version",
    "refresh_update_cache",
    "resolve_install_command",
    "should_prompt",
]
