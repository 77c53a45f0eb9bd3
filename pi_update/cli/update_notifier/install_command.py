from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
import os
import sys

import pi_update


class Runtime(StrEnum):
    PYTHON = "python"
    UV = "uv"
    FROZEN = "frozen"


class PackageManager(StrEnum):
    BINARY = "binary"
    UV = "uv"
    PIPX = "pipx"
    BREW = "brew"
    PIP = "pip"


# Single-file bundles unpack their modules into a `_MEIxxxxxx` directory.
FROZEN_BUNDLE_MARKER = "/_mei"

# Checked in order; the first manager whose marker appears in a path wins.
PATH_MARKERS: tuple[tuple[PackageManager, tuple[str, ...]], ...] = (
    (PackageManager.PIPX, ("/pipx/venvs/",)),
    (PackageManager.UV, ("/uv/tools/",)),
    (PackageManager.BREW, ("/cellar/", "/homebrew/")),
)


@dataclass(frozen=True, slots=True)
class InstallCommand:
    program: str
    args: tuple[str, ...] = ()
    manual_instructions: str | None = None

    @classmethod
    def manual(cls, instructions: str) -> InstallCommand:
        return cls(program="", manual_instructions=instructions)

    @property
    def is_executable(self) -> bool:
        return self.manual_instructions is None

    def display(self) -> str:
        if not self.is_executable:
            return "manual download"
        return " ".join((self.program, *self.args))


def _normalize(path: str) -> str:
    return path.replace("\\", "/").lower()


def classify_package_manager(
    runtime: Runtime, module_path: str, executable_path: str
) -> PackageManager:
    module = _normalize(module_path)
    if runtime is Runtime.FROZEN or FROZEN_BUNDLE_MARKER in module:
        return PackageManager.BINARY

    if runtime is Runtime.UV:
        return PackageManager.UV

    executable = _normalize(executable_path)
    for manager, markers in PATH_MARKERS:
        for path in (module, executable):
            if any(marker in path for marker in markers):
                return manager

    return PackageManager.PIP


def build_install_command(
    manager: PackageManager,
    package_name: str,
    version: str,
    *,
    python_executable: str,
    releases_url: str,
) -> InstallCommand:
    pinned = f"{package_name}=={version}"
    match manager:
        case PackageManager.BINARY:
            return InstallCommand.manual(
                f"This is a standalone build and cannot update itself. "
                f"Download {version} from {releases_url}"
            )
        case PackageManager.UV:
            return InstallCommand("uv", ("tool", "install", "--force", pinned))
        case PackageManager.PIPX:
            return InstallCommand("pipx", ("install", "--force", pinned))
        case PackageManager.BREW:
            return InstallCommand("brew", ("upgrade", package_name))
        case PackageManager.PIP:
            return InstallCommand(
                python_executable, ("-m", "pip", "install", "--upgrade", pinned)
            )


def detect_runtime(
    environ: Mapping[str, str] | None = None, *, frozen: bool | None = None
) -> Runtime:
    if frozen is None:
        frozen = bool(getattr(sys, "frozen", False))
    if frozen:
        return Runtime.FROZEN

    # uv exports its own path as UV to every process it launches.
    environ = os.environ if environ is None else environ
    if environ.get("UV"):
        return Runtime.UV

    return Runtime.PYTHON


def resolve_install_command(
    package_name: str,
    version: str,
    *,
    releases_url: str,
    runtime: Runtime | None = None,
    module_path: str | None = None,
    executable_path: str | None = None,
) -> InstallCommand:
    executable = executable_path if executable_path is not None else sys.executable
    manager = classify_package_manager(
        runtime if runtime is not None else detect_runtime(),
        module_path
        if module_path is not None
        else str(pi_update.PI_UPDATE_ROOT.resolve()),
        executable or "",
    )
    return build_install_command(
        manager,
        package_name,
        version,
        python_executable=executable or "python3",
        releases_url=releases_url,
    )
