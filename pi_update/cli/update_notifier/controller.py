from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

from pi_update.cli.host.ports import (
    ExtensionAPI,
    ExtensionContext,
    LifecycleEvent,
    NotifyLevel,
)
from pi_update.cli.update_notifier.adapters.filesystem_update_cache_repository import (
    FileSystemUpdateCacheRepository,
)
from pi_update.cli.update_notifier.adapters.pypi_update_gateway import (
    PyPIUpdateGateway,
)
from pi_update.cli.update_notifier.install_command import (
    InstallCommand,
    resolve_install_command,
)
from pi_update.cli.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
)
from pi_update.cli.update_notifier.ports.update_gateway import UpdateGateway
from pi_update.cli.update_notifier.update import (
    dismiss_version,
    fetch_latest_version,
    get_upgrade_version,
    store_latest_version,
)
from pi_update.core.config import UpdaterConfig
from pi_update.core.utils import BackgroundTasks
from pi_update.core.version import is_newer

logger = logging.getLogger(__name__)

UPDATE_COMMAND = "update"
UPDATE_COMMAND_DESCRIPTION = "Check for updates and install"

CHOICE_SKIP = "Skip"
CHOICE_SKIP_VERSION = "Skip this version"

InstallCommandResolver = Callable[[str], InstallCommand]


class UpdateController:
    def __init__(
        self,
        api: ExtensionAPI,
        gateway: UpdateGateway,
        repository: UpdateCacheRepository,
        config: UpdaterConfig,
        *,
        current_version: str,
        install_command_resolver: InstallCommandResolver | None = None,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        self._api = api
        self._gateway = gateway
        self._repository = repository
        self._config = config
        self.current_version = current_version
        self._resolve_install_command = (
            install_command_resolver or self._default_install_command
        )
        self.tasks = tasks if tasks is not None else BackgroundTasks(name="update")

    def _default_install_command(self, version: str) -> InstallCommand:
        return resolve_install_command(
            self._config.package_name,
            version,
            releases_url=self._config.releases_url,
        )

    async def on_session_start(self, event: Any, ctx: ExtensionContext) -> None:
        await self._passive_check(ctx)

    async def on_session_switch(self, event: Any, ctx: ExtensionContext) -> None:
        await self._passive_check(ctx)

    async def _passive_check(self, ctx: ExtensionContext) -> None:
        if not ctx.has_ui:
            return
        latest = await get_upgrade_version(
            self._gateway, self.current_version, self._repository, tasks=self.tasks
        )
        if latest:
            self.tasks.spawn(self.show_update_prompt(ctx, latest))

    async def check_for_updates(self, args: str, ctx: ExtensionContext) -> None:
        latest = await ctx.ui.run_with_loader(
            "Checking for updates...", lambda: fetch_latest_version(self._gateway)
        )
        if not latest:
            ctx.ui.notify("Could not reach the package registry.", NotifyLevel.ERROR)
            return

        await store_latest_version(latest, self._repository)

        if not is_newer(latest, self.current_version):
            ctx.ui.notify(
                f"Already on latest version ({self.current_version}).",
                NotifyLevel.INFO,
            )
            return

        await self.show_update_prompt(ctx, latest)

    async def show_update_prompt(self, ctx: ExtensionContext, latest: str) -> None:
        command = self._resolve_install_command(latest)
        choice = await ctx.ui.select(
            f"Update {self.current_version} → {latest}",
            [f"Update now ({command.display()})", CHOICE_SKIP, CHOICE_SKIP_VERSION],
        )

        if not choice or choice == CHOICE_SKIP:
            return
        if choice == CHOICE_SKIP_VERSION:
            logger.info("Dismissed update to %s", latest)
            await dismiss_version(latest, self._repository)
            return
        await self.install(ctx, latest, command)

    async def install(
        self, ctx: ExtensionContext, latest: str, command: InstallCommand
    ) -> bool:
        success = await ctx.ui.run_with_loader(
            f"Installing {latest}...", lambda: self._run_install(ctx, command)
        )
        if not success:
            return False

        logger.info("Updated to %s", latest)
        if await ctx.ui.confirm(
            f"Updated to {latest}!",
            "Shut down now? Restart to use the new version.",
        ):
            ctx.shutdown()
        return True

    async def _run_install(
        self, ctx: ExtensionContext, command: InstallCommand
    ) -> bool:
        if not command.is_executable:
            ctx.ui.notify(command.manual_instructions or "", NotifyLevel.INFO)
            return False

        logger.info("Running %s", command.display())
        try:
            result = await self._api.exec(
                command.program,
                list(command.args),
                timeout=self._config.install_timeout,
            )
        except (OSError, TimeoutError) as exc:
            logger.warning("Update command %s failed", command.display(), exc_info=True)
            ctx.ui.notify(f"Update failed: {exc}", NotifyLevel.ERROR)
            return False

        if result.code != 0:
            output = (result.stderr or result.stdout).strip()
            logger.warning("Update command exited with %d: %s", result.code, output)
            ctx.ui.notify(
                f"Update failed (exit {result.code}): {output}", NotifyLevel.ERROR
            )
            return False
        return True


def register(
    api: ExtensionAPI,
    *,
    config: UpdaterConfig | None = None,
    gateway: UpdateGateway | None = None,
    repository: UpdateCacheRepository | None = None,
    current_version: str | None = None,
    install_command_resolver: InstallCommandResolver | None = None,
    tasks: BackgroundTasks | None = None,
) -> UpdateController:
    config = config or UpdaterConfig()
    controller = UpdateController(
        api,
        gateway
        or PyPIUpdateGateway(
            config.package_name,
            timeout=config.registry_timeout,
            base_url=config.registry_base_url,
        ),
        repository or FileSystemUpdateCacheRepository(config.resolved_cache_file),
        config,
        current_version=current_version or config.resolved_current_version,
        install_command_resolver=install_command_resolver,
        tasks=tasks,
    )

    if config.enable_update_checks:
        api.on(LifecycleEvent.SESSION_START, controller.on_session_start)
        api.on(LifecycleEvent.SESSION_SWITCH, controller.on_session_switch)
    api.register_command(
        UPDATE_COMMAND,
        description=UPDATE_COMMAND_DESCRIPTION,
        handler=controller.check_for_updates,
    )
    return controller
