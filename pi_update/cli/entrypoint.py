from __future__ import annotations

import argparse
import asyncio
import sys
import tomllib
from typing import Any

from pydantic import ValidationError
from pydantic_settings import SettingsError
from rich import print as rprint
from rich.markup import escape

from pi_update import __version__
from pi_update.cli.host.console import ConsoleHost
from pi_update.cli.host.ports import LifecycleEvent
from pi_update.cli.update_notifier.adapters.filesystem_update_cache_repository import (
    FileSystemUpdateCacheRepository,
)
from pi_update.cli.update_notifier.controller import (
    UPDATE_COMMAND,
    UpdateController,
    register,
)
from pi_update.cli.update_notifier.install_command import resolve_install_command
from pi_update.core.config import UpdaterConfig
from pi_update.core.utils import logger, setup_logging


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pi-update", description="Check for a newer release and install it"
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--passive",
        action="store_true",
        help="Behave like a session start: prompt only from the cached result "
        "and refresh the cache in the background.",
    )
    mode.add_argument(
        "--status",
        action="store_true",
        help="Show the cached update state without contacting the registry.",
    )
    parser.add_argument(
        "--package", metavar="NAME", help="Distribution name to check on the registry."
    )
    parser.add_argument(
        "--current-version",
        metavar="VERSION",
        help="Version to compare against instead of the installed one.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log debug output to stderr."
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> UpdaterConfig:
    overrides: dict[str, Any] = {}
    if args.package:
        overrides["package_name"] = args.package
    if args.current_version:
        overrides["current_version"] = args.current_version
    return UpdaterConfig(**overrides)


async def show_status(config: UpdaterConfig) -> None:
    repository = FileSystemUpdateCacheRepository(config.resolved_cache_file)
    cache = await repository.get()
    current_version = config.resolved_current_version

    rprint(f"Package:          {escape(config.package_name)}")
    rprint(f"Current version:  {escape(current_version)}")
    rprint(f"Cache file:       {escape(str(repository.cache_file))}")
    if cache is None:
        rprint("[dim]No cached update information yet.[/]")
        return
    rprint(f"Latest known:     {escape(cache.latest_version)}")
    rprint(f"Dismissed:        {escape(cache.dismissed_version or '-')}")
    command = resolve_install_command(
        config.package_name, cache.latest_version, releases_url=config.releases_url
    )
    rprint(f"Install command:  {escape(command.display())}")


async def run_passive(host: ConsoleHost, controller: UpdateController) -> None:
    await host.emit(LifecycleEvent.SESSION_START)
    await controller.tasks.join()
    await host.join()


async def run_update_command(host: ConsoleHost, controller: UpdateController) -> None:
    await host.run_command(UPDATE_COMMAND)
    await controller.tasks.join()
    await host.join()


def main(argv: list[str] | None = None) -> None:
    args = parse_arguments(argv)
    setup_logging(verbose=args.verbose)

    try:
        config = load_config(args)
    except (ValidationError, SettingsError, tomllib.TOMLDecodeError) as e:
        rprint(f"[red]Invalid configuration: {escape(str(e))}[/]")
        sys.exit(1)

    if args.status:
        asyncio.run(show_status(config))
        return

    host = ConsoleHost()
    controller = register(host, config=config)
    logger.debug(
        "Checking %s (current %s)", config.package_name, controller.current_version
    )

    try:
        if args.passive:
            asyncio.run(run_passive(host, controller))
        else:
            asyncio.run(run_update_command(host, controller))
    except KeyboardInterrupt:
        sys.exit(130)

    if host.shutdown_requested:
        rprint("[green]Restart to use the new version.[/]")
        sys.exit(0)


if __name__ == "__main__":
    main()
