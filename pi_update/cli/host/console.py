from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterator, Sequence
import contextlib
from dataclasses import dataclass
import logging
import signal
import sys
import threading
from typing import Any, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from pi_update.cli.host.ports import (
    CommandHandler,
    EventHandler,
    ExecResult,
    LifecycleEvent,
    NotifyLevel,
    UpdateUI,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIMEOUT_EXIT_CODE = 124

_NOTIFY_STYLES: dict[NotifyLevel, str] = {
    NotifyLevel.INFO: "cyan",
    NotifyLevel.WARNING: "yellow",
    NotifyLevel.ERROR: "red",
}


@contextlib.contextmanager
def _interruptible() -> Iterator[None]:
    """Make SIGINT raise ``KeyboardInterrupt`` while blocked on terminal input.

    ``asyncio.run`` only cancels its main task on SIGINT, which a blocking
    read never notices.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, signal.default_int_handler)
    try:
        yield
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)


class ConsoleUI(UpdateUI):
    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()
        self._abandoned: set[asyncio.Future[Any]] = set()

    async def run_with_loader(
        self, title: str, work: Callable[[], Awaitable[T]]
    ) -> T | None:
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(work())
        aborted = asyncio.Event()
        try:
            loop.add_signal_handler(signal.SIGINT, aborted.set)
            abortable = True
        except (NotImplementedError, RuntimeError):
            abortable = False
        abort_waiter = asyncio.ensure_future(aborted.wait())

        try:
            with self._console.status(title):
                await asyncio.wait(
                    {task, abort_waiter}, return_when=asyncio.FIRST_COMPLETED
                )
        finally:
            abort_waiter.cancel()
            if abortable:
                loop.remove_signal_handler(signal.SIGINT)

        if not task.done():
            self._abandon(task)
            self._console.print("[dim]Cancelled.[/]")
            return None
        return task.result()

    def _abandon(self, task: asyncio.Future[Any]) -> None:
        self._abandoned.add(task)

        def _forget(done: asyncio.Future[Any]) -> None:
            self._abandoned.discard(done)
            if not done.cancelled() and done.exception() is not None:
                logger.debug("Abandoned operation failed", exc_info=done.exception())

        task.add_done_callback(_forget)

    async def join(self) -> None:
        if self._abandoned:
            self._console.print(
                "[dim]Waiting for the interrupted operation to finish...[/]"
            )
        while self._abandoned:
            await asyncio.gather(*self._abandoned, return_exceptions=True)

    async def select(self, title: str, options: Sequence[str]) -> str | None:
        if not options:
            return None
        self._console.print(f"[bold]{escape(title)}[/]")
        for index, option in enumerate(options, start=1):
            self._console.print(f"  [cyan]{index}[/]. {escape(option)}")

        choices = [str(index) for index in range(1, len(options) + 1)]
        try:
            with _interruptible():
                answer = Prompt.ask("Choose", choices=choices, console=self._console)
        except (EOFError, KeyboardInterrupt):
            self._console.print()
            return None
        return options[int(answer) - 1]

    async def confirm(self, title: str, message: str) -> bool:
        self._console.print(f"[bold green]{escape(title)}[/]")
        try:
            with _interruptible():
                return Confirm.ask(message, default=False, console=self._console)
        except (EOFError, KeyboardInterrupt):
            self._console.print()
            return False

    def notify(self, message: str, level: NotifyLevel = NotifyLevel.INFO) -> None:
        self._console.print(message, style=_NOTIFY_STYLES[level], markup=False)


@dataclass(frozen=True, slots=True)
class RegisteredCommand:
    name: str
    description: str
    handler: CommandHandler


class UnknownCommandError(Exception):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown command: {name}")


class ConsoleHost:
    """In-process host: lifecycle events, commands and child processes."""

    def __init__(
        self, ui: UpdateUI | None = None, *, has_ui: bool | None = None
    ) -> None:
        self._ui = ui or ConsoleUI()
        self._has_ui = sys.stdin.isatty() if has_ui is None else has_ui
        self._handlers: defaultdict[LifecycleEvent, list[EventHandler]] = defaultdict(
            list
        )
        self._commands: dict[str, RegisteredCommand] = {}
        self.shutdown_requested = False

    @property
    def has_ui(self) -> bool:
        return self._has_ui

    @property
    def ui(self) -> UpdateUI:
        return self._ui

    @property
    def commands(self) -> dict[str, RegisteredCommand]:
        return dict(self._commands)

    def shutdown(self) -> None:
        self.shutdown_requested = True

    async def join(self) -> None:
        if isinstance(self._ui, ConsoleUI):
            await self._ui.join()

    def on(self, event: LifecycleEvent, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def register_command(
        self, name: str, *, description: str, handler: CommandHandler
    ) -> None:
        self._commands[name] = RegisteredCommand(name, description, handler)

    async def emit(self, event: LifecycleEvent, payload: Any = None) -> None:
        for handler in list(self._handlers[event]):
            await handler(payload, self)

    async def run_command(self, name: str, args: str = "") -> None:
        if (command := self._commands.get(name)) is None:
            raise UnknownCommandError(name)
        await command.handler(args, self)

    async def exec(
        self, program: str, args: Sequence[str], *, timeout: float
    ) -> ExecResult:
        process = await asyncio.create_subprocess_exec(
            program,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        except TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            return ExecResult(
                code=TIMEOUT_EXIT_CODE, stderr=f"timed out after {timeout:g}s"
            )

        return ExecResult(
            code=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )
