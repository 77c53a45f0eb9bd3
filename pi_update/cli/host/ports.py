from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class NotifyLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LifecycleEvent(StrEnum):
    SESSION_START = "session_start"
    SESSION_SWITCH = "session_switch"


@dataclass(frozen=True, slots=True)
class ExecResult:
    code: int
    stdout: str = ""
    stderr: str = ""


class UpdateUI(Protocol):
    async def run_with_loader(
        self, title: str, work: Callable[[], Awaitable[T]]
    ) -> T | None:
        """Show a loading indicator while ``work`` runs.

        Aborting resolves to ``None`` straight away; ``work`` itself is not
        cancelled and finishes on its own.
        """
        ...

    async def select(self, title: str, options: Sequence[str]) -> str | None: ...

    async def confirm(self, title: str, message: str) -> bool: ...

    def notify(self, message: str, level: NotifyLevel = NotifyLevel.INFO) -> None: ...


class ExtensionContext(Protocol):
    @property
    def has_ui(self) -> bool: ...

    @property
    def ui(self) -> UpdateUI: ...

    def shutdown(self) -> None: ...


EventHandler = Callable[[Any, ExtensionContext], Awaitable[None]]
CommandHandler = Callable[[str, ExtensionContext], Awaitable[None]]


class ExtensionAPI(Protocol):
    def on(self, event: LifecycleEvent, handler: EventHandler) -> None: ...

    def register_command(
        self, name: str, *, description: str, handler: CommandHandler
    ) -> None: ...

    async def exec(
        self, program: str, args: Sequence[str], *, timeout: float
    ) -> ExecResult: ...
