from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


@dataclass(frozen=True, slots=True)
class Update:
    latest_version: str


class RegistryErrorCause(StrEnum):
    NETWORK_ERROR = "network_error"
    RATE_LIMITED = "rate_limited"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    BAD_STATUS = "bad_status"
    MALFORMED_PAYLOAD = "malformed_payload"


_CAUSE_MESSAGES: dict[RegistryErrorCause, str] = {
    RegistryErrorCause.NETWORK_ERROR: "Could not reach the package registry.",
    RegistryErrorCause.RATE_LIMITED: "The package registry is rate limiting requests.",
    RegistryErrorCause.FORBIDDEN: "The package registry refused the request.",
    RegistryErrorCause.NOT_FOUND: "The package was not found on the registry.",
    RegistryErrorCause.BAD_STATUS: "The package registry answered with an error.",
    RegistryErrorCause.MALFORMED_PAYLOAD: "The package registry sent an unreadable answer.",
}


class RegistryError(Exception):
    """Raised by a gateway when the registry lookup cannot produce a version."""

    def __init__(
        self,
        *,
        cause: RegistryErrorCause,
        message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.cause = cause
        self.status_code = status_code
        detail = message or _CAUSE_MESSAGES[cause]
        if status_code is not None:
            detail = f"{detail} (HTTP {status_code})"
        super().__init__(detail)


class UpdateGateway(Protocol):
    async def fetch_update(self) -> Update | None: ...
