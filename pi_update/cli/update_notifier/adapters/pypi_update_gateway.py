from __future__ import annotations

import httpx

from pi_update.cli.update_notifier.ports.update_gateway import (
    RegistryError,
    RegistryErrorCause,
    Update,
    UpdateGateway,
)

PYPI_BASE_URL = "https://pypi.org"
REGISTRY_TIMEOUT_SECONDS = 10.0

_STATUS_CAUSES: dict[int, RegistryErrorCause] = {
    httpx.codes.TOO_MANY_REQUESTS: RegistryErrorCause.RATE_LIMITED,
    httpx.codes.FORBIDDEN: RegistryErrorCause.FORBIDDEN,
}


class PyPIUpdateGateway(UpdateGateway):
    def __init__(
        self,
        project_name: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = REGISTRY_TIMEOUT_SECONDS,
        base_url: str = PYPI_BASE_URL,
    ) -> None:
        self._project_name = project_name
        self._client = client
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")

    @property
    def url(self) -> str:
        return f"{self._base_url}/pypi/{self._project_name}/json"

    async def fetch_update(self) -> Update | None:
        headers = {
            "Accept": "application/json",
            "User-Agent": "pi-update",
        }

        try:
            if self._client is not None:
                response = await self._client.get(
                    self.url, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self.url, headers=headers)
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise RegistryError(cause=RegistryErrorCause.NETWORK_ERROR) from exc

        if cause := _STATUS_CAUSES.get(response.status_code):
            raise RegistryError(cause=cause, status_code=response.status_code)

        if response.status_code == httpx.codes.NOT_FOUND:
            raise RegistryError(
                cause=RegistryErrorCause.NOT_FOUND,
                message=f"Package {self._project_name!r} was not found on the registry.",
            )

        if not response.is_success:
            raise RegistryError(
                cause=RegistryErrorCause.BAD_STATUS, status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise RegistryError(cause=RegistryErrorCause.MALFORMED_PAYLOAD) from exc

        if version := _extract_version(data):
            return Update(latest_version=version)
        return None


def _extract_version(data: object) -> str | None:
    if not isinstance(data, dict):
        return None
    info = data.get("info")
    if not isinstance(info, dict):
        return None
    version = info.get("version")
    if not isinstance(version, str) or not version.strip():
        return None
    return version.strip()
