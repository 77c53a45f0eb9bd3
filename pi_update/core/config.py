from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import httpx
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from pi_update.core.paths.global_paths import CONFIG_FILE, UPDATE_CACHE_FILE

DEFAULT_PACKAGE_NAME = "pi-coding-agent"
DEFAULT_REGISTRY_BASE_URL = "https://pypi.org"
DEFAULT_RELEASES_URL = "https://github.com/badlogic/pi-mono/releases"
UNKNOWN_VERSION = "0.0.0"


def installed_version(package_name: str) -> str:
    try:
        return version(package_name)
    except PackageNotFoundError:
        return UNKNOWN_VERSION


class UpdaterConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PI_UPDATE_", extra="ignore", validate_default=True
    )

    package_name: str = DEFAULT_PACKAGE_NAME
    registry_base_url: str = DEFAULT_REGISTRY_BASE_URL
    releases_url: str = DEFAULT_RELEASES_URL
    registry_timeout: float = Field(default=10.0, gt=0)
    install_timeout: float = Field(default=120.0, gt=0)
    enable_update_checks: bool = True
    cache_file: Path | None = None
    current_version: str | None = None

    @field_validator("package_name")
    @classmethod
    def _package_name_not_blank(cls, value: str) -> str:
        if not (stripped := value.strip()):
            raise ValueError("package_name must not be empty")
        return stripped

    @field_validator("registry_base_url")
    @classmethod
    def _registry_base_url_is_http(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"registry_base_url is not a valid URL: {exc}") from exc
        if url.scheme not in {"http", "https"} or not url.host:
            raise ValueError("registry_base_url must be an http(s) URL")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=CONFIG_FILE.path),
        )

    @property
    def resolved_cache_file(self) -> Path:
        if self.cache_file is not None:
            return self.cache_file.expanduser()
        return UPDATE_CACHE_FILE.path

    @property
    def resolved_current_version(self) -> str:
        if self.current_version:
            return self.current_version
        return installed_version(self.package_name)
