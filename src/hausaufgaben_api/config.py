"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables   (HAUSAUFGABEN__BACKEND__KIND=firestore)
  2. Short-form variables    (supabaseUrl, supabaseKey, projectId, apiKey, authDomain,
                             documentId, PORT)
  3. hausaufgaben.yaml       (searched in cwd, then platform config dir)
  4. Hardcoded defaults

A deployment picks one naming style. The backend credentials have no defaults;
``Settings.missing_backend_keys()`` reports which ones the chosen backend lacks.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import platformdirs
from pydantic import BaseModel, SecretStr, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

ENV_PREFIX = "HAUSAUFGABEN__"

# Short-form variable name -> (section, field)
SHORT_FORM_ENV_KEYS: dict[str, tuple[str, str]] = {
    "supabaseUrl": ("backend", "url"),
    "supabaseKey": ("backend", "key"),
    "projectId": ("backend", "project_id"),
    "apiKey": ("backend", "api_key"),
    "authDomain": ("backend", "auth_domain"),
    "documentId": ("backend", "document_id"),
    "PORT": ("server", "port"),
}

_REQUIRED_BACKEND_FIELDS: dict[str, tuple[str, ...]] = {
    "supabase": ("url", "key"),
    "firestore": ("project_id", "api_key", "auth_domain", "document_id"),
}


def _find_config_file() -> str | None:
    """Return the path of the first hausaufgaben.yaml found, or None."""
    candidates = [
        Path("hausaufgaben.yaml"),
        Path(platformdirs.user_config_dir("hausaufgaben-api")) / "hausaufgaben.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]


class BackendSettings(BaseModel):
    kind: Literal["supabase", "firestore"] = "supabase"
    collection: str = "Hausaufgaben"
    # Supabase: optional row filter on ``id``. Firestore: the document name.
    document_id: str | None = None
    timeout_seconds: float = 30.0

    # Supabase
    url: str | None = None
    key: SecretStr | None = None

    # Firestore
    project_id: str | None = None
    api_key: SecretStr | None = None
    auth_domain: str | None = None
    database: str = "(default)"


class CacheSettings(BaseModel):
    policy: Literal["eager", "lazy"] = "eager"
    coalesce_refreshes: bool = True
    warm_on_startup: bool = True


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class ShortFormEnvSource(PydanticBaseSettingsSource):
    """Reads the un-prefixed variable names used by older deployments."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        # Values are assembled per section in __call__.
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for env_name, (section, name) in SHORT_FORM_ENV_KEYS.items():
            value = os.environ.get(env_name)
            if value:
                data.setdefault(section, {})[name] = value
        backend = data.get("backend", {})
        # projectId alone identifies a Firestore deployment.
        if "project_id" in backend and "url" not in backend:
            backend["kind"] = "firestore"
        return data


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: HAUSAUFGABEN__SERVER__PORT=8080
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    backend: BackendSettings = BackendSettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()
    timezone: str = "Europe/Berlin"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # HAUSAUFGABEN__* variables
            ShortFormEnvSource(settings_cls),
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )

    def missing_backend_keys(self) -> list[str]:
        """Return the variable names the selected backend needs but lacks."""
        missing: list[str] = []
        for name in _REQUIRED_BACKEND_FIELDS[self.backend.kind]:
            value = getattr(self.backend, name)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if not value:
                missing.append(_display_name("backend", name))
        return missing


def _display_name(section: str, name: str) -> str:
    """``backend.key`` -> ``HAUSAUFGABEN__BACKEND__KEY (supabaseKey)``."""
    prefixed = f"{ENV_PREFIX}{section.upper()}__{name.upper()}"
    for short, target in SHORT_FORM_ENV_KEYS.items():
        if target == (section, name):
            return f"{prefixed} ({short})"
    return prefixed
