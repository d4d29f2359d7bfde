"""Updater configuration loaded from JSON resources."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from importlib import resources
from math import isfinite
from pathlib import Path
from typing import Any, Mapping

from services.update.constants import (
    API_URL,
    CONFIG_PATH_ENV,
    DEFAULT_DOWNLOAD_DIR,
    DEFAULT_INSTALL_DIR,
    DOWNLOAD_CHUNK_SIZE,
    REQUEST_TIMEOUT,
)

_CONFIG_RESOURCE = "updater.json"
_UPDATER_CONFIG_CACHE: UpdaterConfig | None = None


@dataclass(frozen=True)
class UpdaterConfig:
    """Structured configuration values for the updater."""

    api_url: str
    download_dir: Path
    install_dir: Path
    request_timeout: float
    chunk_size: int
    user_agent: str | None = None


def get_updater_config() -> UpdaterConfig:
    """Return the cached updater configuration."""

    global _UPDATER_CONFIG_CACHE
    if _UPDATER_CONFIG_CACHE is None:
        _UPDATER_CONFIG_CACHE = load_updater_config()
    return _UPDATER_CONFIG_CACHE


def reset_updater_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _UPDATER_CONFIG_CACHE
    _UPDATER_CONFIG_CACHE = None


def load_updater_config(path: str | Path | None = None) -> UpdaterConfig:
    """Load configuration from ``path``, ``$WINDSURF_UPDATER_CONFIG`` or the bundled JSON."""

    if path is None:
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path:
            path = env_path
    data = _read_config_data(path)
    return UpdaterConfig(
        api_url=_coerce_api_url(data.get("api_url"), default=API_URL),
        download_dir=_coerce_path(data.get("download_dir"), default=DEFAULT_DOWNLOAD_DIR),
        install_dir=_coerce_path(data.get("install_dir"), default=DEFAULT_INSTALL_DIR),
        request_timeout=_coerce_positive_float(
            data.get("request_timeout"), default=REQUEST_TIMEOUT
        ),
        chunk_size=_coerce_positive_int(data.get("chunk_size"), default=DOWNLOAD_CHUNK_SIZE),
        user_agent=_coerce_optional_text(data.get("user_agent")),
    )


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _coerce_api_url(value: Any, *, default: str) -> str:
    if not isinstance(value, str):
        return default
    candidate = value.strip()
    if "{platform}" not in candidate:
        return default
    try:
        candidate.format(platform="linux-x64")
    except (IndexError, KeyError, ValueError):
        return default
    return candidate


def _coerce_path(value: Any, *, default: str) -> Path:
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    return Path(default).expanduser()


def _coerce_optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _coerce_positive_int(value: Any, *, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        candidate = int(value)
    elif isinstance(value, str):
        try:
            candidate = int(float(value))
        except ValueError:
            return default
    else:
        return default
    if candidate <= 0:
        return default
    return candidate


def _coerce_positive_float(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        candidate = float(value)
    elif isinstance(value, str):
        try:
            candidate = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if not isfinite(candidate) or candidate <= 0:
        return default
    return candidate
