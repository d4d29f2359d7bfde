"""Mapping between host platforms and update API platform tokens."""

from __future__ import annotations

import platform as _platform
import sys
from types import MappingProxyType
from typing import Mapping

from services.update.constants import AUTO_INSTALL_PLATFORM_PREFIX
from services.update.models import UnsupportedPlatform

__all__ = [
    "PLATFORM_TOKENS",
    "current_platform_key",
    "is_auto_installable",
    "resolve_platform_token",
    "supported_platform_keys",
]

PLATFORM_TOKENS: Mapping[str, str] = MappingProxyType(
    {
        "darwin-arm64": "darwin-arm64-dmg",
        "darwin-amd64": "darwin-x64-dmg",
        "linux-amd64": "linux-x64",
        "windows-amd64": "win32-x64",
    }
)

_OS_ALIASES = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "windows",
    "cygwin": "windows",
}

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


def current_platform_key(
    system: str | None = None, machine: str | None = None
) -> str:
    """Return the ``<os>-<arch>`` key describing the running interpreter."""

    raw_system = (system if system is not None else sys.platform).lower()
    raw_machine = (machine if machine is not None else _platform.machine()).lower()
    os_id = _OS_ALIASES.get(raw_system)
    if os_id is None:
        os_id = next(
            (alias for prefix, alias in _OS_ALIASES.items() if raw_system.startswith(prefix)),
            raw_system,
        )
    arch_id = _ARCH_ALIASES.get(raw_machine, raw_machine)
    return f"{os_id}-{arch_id}"


def supported_platform_keys() -> list[str]:
    return sorted(PLATFORM_TOKENS)


def resolve_platform_token(override: str | None = None, *, host_key: str | None = None) -> str:
    """Return the API token for ``override`` or the current host.

    ``override`` may be a platform key (``linux-amd64``) or a token the API
    already understands (``linux-x64``).
    """

    if override:
        candidate = override.strip()
        if candidate in PLATFORM_TOKENS:
            return PLATFORM_TOKENS[candidate]
        if candidate in PLATFORM_TOKENS.values():
            return candidate
        raise UnsupportedPlatform(candidate, supported_platform_keys())

    key = host_key or current_platform_key()
    token = PLATFORM_TOKENS.get(key)
    if token is None:
        raise UnsupportedPlatform(key, supported_platform_keys())
    return token


def is_auto_installable(token: str) -> bool:
    """Return ``True`` when archives for ``token`` can be unpacked in place."""

    return token.startswith(AUTO_INSTALL_PLATFORM_PREFIX)
