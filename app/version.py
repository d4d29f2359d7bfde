"""Version of the updater itself, as reported by ``--version`` and the User-Agent."""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata, resources

DISTRIBUTION_NAME = "windsurf-updater"
_UNKNOWN_VERSION = "0.0.0-dev"


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """Return the installed distribution version.

    Source checkouts that were never installed fall back to the ``VERSION`` file
    shipped next to this module.
    """

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        pass
    try:
        text = resources.files(__package__).joinpath("VERSION").read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError):
        return _UNKNOWN_VERSION
    return text.strip() or _UNKNOWN_VERSION


def user_agent() -> str:
    return f"{DISTRIBUTION_NAME}/{get_app_version()}"


__all__ = ["DISTRIBUTION_NAME", "get_app_version", "user_agent"]
