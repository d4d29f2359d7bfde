"""Helpers for the installed-version marker kept inside the install root."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from services.update.constants import VERSION_MARKER_NAME

_LOGGER = logging.getLogger(__name__)


def get_marker_path(install_root: Path) -> Path:
    """Return the file recording the version installed under ``install_root``."""

    return Path(install_root) / VERSION_MARKER_NAME


def read_installed_version(install_root: Path) -> str | None:
    """Return the recorded version, or ``None`` when it is unknown."""

    marker_path = get_marker_path(install_root)
    try:
        text = marker_path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        _LOGGER.debug("No version marker at %s", marker_path)
        return None
    except (OSError, UnicodeDecodeError) as exc:
        _LOGGER.warning("Unable to check installed version: %s", exc)
        return None

    version = text.strip()
    return version or None


def write_installed_version(install_root: Path, version: str) -> Path:
    """Record ``version`` under ``install_root``, replacing any earlier marker.

    The marker is written to a temporary sibling first and moved into place so
    readers never observe a truncated file.
    """

    marker_path = get_marker_path(install_root)
    handle, temp_name = tempfile.mkstemp(
        prefix=f"{VERSION_MARKER_NAME}.", suffix=".tmp", dir=str(marker_path.parent)
    )
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            stream.write(version)
        os.replace(temp_name, marker_path)
    except BaseException:
        _safe_remove(Path(temp_name))
        raise
    _LOGGER.debug("Recorded installed version %s in %s", version, marker_path)
    return marker_path


def _safe_remove(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError:
        _LOGGER.debug("Unable to remove temporary marker file %s", path, exc_info=True)


__all__ = [
    "get_marker_path",
    "read_installed_version",
    "write_installed_version",
]
