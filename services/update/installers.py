"""Installer implementations that materialise a verified archive on disk."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Protocol

from services.update.archive import extract_tarball
from services.update.constants import ARCHIVE_WRAPPER_DIR, STAGING_SUFFIX
from services.update.markers import write_installed_version
from services.update.models import ExtractionError

_LOGGER = logging.getLogger(__name__)


class Installer(Protocol):
    """Protocol describing the steps that replace an installation directory."""

    @property
    def install_root(self) -> Path:
        """Directory that receives the payload."""

    def has_existing_install(self) -> bool:
        """Return ``True`` when replacing would destroy an existing directory."""

    def extract(self, archive_path: Path) -> None:
        """Unpack ``archive_path`` into a staging area."""

    def record_version(self, version: str) -> None:
        """Persist ``version`` alongside the staged payload."""

    def activate(self) -> None:
        """Swap the staged payload into :attr:`install_root`."""


class DirectoryInstaller:
    """Extract into ``<install_root>.update`` and swap it into place."""

    def __init__(self, install_root: Path, *, wrapper: str = ARCHIVE_WRAPPER_DIR) -> None:
        self._install_root = Path(install_root)
        self._wrapper = wrapper

    @property
    def install_root(self) -> Path:
        return self._install_root

    @property
    def staging_dir(self) -> Path:
        root = self._install_root
        return root.parent / f"{root.name}{STAGING_SUFFIX}"

    def has_existing_install(self) -> bool:
        return self._install_root.exists()

    def extract(self, archive_path: Path) -> None:
        stage_dir = self.staging_dir
        if stage_dir.is_symlink() or (stage_dir.exists() and not stage_dir.is_dir()):
            raise ExtractionError(
                f"Refusing to replace {stage_dir}: it is not a staging directory"
            )
        if stage_dir.exists():
            _LOGGER.warning(
                "Removing leftover staging directory %s from an earlier run", stage_dir
            )
            _remove_tree(stage_dir)
        count = extract_tarball(archive_path, stage_dir, wrapper=self._wrapper)
        _LOGGER.info("Staged %s entries at %s", count, stage_dir)

    def record_version(self, version: str) -> None:
        write_installed_version(self.staging_dir, version)

    def activate(self) -> None:
        root = self._install_root
        stage_dir = self.staging_dir
        if root.exists() or root.is_symlink():
            _LOGGER.info("Removing existing directory %s", root)
            _remove_tree(root)
        try:
            stage_dir.rename(root)
        except OSError as exc:
            raise ExtractionError(
                f"Unable to move staged update {stage_dir} to {root}: {exc}"
            ) from exc
        _LOGGER.info("Installed update into %s", root)


def _remove_tree(path: Path) -> None:
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path)
    except OSError as exc:
        raise ExtractionError(f"Error removing existing directory {path}: {exc}") from exc


__all__ = ["DirectoryInstaller", "Installer"]
