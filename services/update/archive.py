"""Archive handling helpers for the update service."""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import tarfile
import zlib
from pathlib import Path, PurePosixPath, PureWindowsPath

from services.update import constants
from services.update.models import ExtractionError


_LOGGER = logging.getLogger(__name__)

__all__ = ["extract_tarball", "is_local_path", "strip_wrapper"]


def is_local_path(name: str) -> bool:
    """Return ``True`` when ``name`` stays inside the directory it is joined to.

    Absolute paths, drive-qualified paths and names that climb above their own
    root once normalised are rejected.
    """

    if not name or "\x00" in name:
        return False
    if name.startswith(("/", "\\")) or PureWindowsPath(name).drive:
        return False
    normalised = posixpath.normpath(name.replace("\\", "/"))
    parts = PurePosixPath(normalised).parts
    return bool(parts) and parts[0] != ".."


def strip_wrapper(name: str, wrapper: str = constants.ARCHIVE_WRAPPER_DIR) -> str | None:
    """Drop the leading ``wrapper`` component from an archive entry name.

    Returns ``""`` for the wrapper directory itself and ``None`` when the entry
    lives outside the wrapper.
    """

    parts = [part for part in PurePosixPath(posixpath.normpath(name)).parts if part != "."]
    if not parts or parts[0] != wrapper:
        return None
    return "/".join(parts[1:])


def extract_tarball(
    archive_path: Path,
    destination_root: Path,
    *,
    wrapper: str = constants.ARCHIVE_WRAPPER_DIR,
) -> int:
    """Unpack the gzip tarball at ``archive_path`` beneath ``destination_root``.

    Entry names lose their ``wrapper`` prefix so the payload lands directly in
    ``destination_root``.  Returns the number of entries materialised.
    """

    _LOGGER.info("Extracting %s to %s", archive_path, destination_root)
    destination_root = Path(destination_root)
    try:
        destination_root.mkdir(parents=True, exist_ok=True)
        root = destination_root.resolve()
        with tarfile.open(archive_path, mode="r|gz") as archive:
            extracted = _extract_members(archive, root, wrapper)
    except ExtractionError:
        raise
    except (tarfile.TarError, OSError, EOFError, zlib.error) as exc:
        raise ExtractionError(f"Failed to extract update archive: {exc}") from exc
    return extracted


def _extract_members(archive: tarfile.TarFile, root: Path, wrapper: str) -> int:
    total_bytes = 0
    processed_entries = 0
    extracted = 0
    for member in archive:
        processed_entries += 1
        if processed_entries > constants.MAX_ARCHIVE_ENTRIES:
            _LOGGER.error(
                "Archive entry count %s exceeded limit %s",
                processed_entries,
                constants.MAX_ARCHIVE_ENTRIES,
            )
            raise ExtractionError("Update archive contained too many entries")

        name = member.name
        if not is_local_path(name):
            raise ExtractionError(f"Non-local path detected in archive: {name}")

        relative = strip_wrapper(name, wrapper)
        if relative is None:
            raise ExtractionError(
                f"Archive entry {name} is outside the {wrapper}/ directory"
            )
        if not relative:
            continue

        destination = _confined_destination(root, relative, name)

        if member.isdir():
            destination.mkdir(parents=True, exist_ok=True)
            extracted += 1
            continue

        if member.isfile():
            total_bytes += member.size
            if total_bytes > constants.MAX_ARCHIVE_TOTAL_BYTES:
                _LOGGER.error(
                    "Archive expanded to %s bytes which exceeds limit %s",
                    total_bytes,
                    constants.MAX_ARCHIVE_TOTAL_BYTES,
                )
                raise ExtractionError("Update archive expanded beyond safe limits")
            _write_regular_file(archive, member, destination)
            extracted += 1
            continue

        if member.issym():
            _create_symlink(root, member, relative, destination)
            extracted += 1
            continue

        _LOGGER.warning(
            "Skipping unsupported archive entry %s (type %r)", name, member.type
        )

    _LOGGER.info(
        "Extracted %s of %s entries totalling %s bytes",
        extracted,
        processed_entries,
        total_bytes,
    )
    return extracted


def _confined_destination(root: Path, relative: str, name: str) -> Path:
    destination = root.joinpath(*PurePosixPath(relative).parts)
    try:
        destination.parent.resolve().relative_to(root)
    except ValueError:
        raise ExtractionError(f"Archive entry {name} resolves outside the destination")
    return destination


def _write_regular_file(
    archive: tarfile.TarFile, member: tarfile.TarInfo, destination: Path
) -> None:
    source = archive.extractfile(member)
    if source is None:
        raise ExtractionError(f"Unable to read archive entry {member.name}")
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.is_symlink():
        destination.unlink()
    with source, destination.open("wb") as target:
        shutil.copyfileobj(source, target)
    os.chmod(destination, member.mode & 0o777)
    _LOGGER.debug("Extracted archive member %s to %s", member.name, destination)


def _create_symlink(
    root: Path, member: tarfile.TarInfo, relative: str, destination: Path
) -> None:
    target = member.linkname
    link_parent = posixpath.dirname(relative)
    if posixpath.isabs(target) or not is_local_path(posixpath.join(link_parent, target)):
        raise ExtractionError(
            f"Symbolic link {member.name} points outside the destination: {target}"
        )
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.is_symlink() or destination.is_file():
        destination.unlink()
    os.symlink(target, destination)
    _LOGGER.debug("Linked archive member %s -> %s", member.name, target)
