"""Hashing helpers for archive verification."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from services.update.constants import HASH_CHUNK_SIZE
from services.update.models import IntegrityError


_LOGGER = logging.getLogger(__name__)


def calculate_sha256(path: Path, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    digest = hashlib.sha256()
    with Path(path).open("rb") as source:
        for chunk in iter(lambda: source.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_sha256(path: Path, expected: str, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """Return the digest of ``path`` or raise :class:`IntegrityError` on mismatch."""

    path = Path(path)
    actual = calculate_sha256(path, chunk_size)
    expected_normalised = expected.strip().lower()
    if actual != expected_normalised:
        raise IntegrityError(path, expected_normalised, actual)
    _LOGGER.debug("SHA256 of %s matches %s", path, actual)
    return actual
