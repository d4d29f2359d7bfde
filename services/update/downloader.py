"""Resumable HTTP downloads backed by ``.partial`` files."""

from __future__ import annotations

import logging
import os
import re
from http.client import HTTPException
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from services.update.constants import DOWNLOAD_CHUNK_SIZE, PARTIAL_SUFFIX, REQUEST_TIMEOUT
from services.update.models import TransferError


_LOGGER = logging.getLogger(__name__)

__all__ = ["ProgressCallback", "ResumableDownloader", "partial_path_for"]

ProgressCallback = Callable[[int, Optional[int]], None]

_HTTP_OK = 200
_HTTP_PARTIAL_CONTENT = 206
_CONTENT_RANGE_PATTERN = re.compile(r"^\s*bytes\s+(\d+)-\d+/(?:\d+|\*)\s*$", re.IGNORECASE)


def partial_path_for(destination: Path) -> Path:
    """Return the in-flight download path used for ``destination``."""

    destination = Path(destination)
    return destination.with_name(destination.name + PARTIAL_SUFFIX)


class ResumableDownloader:
    """Stream a remote resource to disk, continuing earlier partial transfers."""

    def __init__(
        self,
        *,
        timeout: float = REQUEST_TIMEOUT,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
        user_agent: str | None = None,
    ) -> None:
        self._timeout = timeout
        self._chunk_size = max(1, int(chunk_size))
        self._user_agent = user_agent

    def download(
        self,
        url: str,
        destination: Path,
        progress: ProgressCallback | None = None,
    ) -> Path:
        """Download ``url`` into ``destination`` and return the final path.

        The body is streamed into ``<destination>.partial`` and only renamed onto
        ``destination`` after the transfer completed.  Interrupted transfers keep
        the partial file so the next call resumes with a ``Range`` request.
        """

        destination = Path(destination)
        partial = partial_path_for(destination)
        start_offset = _existing_size(partial)
        if start_offset:
            _LOGGER.info("Resuming download from offset %d bytes", start_offset)

        response, offset = self._open_transfer(url, partial, start_offset)
        written = self._stream_to_partial(response, partial, offset, progress)

        try:
            os.replace(partial, destination)
        except OSError as exc:
            raise TransferError(f"Unable to move {partial} into place: {exc}") from exc
        _LOGGER.info("Downloaded %d bytes to %s", written, destination)
        return destination

    def _open_transfer(self, url: str, partial: Path, start_offset: int) -> tuple[Any, int]:
        if start_offset > 0:
            status: int | None
            try:
                response = self._request(url, start_offset)
            except HTTPError as exc:
                status = exc.code
                exc.close()
            else:
                status = _status_of(response)
                if status == _HTTP_PARTIAL_CONTENT and _content_range_start(response) in (
                    None,
                    start_offset,
                ):
                    return response, start_offset
                response.close()

            _LOGGER.warning(
                "Server did not honour range request (status %s); restarting download",
                status,
            )
            _discard_partial(partial)

        try:
            response = self._request(url, 0)
        except HTTPError as exc:
            exc.close()
            raise TransferError(
                f"Download request returned status {exc.code}", status_code=exc.code
            ) from exc

        status = _status_of(response)
        if status not in (_HTTP_OK, _HTTP_PARTIAL_CONTENT):
            response.close()
            raise TransferError(
                f"Download request returned status {status}", status_code=status
            )
        return response, 0

    def _request(self, url: str, offset: int) -> Any:
        headers: dict[str, str] = {}
        if offset > 0:
            headers["Range"] = f"bytes={offset}-"
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        request = Request(url, headers=headers)
        try:
            return urlopen(request, timeout=self._timeout)  # nosec - release CDN over HTTPS
        except HTTPError:
            raise
        except (URLError, OSError, HTTPException) as exc:
            raise TransferError(f"Unable to make download request: {exc}") from exc

    def _stream_to_partial(
        self,
        response: Any,
        partial: Path,
        offset: int,
        progress: ProgressCallback | None,
    ) -> int:
        content_length = _content_length(response)
        expected_total = offset + content_length if content_length is not None else None
        mode = "ab" if offset else "wb"
        written = offset

        try:
            with response, partial.open(mode) as target:
                if progress is not None:
                    progress(written, expected_total)
                for chunk in iter(lambda: response.read(self._chunk_size), b""):
                    target.write(chunk)
                    written += len(chunk)
                    if progress is not None:
                        progress(written, expected_total)
        except (OSError, HTTPException) as exc:
            raise TransferError(
                f"Download interrupted after {written} bytes: {exc}"
            ) from exc

        if expected_total is not None and written < expected_total:
            raise TransferError(
                f"Download ended early: received {written} of {expected_total} bytes"
            )
        return written


def _existing_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except FileNotFoundError:
        return 0


def _discard_partial(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        raise TransferError(f"Unable to discard stale partial download {path}: {exc}") from exc


def _status_of(response: Any) -> int:
    status = getattr(response, "status", None)
    if status is None:
        status = response.getcode()
    return int(status)


def _header(response: Any, name: str) -> str | None:
    headers = getattr(response, "headers", None)
    if headers is None:
        return None
    value = headers.get(name)
    return str(value) if value is not None else None


def _content_length(response: Any) -> int | None:
    raw = _header(response, "Content-Length")
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value >= 0 else None


def _content_range_start(response: Any) -> int | None:
    raw = _header(response, "Content-Range")
    if raw is None:
        return None
    match = _CONTENT_RANGE_PATTERN.match(raw)
    if match is None:
        return -1
    return int(match.group(1))
