"""Release provider implementations."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from services.update.constants import API_URL, REQUEST_TIMEOUT
from services.update.models import ReleaseInfo, ResolutionError


_LOGGER = logging.getLogger(__name__)

_URL_FIELD = "url"
_HASH_FIELD = "sha256Hash"
_VERSION_FIELD = "windsurfVersion"


class ReleaseProvider(Protocol):
    """Protocol describing release metadata providers."""

    def fetch_latest(self, platform_token: str) -> ReleaseInfo:
        """Return the newest release for ``platform_token`` or raise :class:`ResolutionError`."""


class WindsurfReleaseProvider:
    """Fetch release metadata from the Windsurf update API."""

    def __init__(
        self,
        api_url: str = API_URL,
        *,
        timeout: float = REQUEST_TIMEOUT,
        user_agent: str | None = None,
    ) -> None:
        self._api_url = api_url
        self._timeout = timeout
        self._user_agent = user_agent

    def release_url(self, platform_token: str) -> str:
        return self._api_url.format(platform=platform_token)

    def fetch_latest(self, platform_token: str) -> ReleaseInfo:
        url = self.release_url(platform_token)
        _LOGGER.debug("Querying release endpoint %s", url)
        payload = self._request_json(url)
        release = parse_release_payload(payload)
        _LOGGER.info(
            "Release endpoint reports version %s for %s", release.version, platform_token
        )
        return release

    def _request_json(self, url: str) -> Any:
        headers = {"Accept": "application/json"}
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        request = Request(url, headers=headers)
        try:
            with urlopen(request, timeout=self._timeout) as response:  # nosec - HTTPS endpoint
                status = getattr(response, "status", 200)
                if status != 200:
                    raise ResolutionError(
                        f"Update API returned status {status}", status_code=status
                    )
                raw = response.read()
        except HTTPError as exc:
            raise ResolutionError(
                f"Update API returned status {exc.code}", status_code=exc.code
            ) from exc
        except (URLError, OSError) as exc:
            raise ResolutionError(f"Unable to reach update API: {exc}") from exc

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ResolutionError(f"Update API returned malformed JSON: {exc}") from exc


def parse_release_payload(payload: Any) -> ReleaseInfo:
    """Normalise the update API response into a :class:`ReleaseInfo`."""

    if not isinstance(payload, Mapping):
        raise ResolutionError("Update API response was not a JSON object")

    download_url = _require_text(payload, _URL_FIELD)
    version = _require_text(payload, _VERSION_FIELD)
    if not _is_safe_version(version):
        raise ResolutionError(f"Update API returned an unusable version: {version!r}")
    sha256 = _require_text(payload, _HASH_FIELD).lower()

    return ReleaseInfo(
        download_url=download_url,
        version=version,
        sha256=sha256,
        name=_optional_text(payload.get("name")),
        product_version=_optional_text(payload.get("productVersion")),
        timestamp=_optional_int(payload.get("timestamp")),
        supports_fast_update=_optional_bool(payload.get("supportsFastUpdate")),
    )


def _is_safe_version(version: str) -> bool:
    # The version becomes part of the archive file name.
    return not any(token in version for token in ("/", "\\", "..", "\x00"))


def _require_text(payload: Mapping[str, Any], field: str) -> str:
    value = _optional_text(payload.get(field))
    if value is None:
        raise ResolutionError(f"Update API response is missing '{field}'")
    return value


def _optional_text(raw: object) -> str | None:
    if not isinstance(raw, str):
        return None
    cleaned = raw.strip()
    return cleaned or None


def _optional_int(raw: object) -> int | None:
    if isinstance(raw, bool) or not isinstance(raw, int):
        return None
    return raw


def _optional_bool(raw: object) -> bool | None:
    if isinstance(raw, bool):
        return raw
    return None
