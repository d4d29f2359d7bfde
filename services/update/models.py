"""Data models used by the update service."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence


@dataclass(frozen=True)
class ReleaseInfo:
    """Normalised release descriptor returned by the update endpoint."""

    download_url: str
    version: str
    sha256: str
    name: str | None = None
    product_version: str | None = None
    timestamp: int | None = None
    supports_fast_update: bool | None = None


class UpdateError(RuntimeError):
    """Raised when an update cannot be resolved, downloaded, verified or installed."""

    stage = "update"


class ResolutionError(UpdateError):
    """The release metadata could not be fetched or parsed."""

    stage = "resolve"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransferError(UpdateError):
    """The archive download failed."""

    stage = "download"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IntegrityError(UpdateError):
    """The downloaded archive does not match the published digest."""

    stage = "verify"

    def __init__(self, path: Path, expected: str, actual: str) -> None:
        super().__init__(
            f"SHA256 mismatch for {path.name}: expected {expected}, got {actual}"
        )
        self.path = path
        self.expected = expected
        self.actual = actual


class ExtractionError(UpdateError):
    """The archive could not be unpacked into the installation directory."""

    stage = "extract"


class ConfirmationDeclined(UpdateError):
    """The user refused to replace the existing installation."""

    stage = "confirm"


class UnsupportedPlatform(UpdateError):
    """No update token is known for the requested platform."""

    stage = "platform"

    def __init__(self, platform: str, supported: Sequence[str]) -> None:
        listing = ", ".join(supported)
        super().__init__(
            f"Platform {platform!r} is not supported, use --platform with one of: {listing}"
        )
        self.platform = platform
        self.supported = tuple(supported)


class UpdateStage(str, enum.Enum):
    """States visited by :class:`services.update.service.UpdateService`."""

    RESOLVING_RELEASE = "resolving_release"
    CHECKING_LOCAL_VERSION = "checking_local_version"
    AWAITING_DOWNLOAD = "awaiting_download"
    VERIFYING_INTEGRITY = "verifying_integrity"
    CONFIRMING_REPLACEMENT = "confirming_replacement"
    EXTRACTING = "extracting"
    RECORDING_VERSION = "recording_version"
    ACTIVATING = "activating"
    DONE = "done"
    SKIPPED = "skipped"
    MANUAL_INSTALL_REQUIRED = "manual_install_required"
    ABORTED = "aborted"


class UpdateOutcome(str, enum.Enum):
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"
    MANUAL_INSTALL_REQUIRED = "manual_install_required"


@dataclass(frozen=True)
class UpdateResult:
    """Summary of a completed update run."""

    outcome: UpdateOutcome
    release: ReleaseInfo
    installed_version: str | None = None
    archive_path: Path | None = None
    stages: tuple[UpdateStage, ...] = ()
