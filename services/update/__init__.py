"""Public API for the update service package."""

from __future__ import annotations

from services.update.archive import extract_tarball, is_local_path, strip_wrapper
from services.update.builder import build_update_service
from services.update.confirmation import ConsoleConfirmation, assume_yes
from services.update.constants import (
    API_URL,
    ARCHIVE_NAME_TEMPLATE,
    ARCHIVE_WRAPPER_DIR,
    MAX_ARCHIVE_ENTRIES,
    MAX_ARCHIVE_TOTAL_BYTES,
    PARTIAL_SUFFIX,
    VERSION_MARKER_NAME,
)
from services.update.downloader import ResumableDownloader, partial_path_for
from services.update.hashing import calculate_sha256, verify_sha256
from services.update.installers import DirectoryInstaller, Installer
from services.update.markers import read_installed_version, write_installed_version
from services.update.models import (
    ConfirmationDeclined,
    ExtractionError,
    IntegrityError,
    ReleaseInfo,
    ResolutionError,
    TransferError,
    UnsupportedPlatform,
    UpdateError,
    UpdateOutcome,
    UpdateResult,
    UpdateStage,
)
from services.update.platforms import (
    PLATFORM_TOKENS,
    current_platform_key,
    resolve_platform_token,
    supported_platform_keys,
)
from services.update.providers import ReleaseProvider, WindsurfReleaseProvider
from services.update.service import UpdateService
from services.update.versioning import compare_versions

__all__ = [
    "API_URL",
    "ARCHIVE_NAME_TEMPLATE",
    "ARCHIVE_WRAPPER_DIR",
    "MAX_ARCHIVE_ENTRIES",
    "MAX_ARCHIVE_TOTAL_BYTES",
    "PARTIAL_SUFFIX",
    "PLATFORM_TOKENS",
    "VERSION_MARKER_NAME",
    "ConfirmationDeclined",
    "ConsoleConfirmation",
    "DirectoryInstaller",
    "ExtractionError",
    "Installer",
    "IntegrityError",
    "ReleaseInfo",
    "ReleaseProvider",
    "ResolutionError",
    "ResumableDownloader",
    "TransferError",
    "UnsupportedPlatform",
    "UpdateError",
    "UpdateOutcome",
    "UpdateResult",
    "UpdateService",
    "UpdateStage",
    "WindsurfReleaseProvider",
    "assume_yes",
    "build_update_service",
    "calculate_sha256",
    "compare_versions",
    "current_platform_key",
    "extract_tarball",
    "is_local_path",
    "partial_path_for",
    "read_installed_version",
    "resolve_platform_token",
    "strip_wrapper",
    "supported_platform_keys",
    "verify_sha256",
    "write_installed_version",
]
