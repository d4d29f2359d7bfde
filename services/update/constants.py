"""Constants shared across the update service modules."""

from __future__ import annotations

PRODUCT_NAME = "Windsurf"
API_URL = "https://windsurf-stable.codeium.com/api/update/{platform}/stable/latest"

DEFAULT_DOWNLOAD_DIR = "~/Downloads"
DEFAULT_INSTALL_DIR = "~/apps/windsurf"

ARCHIVE_NAME_TEMPLATE = "windsurf-{version}.tar.gz"
ARCHIVE_WRAPPER_DIR = PRODUCT_NAME
PARTIAL_SUFFIX = ".partial"
STAGING_SUFFIX = ".update"
VERSION_MARKER_NAME = ".windsurf-release"

AUTO_INSTALL_PLATFORM_PREFIX = "linux-"

DOWNLOAD_CHUNK_SIZE = 1024 * 1024  # 1 MiB
HASH_CHUNK_SIZE = 1024 * 1024  # 1 MiB
REQUEST_TIMEOUT = 30.0  # seconds

MAX_ARCHIVE_TOTAL_BYTES = 8 * 1024 * 1024 * 1024  # 8 GiB
MAX_ARCHIVE_ENTRIES = 250_000

CONFIG_PATH_ENV = "WINDSURF_UPDATER_CONFIG"
