"""Helpers for constructing the update service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from app.version import user_agent
from services.update.confirmation import ConfirmCallback, ConsoleConfirmation, assume_yes
from services.update.downloader import ProgressCallback, ResumableDownloader
from services.update.installers import DirectoryInstaller
from services.update.platforms import resolve_platform_token
from services.update.providers import WindsurfReleaseProvider
from services.update.service import UpdateService

if TYPE_CHECKING:
    from app.config import UpdaterConfig


_LOGGER = logging.getLogger(__name__)


def build_update_service(
    config: UpdaterConfig,
    *,
    platform: str | None = None,
    download_dir: Path | None = None,
    install_dir: Path | None = None,
    force: bool = False,
    assume_yes_to_prompts: bool = False,
    confirm: ConfirmCallback | None = None,
    progress: ProgressCallback | None = None,
) -> UpdateService:
    """Construct an :class:`UpdateService` from ``config`` and command line overrides.

    Raises :class:`~services.update.models.UnsupportedPlatform` when neither
    ``platform`` nor the host maps to a known update token.
    """

    token = resolve_platform_token(platform)
    _LOGGER.info("Selected platform: %s", token)

    agent = config.user_agent or user_agent()
    target_download_dir = Path(download_dir).expanduser() if download_dir else config.download_dir
    target_install_dir = Path(install_dir).expanduser() if install_dir else config.install_dir

    if confirm is None:
        confirm = assume_yes if assume_yes_to_prompts else ConsoleConfirmation()

    return UpdateService(
        WindsurfReleaseProvider(config.api_url, timeout=config.request_timeout, user_agent=agent),
        ResumableDownloader(
            timeout=config.request_timeout,
            chunk_size=config.chunk_size,
            user_agent=agent,
        ),
        DirectoryInstaller(target_install_dir),
        platform_token=token,
        download_dir=target_download_dir,
        confirm=confirm,
        force=force,
        progress=progress,
    )


__all__ = ["build_update_service"]
