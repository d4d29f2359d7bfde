"""Service responsible for resolving, downloading and installing updates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from services.update.confirmation import ConfirmCallback, ConsoleConfirmation
from services.update.constants import ARCHIVE_NAME_TEMPLATE
from services.update.downloader import ProgressCallback, ResumableDownloader
from services.update.hashing import verify_sha256
from services.update.installers import Installer
from services.update.markers import read_installed_version
from services.update.models import (
    ConfirmationDeclined,
    IntegrityError,
    ReleaseInfo,
    TransferError,
    UpdateError,
    UpdateOutcome,
    UpdateResult,
    UpdateStage,
)
from services.update.platforms import is_auto_installable
from services.update.providers import ReleaseProvider
from services.update.versioning import compare_versions


_LOGGER = logging.getLogger(__name__)

VersionComparator = Callable[[str, str], int]


class UpdateService:
    """Coordinate release discovery, download, verification and installation.

    A run walks through the :class:`UpdateStage` states in order.  Every stage
    that cannot complete raises an :class:`UpdateError` subclass after the
    service has recorded :attr:`UpdateStage.ABORTED`; nothing is retried apart
    from re-downloading an archive that was already on disk but failed
    verification.
    """

    def __init__(
        self,
        provider: ReleaseProvider,
        downloader: ResumableDownloader,
        installer: Installer,
        *,
        platform_token: str,
        download_dir: Path,
        confirm: ConfirmCallback | None = None,
        compare: VersionComparator = compare_versions,
        force: bool = False,
        progress: ProgressCallback | None = None,
    ) -> None:
        self._provider = provider
        self._downloader = downloader
        self._installer = installer
        self._platform_token = platform_token
        self._download_dir = Path(download_dir)
        self._confirm = confirm or ConsoleConfirmation()
        self._compare = compare
        self._force = force
        self._progress = progress
        self.stages: list[UpdateStage] = []

    @property
    def platform_token(self) -> str:
        return self._platform_token

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    @property
    def install_root(self) -> Path:
        return self._installer.install_root

    def archive_path_for(self, release: ReleaseInfo) -> Path:
        return self._download_dir / ARCHIVE_NAME_TEMPLATE.format(version=release.version)

    def run(self) -> UpdateResult:
        """Execute one update run and describe how it ended."""

        self.stages = []
        try:
            return self._run()
        except UpdateError as exc:
            self._enter(UpdateStage.ABORTED)
            _LOGGER.error("Update aborted during %s: %s", exc.stage, exc)
            raise

    def _run(self) -> UpdateResult:
        self._enter(UpdateStage.RESOLVING_RELEASE)
        release = self._provider.fetch_latest(self._platform_token)
        _LOGGER.info("Found %s version: %s", self._platform_token, release.version)

        self._enter(UpdateStage.CHECKING_LOCAL_VERSION)
        previous = read_installed_version(self._installer.install_root)
        if self._is_up_to_date(previous, release):
            self._enter(UpdateStage.SKIPPED)
            _LOGGER.info("Already at %s, no need to upgrade", previous)
            return self._result(UpdateOutcome.UP_TO_DATE, release, previous)

        archive_path = self._obtain_verified_archive(release)

        if not is_auto_installable(self._platform_token):
            self._enter(UpdateStage.MANUAL_INSTALL_REQUIRED)
            _LOGGER.info(
                "Install the update manually using the downloaded archive at %s",
                archive_path,
            )
            return self._result(
                UpdateOutcome.MANUAL_INSTALL_REQUIRED, release, previous, archive_path
            )

        self._enter(UpdateStage.CONFIRMING_REPLACEMENT)
        self._confirm_replacement()

        self._enter(UpdateStage.EXTRACTING)
        self._installer.extract(archive_path)

        self._enter(UpdateStage.RECORDING_VERSION)
        try:
            self._installer.record_version(release.version)
        except OSError as exc:
            _LOGGER.warning("Unable to record installed version %s: %s", release.version, exc)

        self._enter(UpdateStage.ACTIVATING)
        self._installer.activate()

        self._enter(UpdateStage.DONE)
        _LOGGER.info("Successfully updated to version %s", release.version)
        return self._result(UpdateOutcome.UPDATED, release, previous, archive_path)

    def _is_up_to_date(self, installed: str | None, release: ReleaseInfo) -> bool:
        if self._force:
            _LOGGER.debug("Force update requested; skipping installed version check")
            return False
        if installed is None:
            _LOGGER.debug("Installed version unknown; proceeding with update")
            return False
        if self._compare(installed, release.version) >= 0:
            return True
        _LOGGER.info("Update available: %s -> %s", installed, release.version)
        return False

    def _obtain_verified_archive(self, release: ReleaseInfo) -> Path:
        self._enter(UpdateStage.AWAITING_DOWNLOAD)
        if not self._download_dir.is_dir():
            raise TransferError(f"Download directory {self._download_dir} does not exist")

        archive_path = self.archive_path_for(release)
        reused = archive_path.exists()
        if reused:
            _LOGGER.info("Download skipped (file already exists): %s", archive_path)
        else:
            self._download(release, archive_path)

        self._enter(UpdateStage.VERIFYING_INTEGRITY)
        try:
            self._verify(release, archive_path)
        except IntegrityError as exc:
            if not reused:
                raise
            _LOGGER.warning("Existing archive failed verification (%s); downloading again", exc)
            self._enter(UpdateStage.AWAITING_DOWNLOAD)
            self._download(release, archive_path)
            self._enter(UpdateStage.VERIFYING_INTEGRITY)
            self._verify(release, archive_path)
        return archive_path

    def _download(self, release: ReleaseInfo, archive_path: Path) -> None:
        _LOGGER.info("Downloading %s to %s", release.version, archive_path.parent)
        self._downloader.download(release.download_url, archive_path, self._progress)

    def _verify(self, release: ReleaseInfo, archive_path: Path) -> None:
        _LOGGER.info("Checking integrity of %s", archive_path)
        try:
            verify_sha256(archive_path, release.sha256)
        except IntegrityError:
            _discard_archive(archive_path)
            raise
        except OSError as exc:
            raise UpdateError(f"Error calculating SHA256 of {archive_path}: {exc}") from exc
        _LOGGER.info("Verified archive for version %s", release.version)

    def _confirm_replacement(self) -> None:
        root = self._installer.install_root
        if not self._installer.has_existing_install():
            return
        if not self._confirm(f"Removing existing directory {root}, are you sure?"):
            raise ConfirmationDeclined("Installation was aborted")
        _LOGGER.debug("Replacement of %s confirmed", root)

    def _enter(self, stage: UpdateStage) -> None:
        _LOGGER.debug("Update stage: %s", stage.value)
        self.stages.append(stage)

    def _result(
        self,
        outcome: UpdateOutcome,
        release: ReleaseInfo,
        installed_version: str | None,
        archive_path: Path | None = None,
    ) -> UpdateResult:
        return UpdateResult(
            outcome=outcome,
            release=release,
            installed_version=installed_version,
            archive_path=archive_path,
            stages=tuple(self.stages),
        )


def _discard_archive(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        _LOGGER.warning("Unable to remove corrupt archive %s: %s", path, exc)
    else:
        _LOGGER.info("Removed archive %s after failed verification", path)
