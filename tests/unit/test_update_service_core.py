from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from services.update import (
    ExtractionError,
    UpdateError,
    UpdateOutcome,
    UpdateService,
    UpdateStage,
)
from services.update.markers import read_installed_version, write_installed_version
from tests.unit.update_service_test_utils import StaticReleaseProvider, build_update_archive, make_release


@dataclass
class RecordingDownloader:
    source: Path
    calls: list[tuple[str, Path]] = field(default_factory=list)

    def download(self, url: str, destination: Path, progress=None) -> Path:  # type: ignore[no-untyped-def]
        self.calls.append((url, destination))
        shutil.copyfile(self.source, destination)
        if progress is not None:
            size = destination.stat().st_size
            progress(size, size)
        return destination


@dataclass
class RecordingInstaller:
    install_root: Path
    existing: bool = False
    fail_on: str | None = None
    events: list[str] = field(default_factory=list)

    def has_existing_install(self) -> bool:
        return self.existing

    def extract(self, archive_path: Path) -> None:
        self._step("extract")

    def record_version(self, version: str) -> None:
        self._step(f"record:{version}")

    def activate(self) -> None:
        self._step("activate")

    def _step(self, event: str) -> None:
        self.events.append(event)
        if self.fail_on and event.startswith(self.fail_on):
            raise ExtractionError(f"{event} failed")


@pytest.fixture
def archive(tmp_path: Path) -> Path:
    source = tmp_path / "source"
    source.mkdir()
    return build_update_archive(source)


def _service(
    tmp_path: Path,
    archive: Path,
    installer: RecordingInstaller,
    *,
    confirm=lambda prompt: True,  # type: ignore[no-untyped-def]
    **kwargs,
) -> tuple[UpdateService, StaticReleaseProvider, RecordingDownloader]:
    provider = StaticReleaseProvider(make_release(archive))
    downloader = RecordingDownloader(archive)
    download_dir = tmp_path / "downloads"
    download_dir.mkdir(exist_ok=True)
    service = UpdateService(
        provider,
        downloader,  # type: ignore[arg-type]
        installer,
        platform_token="linux-x64",
        download_dir=download_dir,
        confirm=confirm,
        **kwargs,
    )
    return service, provider, downloader


def test_installer_steps_run_in_order(tmp_path: Path, archive: Path) -> None:
    installer = RecordingInstaller(tmp_path / "install", existing=True)
    service, provider, downloader = _service(tmp_path, archive, installer)

    result = service.run()

    assert result.outcome is UpdateOutcome.UPDATED
    assert provider.calls == ["linux-x64"]
    assert len(downloader.calls) == 1
    assert installer.events == ["extract", "record:1.5.0", "activate"]


def test_extraction_failure_aborts_before_activation(tmp_path: Path, archive: Path) -> None:
    installer = RecordingInstaller(tmp_path / "install", fail_on="extract")
    service, _, _ = _service(tmp_path, archive, installer)

    with pytest.raises(ExtractionError):
        service.run()

    assert installer.events == ["extract"]
    assert service.stages[-2:] == [UpdateStage.EXTRACTING, UpdateStage.ABORTED]


def test_activation_failure_is_reported(tmp_path: Path, archive: Path) -> None:
    installer = RecordingInstaller(tmp_path / "install", fail_on="activate")
    service, _, _ = _service(tmp_path, archive, installer)

    with pytest.raises(UpdateError):
        service.run()

    assert service.stages[-2:] == [UpdateStage.ACTIVATING, UpdateStage.ABORTED]


def test_confirmation_prompt_names_install_root(tmp_path: Path, archive: Path) -> None:
    prompts: list[str] = []
    installer = RecordingInstaller(tmp_path / "install", existing=True)

    def confirm(prompt: str) -> bool:
        prompts.append(prompt)
        return True

    service, _, _ = _service(tmp_path, archive, installer, confirm=confirm)
    service.run()

    assert prompts == [f"Removing existing directory {tmp_path / 'install'}, are you sure?"]


def test_progress_callback_is_forwarded_to_downloader(tmp_path: Path, archive: Path) -> None:
    updates: list[tuple[int, int | None]] = []
    installer = RecordingInstaller(tmp_path / "install")
    service, _, _ = _service(
        tmp_path, archive, installer, progress=lambda done, total: updates.append((done, total))
    )

    service.run()

    size = archive.stat().st_size
    assert updates == [(size, size)]


def test_installed_version_is_read_from_install_root(tmp_path: Path, archive: Path) -> None:
    root = tmp_path / "install"
    root.mkdir()
    write_installed_version(root, "1.5.0")
    installer = RecordingInstaller(root, existing=True)
    service, _, downloader = _service(tmp_path, archive, installer)

    result = service.run()

    assert result.outcome is UpdateOutcome.UP_TO_DATE
    assert downloader.calls == []
    assert installer.events == []
    assert read_installed_version(root) == "1.5.0"


def test_run_resets_recorded_stages(tmp_path: Path, archive: Path) -> None:
    installer = RecordingInstaller(tmp_path / "install")
    service, _, _ = _service(tmp_path, archive, installer)

    service.run()
    service.run()

    assert service.stages.count(UpdateStage.RESOLVING_RELEASE) == 1
