from __future__ import annotations

import logging
from pathlib import Path

import pytest

from services.update import (
    ConsoleConfirmation,
    DirectoryInstaller,
    ExtractionError,
    assume_yes,
    read_installed_version,
)
from tests.unit.update_service_test_utils import build_update_archive


def test_staging_directory_sits_next_to_install_root(tmp_path: Path) -> None:
    installer = DirectoryInstaller(tmp_path / "windsurf")

    assert installer.staging_dir == tmp_path / "windsurf.update"


def test_extract_record_activate_replaces_install(tmp_path: Path) -> None:
    root = tmp_path / "windsurf"
    root.mkdir()
    (root / "old.txt").write_text("old", encoding="utf-8")
    installer = DirectoryInstaller(root)
    assert installer.has_existing_install()

    installer.extract(build_update_archive(tmp_path))
    installer.record_version("1.5.0")

    assert (root / "old.txt").exists()
    assert (installer.staging_dir / "bin" / "windsurf").exists()

    installer.activate()

    assert not (root / "old.txt").exists()
    assert (root / "bin" / "windsurf").exists()
    assert read_installed_version(root) == "1.5.0"
    assert not installer.staging_dir.exists()


def test_leftover_staging_directory_is_cleared_with_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    installer = DirectoryInstaller(tmp_path / "windsurf")
    installer.staging_dir.mkdir()
    (installer.staging_dir / "junk.bin").write_bytes(b"junk")

    with caplog.at_level(logging.WARNING, logger="services.update.installers"):
        installer.extract(build_update_archive(tmp_path))

    assert not (installer.staging_dir / "junk.bin").exists()
    assert (installer.staging_dir / "LICENSE.txt").exists()
    assert "Removing leftover staging directory" in caplog.text


def test_staging_path_that_is_a_file_is_left_alone(tmp_path: Path) -> None:
    installer = DirectoryInstaller(tmp_path / "windsurf")
    installer.staging_dir.write_text("user data", encoding="utf-8")

    with pytest.raises(ExtractionError, match="not a staging directory"):
        installer.extract(build_update_archive(tmp_path))

    assert installer.staging_dir.read_text(encoding="utf-8") == "user data"


def test_staging_path_that_is_a_symlink_is_left_alone(tmp_path: Path) -> None:
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    (elsewhere / "keep.txt").write_text("keep", encoding="utf-8")
    installer = DirectoryInstaller(tmp_path / "windsurf")
    installer.staging_dir.symlink_to(elsewhere, target_is_directory=True)

    with pytest.raises(ExtractionError, match="not a staging directory"):
        installer.extract(build_update_archive(tmp_path))

    assert (elsewhere / "keep.txt").exists()


def test_failed_extraction_keeps_existing_install(tmp_path: Path) -> None:
    root = tmp_path / "windsurf"
    root.mkdir()
    (root / "old.txt").write_text("old", encoding="utf-8")
    corrupt = tmp_path / "corrupt.tar.gz"
    corrupt.write_bytes(b"not an archive")

    with pytest.raises(ExtractionError):
        DirectoryInstaller(root).extract(corrupt)

    assert (root / "old.txt").read_text(encoding="utf-8") == "old"


def test_activate_without_staged_payload_fails(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError, match="Unable to move staged update"):
        DirectoryInstaller(tmp_path / "windsurf").activate()


def test_assume_yes_accepts_everything() -> None:
    assert assume_yes("Removing existing directory /x, are you sure?") is True


@pytest.mark.parametrize(
    ("answer", "expected"),
    [("y", True), ("Yes", True), ("  yep", True), ("n", False), ("", False), ("no way", False)],
)
def test_console_confirmation_accepts_answers_starting_with_y(answer: str, expected: bool) -> None:
    prompts: list[str] = []

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        return answer

    assert ConsoleConfirmation(input_func=fake_input)("Proceed?") is expected
    assert prompts == ["Proceed? [y/N] "]


def test_console_confirmation_declines_on_end_of_input() -> None:
    def closed_input(prompt: str) -> str:
        raise EOFError

    assert ConsoleConfirmation(input_func=closed_input)("Proceed?") is False
