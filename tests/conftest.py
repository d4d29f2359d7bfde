from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_root_on_path()


@pytest.fixture(autouse=True)
def _isolated_updater_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep log files and configuration lookups away from real user data."""

    from app.config import reset_updater_config_cache
    from shared import logging_config

    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setenv("WINDSURF_UPDATER_LOG_DIR", str(log_dir))
    monkeypatch.delenv("WINDSURF_UPDATER_LOG_FILE", raising=False)
    monkeypatch.delenv("WINDSURF_UPDATER_CONFIG", raising=False)
    reset_updater_config_cache()

    yield

    logging_config._reset_for_tests()
    reset_updater_config_cache()
