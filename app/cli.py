"""Check for, download and install the latest Windsurf release."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from app.config import load_updater_config
from app.version import get_app_version
from services.update import (
    PLATFORM_TOKENS,
    UpdateError,
    UpdateOutcome,
    build_update_service,
    current_platform_key,
)
from shared.logging_config import LogVerbosity, ensure_app_logging, set_file_log_verbosity

_LOGGER = logging.getLogger(__name__)

_EXIT_OK = 0
_EXIT_FAILURE = 1
_EXIT_INTERRUPTED = 130


class LoggingProgressReporter:
    """Log download progress in coarse steps."""

    def __init__(self, *, step_percent: int = 10, unknown_step_bytes: int = 50 * 1024 * 1024) -> None:
        self._step_percent = max(1, step_percent)
        self._unknown_step_bytes = max(1, unknown_step_bytes)
        self._last_bucket: int | None = None

    def __call__(self, downloaded: int, total: int | None) -> None:
        if total:
            percent = min(100, downloaded * 100 // total)
            bucket = percent // self._step_percent
            if bucket == self._last_bucket:
                return
            self._last_bucket = bucket
            _LOGGER.info(
                "Downloading: %d%% (%.1f of %.1f MiB)",
                percent,
                downloaded / (1024 * 1024),
                total / (1024 * 1024),
            )
            return

        bucket = downloaded // self._unknown_step_bytes
        if bucket == self._last_bucket:
            return
        self._last_bucket = bucket
        _LOGGER.info("Downloading: %.1f MiB", downloaded / (1024 * 1024))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    supported = ", ".join(sorted(PLATFORM_TOKENS))
    parser = argparse.ArgumentParser(prog="windsurf-updater", description=__doc__)
    parser.add_argument(
        "--download-path",
        type=Path,
        default=None,
        help="Where to download the archive (default: ~/Downloads).",
    )
    parser.add_argument(
        "--install-path",
        type=Path,
        default=None,
        help="Where to install Windsurf (default: ~/apps/windsurf).",
    )
    parser.add_argument(
        "--platform",
        default=None,
        help=f"Platform to download for (current: {current_platform_key()}, supported: [{supported}]).",
    )
    parser.add_argument(
        "--force-update",
        action="store_true",
        help="Force update even if already up to date.",
    )
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Assume yes to all prompts.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON configuration file.",
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogVerbosity],
        default=None,
        help="Minimum severity written to the log file.",
    )
    parser.add_argument(
        "--list-platforms",
        action="store_true",
        help="Print the supported platforms and exit.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_app_version()}",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)

    if args.list_platforms:
        for key, token in sorted(PLATFORM_TOKENS.items()):
            print(f"  {key} ({token})")
        return _EXIT_OK

    ensure_app_logging()
    if args.log_level:
        set_file_log_verbosity(args.log_level)

    config = load_updater_config(args.config)
    try:
        service = build_update_service(
            config,
            platform=args.platform,
            download_dir=args.download_path,
            install_dir=args.install_path,
            force=args.force_update,
            assume_yes_to_prompts=args.yes,
            progress=LoggingProgressReporter(),
        )
        result = service.run()
    except UpdateError as exc:
        _LOGGER.error("%s", exc)
        return _EXIT_FAILURE
    except KeyboardInterrupt:
        _LOGGER.warning("Interrupted; partial downloads are kept for the next run")
        return _EXIT_INTERRUPTED

    if result.outcome is UpdateOutcome.UPDATED:
        print(f"Successfully updated Windsurf to version {result.release.version}")
        print("Restart Windsurf to apply the update.")
    elif result.outcome is UpdateOutcome.UP_TO_DATE:
        print(f"Already at {result.installed_version}, no need to upgrade!")
    else:
        print(
            "Install your update manually, using the downloaded archive at "
            f"{result.archive_path}"
        )
    return _EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
