"""Central logging configuration for the updater.

The command line writes a diagnostic log file in addition to the console
output so failed updates can be inspected afterwards.  Home-directory paths are
redacted from both outputs before they are written.

Two environment variables allow customising where the log file is written:

``WINDSURF_UPDATER_LOG_FILE``
    Absolute path to the log file that should be created.

``WINDSURF_UPDATER_LOG_DIR``
    Directory where the default log file name will be created.  Ignored when
    ``WINDSURF_UPDATER_LOG_FILE`` is present.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from enum import Enum
from pathlib import Path

_LOG_FILE_ENV = "WINDSURF_UPDATER_LOG_FILE"
_LOG_DIR_ENV = "WINDSURF_UPDATER_LOG_DIR"
_DEFAULT_DIRNAME = ".windsurf_updater"
_DEFAULT_LOGNAME = "updater.log"
_CONFIGURED = False
_LOG_PATH: Path | None = None
_HANDLER_TAG = "_windsurf_updater_logging_handler"
_FILE_HANDLER: logging.FileHandler | None = None

USER_HOME_PLACEHOLDER = "~"


class LogVerbosity(str, Enum):
    """Verbosity levels supported by the updater log file."""

    DISABLED = "disabled"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.DISABLED: logging.CRITICAL + 1,
    LogVerbosity.ERROR: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.INFO
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


def _home_patterns() -> tuple[re.Pattern[str], ...]:
    candidates = {str(Path.home())}
    for env_var in ("HOME", "USERPROFILE"):
        value = os.environ.get(env_var)
        if value:
            candidates.add(os.path.expanduser(value))
    normalised = {
        os.path.normpath(candidate)
        for candidate in candidates
        if candidate and candidate not in {os.sep, ""}
    }
    flags = re.IGNORECASE if os.name == "nt" else 0
    # Longest first so nested home paths are replaced as a whole.
    ordered = sorted((path for path in normalised if path not in {os.sep, "."}), key=len, reverse=True)
    return tuple(re.compile(re.escape(path), flags) for path in ordered)


_REDACTION_PATTERNS = _home_patterns()


def _sanitize_text(message: str) -> str:
    if not message:
        return message
    redacted = message
    for pattern in _REDACTION_PATTERNS:
        redacted = pattern.sub(USER_HOME_PLACEHOLDER, redacted)
    return redacted


class _RedactingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _sanitize_text(super().format(record))


def ensure_app_logging(*, console: bool = True) -> Path:
    """Configure the root logger for the updater.

    The first invocation installs a file handler and, when ``console`` is true,
    an INFO-level stderr handler with a terse format.  Subsequent calls are
    no-ops and return the already configured log file path.
    """

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER

    if _CONFIGURED and _LOG_PATH is not None:
        return _LOG_PATH

    log_path = _resolve_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(_VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
    file_handler.setFormatter(
        _RedactingFormatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    setattr(file_handler, _HANDLER_TAG, True)
    root.addHandler(file_handler)
    _FILE_HANDLER = file_handler

    if console and _should_log_to_stderr(root.handlers):
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(logging.INFO)
        stream_handler.setFormatter(_RedactingFormatter("%(message)s"))
        setattr(stream_handler, _HANDLER_TAG, True)
        root.addHandler(stream_handler)

    _CONFIGURED = True
    _LOG_PATH = log_path

    logging.getLogger(__name__).debug(
        "Writing updater logs to %s (verbosity=%s)",
        log_path,
        _CURRENT_VERBOSITY.value,
    )
    return log_path


def set_file_log_verbosity(verbosity: LogVerbosity | str) -> None:
    """Adjust the minimum severity recorded in the updater log file."""

    global _CURRENT_VERBOSITY

    if isinstance(verbosity, str):
        try:
            verbosity = LogVerbosity(verbosity.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc

    ensure_app_logging()
    _CURRENT_VERBOSITY = verbosity
    if _FILE_HANDLER is not None:
        _FILE_HANDLER.setLevel(_VERBOSITY_LEVELS[verbosity])
    logging.getLogger(__name__).debug("File log verbosity set to %s", verbosity.value)


def get_file_log_verbosity() -> LogVerbosity:
    """Return the current verbosity level for the updater log file."""

    return _CURRENT_VERBOSITY


def _resolve_log_path() -> Path:
    env_file = os.environ.get(_LOG_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser()

    env_dir = os.environ.get(_LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser() / _DEFAULT_LOGNAME

    return Path.home() / _DEFAULT_DIRNAME / "logs" / _DEFAULT_LOGNAME


def _should_log_to_stderr(handlers: list[logging.Handler]) -> bool:
    stderr = getattr(sys, "stderr", None)
    if stderr is None:
        return False
    for handler in handlers:
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) is stderr:
            return False
    return True


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_app_logging`."""

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER, _CURRENT_VERBOSITY

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    _CONFIGURED = False
    _LOG_PATH = None
    _FILE_HANDLER = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY
