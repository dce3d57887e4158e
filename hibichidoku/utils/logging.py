"""Logging configuration utilities.

One call to :func:`configure_logging` sets up the root logger for the CLI,
the scheduler job and the web reader alike. Settings are read at call time
so values loaded from ``.env`` in ``main()`` are respected.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Iterable, Literal, Optional

DEFAULT_LOG_FILE = "logs/hibichidoku.log"

LogOutput = Literal["stdout", "file", "both"]
LogFormat = Literal["text", "json"]

_TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
_JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", '
    '"file": "%(filename)s:%(lineno)d", "message": "%(message)s"}'
)

# Chatty third-party loggers that drown out pipeline progress at DEBUG
_NOISY_LOGGERS = ("urllib3", "pydub.converter", "multipart")


def is_ci_env() -> bool:
    """True inside a scheduled CI job (GitHub Actions and friends)."""
    return bool(os.environ.get("CI") or os.environ.get("GITHUB_ACTIONS"))


def _resolve_output(output: Optional[str]) -> str:
    if output:
        return output.lower()
    env_output = os.environ.get("LOG_OUTPUT")
    if env_output:
        return env_output.lower()
    # Scheduled runs collect stdout; local runs keep a rotating file too
    return "stdout" if is_ci_env() else "both"


def configure_logging(
    level: str | int | None = None,
    output: LogOutput | None = None,
    file_path: str | None = None,
    log_format: LogFormat | None = None,
    quiet: Iterable[str] = _NOISY_LOGGERS,
) -> None:
    """Configure application logging.

    Parameters
    ----------
    level:
        Logging level as a string (e.g., "INFO") or numeric value.
    output:
        "stdout", "file" or "both".
    file_path:
        Log file used when output includes "file".
    log_format:
        "text" or "json".
    quiet:
        Logger names pinned to WARNING regardless of ``level``.
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if log_format is None:
        log_format = os.environ.get("LOG_FORMAT", "text").lower()
    resolved_output = _resolve_output(output)
    if file_path is None:
        file_path = os.environ.get("LOG_FILE_PATH") or DEFAULT_LOG_FILE

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(_TEXT_FORMAT if log_format == "text" else _JSON_FORMAT)

    if resolved_output in ("stdout", "both"):
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setFormatter(formatter)
        root_logger.addHandler(stdout_handler)

    if resolved_output in ("file", "both"):
        log_dir = os.path.dirname(file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            file_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
