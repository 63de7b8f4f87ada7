from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .json_formatter import JSONFormatter

_LOGGER_NAME = "projectassist"
_MARKER = "_projectassist_handler"


def _parse_level(raw: str) -> int:
    level = getattr(logging, raw.strip().upper(), None)
    return level if isinstance(level, int) else logging.INFO


@dataclass(frozen=True)
class LogSettings:
    level: int
    to_file: bool
    directory: Path
    max_bytes: int
    backup_count: int

    @classmethod
    def from_env(cls, log_dir: Path | None = None) -> LogSettings:
        return cls(
            level=_parse_level(os.getenv("PROJECTASSIST_LOG_LEVEL", "INFO")),
            to_file=os.getenv("PROJECTASSIST_LOG_TO_FILE", "off").strip().casefold() == "on",
            directory=Path(os.getenv("PROJECTASSIST_LOG_DIR") or log_dir or "logs"),
            max_bytes=int(os.getenv("PROJECTASSIST_LOG_MAX_BYTES", "5000000")),
            backup_count=int(os.getenv("PROJECTASSIST_LOG_BACKUP_COUNT", "5")),
        )


def _marked(handler: logging.Handler, kind: str) -> bool:
    return getattr(handler, _MARKER, None) == kind


def _attach(logger: logging.Logger, handler: logging.Handler, kind: str) -> None:
    handler.setFormatter(JSONFormatter())
    setattr(handler, _MARKER, kind)
    logger.addHandler(handler)


def configure_logging(log_dir: Path | None = None) -> logging.Logger:
    """Route the ``projectassist`` logger to JSON lines on stdout, plus a rotating file when enabled.

    Safe to call repeatedly: handlers this function installed are recognised
    and not added twice.
    """
    settings = LogSettings.from_env(log_dir)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(settings.level)
    logger.propagate = False

    if not any(_marked(handler, "stdout") for handler in logger.handlers):
        _attach(logger, logging.StreamHandler(stream=sys.stdout), "stdout")

    if settings.to_file and not any(_marked(handler, "file") for handler in logger.handlers):
        settings.directory.mkdir(parents=True, exist_ok=True)
        _attach(
            logger,
            RotatingFileHandler(
                filename=settings.directory / "projectassist.log",
                maxBytes=settings.max_bytes,
                backupCount=settings.backup_count,
                encoding="utf-8",
            ),
            "file",
        )
    return logger
