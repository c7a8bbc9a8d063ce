"""Log setup shared by the CLI and the batch runtime."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FILENAME = "playerdata.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUPS = 5


def resolve_log_file() -> Path:
    '''
    Where the rotating log goes: ``$PLAYERDATA_LOG_DIR/playerdata.log`` when the
    variable is set, otherwise ``logs/playerdata.log`` next to this package.
    '''
    override_dir = os.getenv("PLAYERDATA_LOG_DIR")
    if override_dir:
        return Path(override_dir) / LOG_FILENAME
    return Path(__file__).resolve().parent / "logs" / LOG_FILENAME


def _open_rotating_handler(log_file: Path) -> RotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")


def configure_logging(
    logger_name: str = "",
    log_file: Optional[Path] = None,
    verbose: bool = False,
) -> tuple[logging.Logger, Optional[Path]]:
    '''
    Attaches a rotating file handler and a console handler to ``logger_name``.
    The root logger is the default so the playerdata.* and mcapi.* loggers share it.

    :param log_file: preferred log path, defaults to :func:`resolve_log_file`.
    :param verbose: log at DEBUG instead of INFO.
    :return: the logger and the file actually written to, None when no
        location was writable and only the console is logging.
    '''
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            return logger, Path(handler.baseFilename)

    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    preferred = Path(log_file) if log_file is not None else resolve_log_file()
    for candidate in (preferred, Path.cwd() / "logs" / LOG_FILENAME):
        try:
            file_handler = _open_rotating_handler(candidate)
        except OSError as e:
            logger.warning("Cannot log to %s: %s", candidate, e)
            continue
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        return logger, candidate
    return logger, None
