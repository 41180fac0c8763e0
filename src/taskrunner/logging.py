from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
ROOT_LOGGER = "taskrunner"

# Third-party loggers that are only interesting when something breaks.
_NOISY = ("watchdog", "werkzeug", "MARKDOWN")

_configured = False


def _env_level(default: str = "INFO") -> int:
    name = os.getenv("STYLEGUIDE_LOG_LEVEL", default).upper()
    return getattr(logging, name, logging.INFO)


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    level = _env_level()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # basicConfig is a no-op when the root logger already has handlers
    logging.getLogger(ROOT_LOGGER).setLevel(level)
    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str, log_file: Path | None = None) -> logging.Logger:
    """Return `name`'s logger, mirroring it into a rotating file when `log_file` is given.

    Child loggers propagate, so a file on `taskrunner` captures every task.
    """
    _ensure_base_logger()
    logger = logging.getLogger(name)
    # Do not duplicate handlers if already set
    if log_file and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
