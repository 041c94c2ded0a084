from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from autoflow.core.config import AutoflowSettings, load_settings

from .json_formatter import JSONFormatter

_LOGGER_NAME = "autoflow"
_CONFIGURED_ATTR = "_autoflow_json_logging"


def _parse_level(raw: str) -> int:
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _has_configured(logger: logging.Logger, handler_type: type[logging.Handler]) -> bool:
    return any(
        type(handler) is handler_type and getattr(handler, _CONFIGURED_ATTR, False)
        for handler in logger.handlers
    )


def configure_logging(state_dir: Path | None = None, settings: AutoflowSettings | None = None) -> logging.Logger:
    settings = settings or load_settings()
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(_parse_level(settings.log_level))
    logger.propagate = False

    formatter = JSONFormatter()

    if not _has_configured(logger, logging.StreamHandler):
        stdout_handler = logging.StreamHandler(stream=sys.stdout)
        stdout_handler.setFormatter(formatter)
        setattr(stdout_handler, _CONFIGURED_ATTR, True)
        logger.addHandler(stdout_handler)

    if settings.log_to_file and not _has_configured(logger, RotatingFileHandler):
        log_dir = settings.log_dir or (Path(state_dir or settings.state_dir) / "logs")
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=log_dir / "autoflow.log",
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        setattr(file_handler, _CONFIGURED_ATTR, True)
        logger.addHandler(file_handler)

    return logger
