"""Logging helpers for flowtext."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from flowtext.config import get_config

_CONFIGURED = False


def setup_logging(level: Optional[str] = None, log_path: Optional[Path] = None) -> None:
    """Configure the ``flowtext`` logger: stderr, plus a rotating file if asked."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    config = get_config()
    level_name = (level or config.get("log_level") or "INFO").upper()
    resolved_level = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    logger = logging.getLogger("flowtext")
    logger.setLevel(resolved_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    log_path = log_path or config.get("log_path")
    if log_path:
        resolved = Path(log_path).expanduser()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            resolved,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _CONFIGURED = True
    logger.debug("Logging initialized at %s", level_name)
