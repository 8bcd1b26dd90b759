# coffeediary_backend/app/utils/logs.py
from __future__ import annotations

import logging
import os

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(area: str) -> logging.Logger:
    """Named `coffeediary.<area>` logger with a single stream handler."""
    log = logging.getLogger(f"coffeediary.{area}")
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        log.addHandler(handler)
        log.setLevel(os.getenv("COFFEEDIARY_LOG_LEVEL", "INFO").upper() or "INFO")
    return log


def set_level(level: str) -> None:
    """Apply one level to every coffeediary.* logger created so far."""
    root = logging.getLogger("coffeediary")
    root.setLevel(level)
    for name, obj in logging.root.manager.loggerDict.items():
        if name.startswith("coffeediary.") and isinstance(obj, logging.Logger):
            obj.setLevel(level)
